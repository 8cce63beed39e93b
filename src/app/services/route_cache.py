from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from src.app.ports.output import ICacheService
from src.domain.models import BuiltRoute, normalize_city_name

from .route_codec import route_from_dict, route_to_dict

logger = logging.getLogger(__name__)

ROUTE_KEY_PREFIX = "route:"


def route_fingerprint(
    *,
    from_city: str,
    to_city: str,
    travel_date: date,
    passengers: int = 1,
    max_transfers: int | None = None,
    preferred_transport: str | None = None,
    options: dict[str, Any] | None = None,
    graph_version: str | None = None,
) -> str:
    """Stable cache key for a route search.

    Pure function of the normalized request; two requests that differ only
    in city spelling (case, 'ё', punctuation) share a fingerprint.
    """

    payload = {
        "from": normalize_city_name(from_city),
        "to": normalize_city_name(to_city),
        "date": travel_date.isoformat(),
        "passengers": int(passengers),
        "max_transfers": max_transfers,
        "transport": (preferred_transport or "").lower() or None,
        "options": options or {},
        "graph": graph_version,
    }
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def route_id_for(fingerprint: str) -> str:
    return "r" + fingerprint[:24]


@dataclass(slots=True)
class RouteCache:
    """Built routes cached under `route:{route_id}` with a TTL."""

    cache: ICacheService
    ttl_s: int = 3600

    def key(self, route_id: str) -> str:
        return f"{ROUTE_KEY_PREFIX}{route_id}"

    def get(self, route_id: str) -> BuiltRoute | None:
        data = self.cache.get(self.key(route_id))
        if not data:
            return None
        try:
            return route_from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable cached route %s", route_id)
            return None

    def put(self, route: BuiltRoute) -> None:
        self.cache.set(self.key(route.route_id), route_to_dict(route), self.ttl_s)
