from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx

from src.app.ports.output import IRoadRoutingProvider, RoadRoute
from src.domain.exceptions import ExternalServiceDegraded
from src.domain.models import GeoPoint

logger = logging.getLogger(__name__)

SERVICE_NAME = "osrm"


@dataclass(slots=True)
class OsrmRoadRoutingAdapter(IRoadRoutingProvider):
    """Road geometry from an OSRM-compatible HTTP server.

    Every failure (timeout, HTTP error, malformed payload, "no route") is
    raised as ExternalServiceDegraded so callers can fall back.

    Env vars:
      - OSRM_BASE_URL: server root (default: https://router.project-osrm.org)
      - OSRM_TIMEOUT_S: request timeout (default 5)
      - OSRM_PROFILE: default profile when the caller passes none (default: driving)
    """

    base_url: str | None = None
    timeout_s: float | None = None
    default_profile: str | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
        if self.timeout_s is None:
            self.timeout_s = float(os.getenv("OSRM_TIMEOUT_S", "5"))
        if self.default_profile is None:
            self.default_profile = os.getenv("OSRM_PROFILE", "driving")

    def _url(self, start: GeoPoint, end: GeoPoint, profile: str) -> str:
        base = (self.base_url or "").rstrip("/")
        coords = f"{start.lonlat_text()};{end.lonlat_text()}"
        return f"{base}/route/v1/{profile}/{coords}"

    async def get_route(
        self, *, start: GeoPoint, end: GeoPoint, profile: str = "driving"
    ) -> RoadRoute:
        url = self._url(start, end, profile or self.default_profile or "driving")
        params = {"overview": "full", "geometries": "geojson"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceDegraded(SERVICE_NAME, f"{type(exc).__name__}: {exc}") from exc

        return _parse_route(payload)


def _parse_route(payload: object) -> RoadRoute:
    if not isinstance(payload, dict):
        raise ExternalServiceDegraded(SERVICE_NAME, "malformed payload")
    if payload.get("code") != "Ok" or not payload.get("routes"):
        raise ExternalServiceDegraded(
            SERVICE_NAME, f"no route ({payload.get('code') or 'unknown'})"
        )

    try:
        route = payload["routes"][0]
        coords = route["geometry"]["coordinates"]
        points = tuple(GeoPoint.from_lonlat(pair) for pair in coords)
        distance_m = float(route.get("distance") or 0.0)
        duration_s = float(route.get("duration") or 0.0)
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise ExternalServiceDegraded(SERVICE_NAME, f"malformed route: {exc}") from exc

    if len(points) < 2:
        raise ExternalServiceDegraded(SERVICE_NAME, "route geometry has fewer than 2 points")
    return RoadRoute(points=points, distance_m=distance_m, duration_s=duration_s)
