from __future__ import annotations

import os
from dataclasses import dataclass

from src.app.ports.output import ICacheService, IRoadRoutingProvider, RoadRoute
from src.domain.models import GeoPoint


@dataclass(slots=True)
class CachedRoadRoutingAdapter(IRoadRoutingProvider):
    """Caches road routes in an ICacheService.

    This is an adapter-level decorator around another IRoadRoutingProvider.
    Failures of the upstream are not cached.

    Env vars:
      - GEOMETRY_CACHE_TTL_S: entry lifetime (default: 86400)
    """

    upstream: IRoadRoutingProvider
    cache: ICacheService
    ttl_s: int | None = None

    def _ttl(self) -> int:
        if self.ttl_s is not None:
            return self.ttl_s
        return int(os.getenv("GEOMETRY_CACHE_TTL_S", "86400"))

    def _key(self, start: GeoPoint, end: GeoPoint, profile: str) -> str:
        # Round coordinates to reduce key explosion.
        a_lat, a_lon = start.rounded(4)
        b_lat, b_lon = end.rounded(4)
        p = (profile or "driving").strip().lower()
        return f"road:{p}:{a_lat},{a_lon};{b_lat},{b_lon}"

    async def get_route(
        self, *, start: GeoPoint, end: GeoPoint, profile: str = "driving"
    ) -> RoadRoute:
        key = self._key(start, end, profile)
        cached = self.cache.get(key)
        if cached:
            return RoadRoute(
                points=tuple(GeoPoint(lat=lat, lon=lon) for lat, lon in cached["points"]),
                distance_m=float(cached["distance_m"]),
                duration_s=float(cached["duration_s"]),
                from_cache=True,
            )

        route = await self.upstream.get_route(start=start, end=end, profile=profile)
        self.cache.set(
            key,
            {
                "points": [[p.lat, p.lon] for p in route.points],
                "distance_m": route.distance_m,
                "duration_s": route.duration_s,
            },
            self._ttl(),
        )
        return route
