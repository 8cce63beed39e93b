from __future__ import annotations

from dataclasses import dataclass

from src.app.ports.output import ICityRepository
from src.domain.models import City, normalize_city_name

MIN_LIMIT = 1
MAX_LIMIT = 50


@dataclass(slots=True)
class CityDirectoryService:
    city_repository: ICityRepository

    def autocomplete(self, query: str, limit: int = 10) -> list[City]:
        """Cities matching `query`: exact, then prefix, then substring.

        Matching runs on the normalized name and on the city id. Within a
        tier hubs come first, then alphabetical order.
        """

        key = normalize_city_name(query)
        if not key:
            return []
        limit = max(MIN_LIMIT, min(MAX_LIMIT, int(limit)))

        ranked: list[tuple[int, int, str, City]] = []
        for city in self.city_repository.list_cities():
            tier = _match_tier(key, city)
            if tier is None:
                continue
            ranked.append((tier, 0 if city.is_hub else 1, city.name.lower(), city))

        ranked.sort(key=lambda item: item[:3])
        return [item[3] for item in ranked[:limit]]


def _match_tier(key: str, city: City) -> int | None:
    candidates = (city.normalized_name, normalize_city_name(city.id))
    if key in candidates:
        return 0
    if any(c.startswith(key) for c in candidates):
        return 1
    if any(key in c for c in candidates):
        return 2
    return None
