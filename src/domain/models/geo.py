from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate in degrees. Stops, cities and polylines all use it."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValueError(f"Longitude out of range: {self.lon}")

    @classmethod
    def from_lonlat(cls, pair: Sequence[float]) -> "GeoPoint":
        # GeoJSON and OSRM order: [lon, lat]
        lon, lat = pair
        return cls(lat=float(lat), lon=float(lon))

    def lonlat_text(self) -> str:
        return f"{self.lon},{self.lat}"

    def rounded(self, ndigits: int = 4) -> tuple[float, float]:
        return (round(self.lat, ndigits), round(self.lon, ndigits))
