from __future__ import annotations

from pydantic import BaseModel

from src.adapters.api.schemas.routes import GeoPointSchema


class InfrastructureSchema(BaseModel):
    airport: bool = False
    train_station: bool = False
    bus_station: bool = False
    ferry_pier: bool = False
    winter_road: bool = False


class CitySchema(BaseModel):
    id: str
    name: str
    normalized_name: str
    region: str | None = None
    is_hub: bool = False
    location: GeoPointSchema
    infrastructure: InfrastructureSchema


class AutocompleteResponseSchema(BaseModel):
    query: str
    items: list[CitySchema] = []
