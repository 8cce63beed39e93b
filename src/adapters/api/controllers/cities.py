from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.adapters.api.dependencies import get_city_directory_service
from src.adapters.api.schemas.cities import (
    AutocompleteResponseSchema,
    CitySchema,
    InfrastructureSchema,
)
from src.adapters.api.schemas.routes import GeoPointSchema
from src.app.services.city_directory_service import CityDirectoryService

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("/autocomplete", response_model=AutocompleteResponseSchema)
def autocomplete(
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=10),
    service: CityDirectoryService = Depends(get_city_directory_service),
) -> AutocompleteResponseSchema:
    # Out-of-range limits are clamped by the service, not rejected.
    cities = service.autocomplete(q, limit)
    return AutocompleteResponseSchema(
        query=q,
        items=[
            CitySchema(
                id=c.id,
                name=c.name,
                normalized_name=c.normalized_name,
                region=c.region,
                is_hub=c.is_hub,
                location=GeoPointSchema(lat=c.location.lat, lon=c.location.lon),
                infrastructure=InfrastructureSchema(
                    airport=c.has_airport,
                    train_station=c.has_train_station,
                    bus_station=c.has_bus_station,
                    ferry_pier=c.has_ferry_pier,
                    winter_road=c.has_winter_road,
                ),
            )
            for c in cities
        ],
    )
