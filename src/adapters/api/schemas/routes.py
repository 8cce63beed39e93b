from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

TransportTypeName = Literal[
    "airplane", "train", "bus", "ferry", "winter_road", "taxi", "unknown"
]


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class StopSchema(BaseModel):
    id: str
    name: str
    location: GeoPointSchema
    city_id: str | None = None
    kind: Literal["real", "virtual"] = "real"
    is_airport: bool = False
    is_railway_station: bool = False
    is_hub: bool = False


class PriceBreakdownSchema(BaseModel):
    base: int = 0
    taxi: int = 0
    baggage: int = 0
    fees: int = 0
    transfer: int = 0
    total: int = 0


class RouteSegmentSchema(BaseModel):
    segment_id: str
    from_stop: StopSchema
    to_stop: StopSchema
    transport_type: TransportTypeName
    distance_km: float
    duration_min: int
    departure: datetime | None = None
    arrival: datetime | None = None
    route_id: str | None = None
    price: PriceBreakdownSchema = PriceBreakdownSchema()
    geometry: list[GeoPointSchema] = []
    polyline: str | None = None
    geometry_source: str | None = None
    geometry_degraded: bool = False


class CorrectionSchema(BaseModel):
    type: str
    suggested_value: float | str | None = None
    confidence: float


class RealityIssueSchema(BaseModel):
    type: str
    message: str
    segment_id: str | None = None
    expected: float | None = None
    actual: float | None = None
    correction: CorrectionSchema | None = None


class SegmentValidationSchema(BaseModel):
    segment_id: str
    is_valid: bool
    errors: list[str] = []
    warnings: list[str] = []


class ValidationSchema(BaseModel):
    is_valid: bool
    errors: list[str] = []
    warnings: list[str] = []
    segment_validations: list[SegmentValidationSchema] = []
    recommendations: list[str] = []
    corrections: list[RealityIssueSchema] = []


class RouteSchema(BaseModel):
    route_id: str
    from_city: str
    to_city: str
    travel_date: date
    passengers: int = Field(1, ge=1)
    graph_version: str | None = None
    hub_count: int = 0
    service_class: Literal["economy", "business", "first"] = "economy"
    booking_date: date | None = None
    segments: list[RouteSegmentSchema] = []
    total_distance_km: float | None = None
    total_duration_min: int | None = None
    total_price: PriceBreakdownSchema | None = None
    transfer_count: int | None = None
    validation: ValidationSchema | None = None
    created_at: datetime | None = None


class BuildRouteRequestSchema(BaseModel):
    from_city: str = Field(..., min_length=1, max_length=100)
    to_city: str = Field(..., min_length=1, max_length=100)
    travel_date: date
    passengers: int = Field(1, ge=1, le=9)
    max_transfers: int | None = Field(None, ge=0, le=10)
    preferred_transport: TransportTypeName | None = None
    service_class: Literal["economy", "business", "first"] = "economy"
    baggage_weight_kg: float = Field(0.0, ge=0.0, le=200.0)
    insurance: bool = False
    meal: bool = False
    include_geometry: bool = True
    booking_date: date | None = None
    strict: bool = False


class BuildRouteResponseSchema(BaseModel):
    success: bool
    route: RouteSchema | None = None
    validation: ValidationSchema | None = None
    execution_time_ms: float
    graph_available: bool
    graph_version: str | None = None
    error: str | None = None
    error_code: str | None = None
    from_cache: bool = False


class RealityCheckResponseSchema(BaseModel):
    route_id: str
    has_issues: bool
    issues: list[RealityIssueSchema] = []
    recommendations: list[str] = []
