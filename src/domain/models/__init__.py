from .city import City, normalize_city_name
from .geo import GeoPoint
from .graph import GraphEdge, GraphMetadata, GraphSnapshot
from .hub import Hub, HubLevel
from .pricing import AdditionalExpenses, PriceBreakdown, PriceContext, ServiceClass
from .route import BuiltRoute, RouteSegment
from .schedule import ALL_DAYS, ScheduledLeg, days_mask
from .stop import Stop, StopKind
from .transport import Season, TransportType
from .validation import (
    Correction,
    IssueType,
    RealityCheckResult,
    RealityIssue,
    RouteIssue,
    SegmentValidation,
    ValidationResult,
)

__all__ = [
    "ALL_DAYS",
    "AdditionalExpenses",
    "BuiltRoute",
    "City",
    "Correction",
    "GeoPoint",
    "GraphEdge",
    "GraphMetadata",
    "GraphSnapshot",
    "Hub",
    "HubLevel",
    "IssueType",
    "PriceBreakdown",
    "PriceContext",
    "RealityCheckResult",
    "RealityIssue",
    "RouteIssue",
    "RouteSegment",
    "ScheduledLeg",
    "Season",
    "SegmentValidation",
    "ServiceClass",
    "Stop",
    "StopKind",
    "TransportType",
    "ValidationResult",
    "days_mask",
    "normalize_city_name",
]
