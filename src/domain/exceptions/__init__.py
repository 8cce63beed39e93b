from .routing import (
    ExternalServiceDegraded,
    GraphUnavailable,
    NoPathFound,
    NoStopsForCity,
    RouteNotFound,
    RoutingError,
    ValidationFailed,
)

__all__ = [
    "ExternalServiceDegraded",
    "GraphUnavailable",
    "NoPathFound",
    "NoStopsForCity",
    "RouteNotFound",
    "RoutingError",
    "ValidationFailed",
]
