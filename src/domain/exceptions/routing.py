class RoutingError(Exception):
    """Base exception for route construction failures."""


class GraphUnavailable(RoutingError):
    """Raised when no graph version has been published yet."""


class NoStopsForCity(RoutingError):
    """Raised when no graph node resolves for a requested city."""

    def __init__(self, city: str, message: str | None = None) -> None:
        super().__init__(message or f"No stops found for city: {city}")
        self.city = city


class NoPathFound(RoutingError):
    """Raised when no feasible path exists for the given request."""


class RouteNotFound(RoutingError):
    """Raised when a cached route id is unknown or expired."""


class ExternalServiceDegraded(RoutingError):
    """Raised by soft dependencies (road routing) so callers can fall back."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class ValidationFailed(RoutingError):
    """Raised when a caller requires a structurally valid route."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Route validation failed")
        self.errors = list(errors)
