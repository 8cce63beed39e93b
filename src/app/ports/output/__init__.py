from .cache_service import ICacheService
from .city_repository import ICityRepository
from .flight_repository import IFlightRepository
from .graph_repository import IGraphRepository
from .road_routing_provider import IRoadRoutingProvider, RoadRoute
from .stop_repository import IStopRepository

__all__ = [
    "ICacheService",
    "ICityRepository",
    "IFlightRepository",
    "IGraphRepository",
    "IRoadRoutingProvider",
    "IStopRepository",
    "RoadRoute",
]
