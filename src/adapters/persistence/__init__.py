from .dynamodb_cache_service import DynamoDbCacheService
from .in_memory_cache_service import InMemoryCacheService
from .in_memory_graph_repository import InMemoryGraphRepository
from .local_reference_repository import LocalReferenceRepository
from .s3_graph_repository import S3GraphRepository

__all__ = [
    "DynamoDbCacheService",
    "InMemoryCacheService",
    "InMemoryGraphRepository",
    "LocalReferenceRepository",
    "S3GraphRepository",
]
