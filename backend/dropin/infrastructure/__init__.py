"""Infrastructure layer for the filesystem, Redis and external services."""

from .json_code_group_repository import JsonFileCodeGroupRepository
from .local_blob_store import LocalBlobStore
from .redis_code_group_repository import RedisCodeGroupRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .storage_factory import StorageFactory

__all__ = [
    "JsonFileCodeGroupRepository",
    "LocalBlobStore",
    "RedisCodeGroupRepository",
    "RedisConnectionManager",
    "RedisRepository",
    "StorageFactory",
]
