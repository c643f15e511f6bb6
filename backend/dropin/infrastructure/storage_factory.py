"""
Storage Factory

Factory for creating the blob store and registry backend implementations.
The application layer stays decoupled from the concrete classes via the
BlobStore and CodeGroupRepository interfaces.
"""

import logging
from datetime import datetime
from typing import Callable

from dropin.config.transfer_config import TransferConfig
from dropin.domain.transfer.entities import utcnow
from dropin.domain.transfer.repositories import CodeGroupRepository
from dropin.domain.transfer.storage_repository import BlobStore

from .json_code_group_repository import JsonFileCodeGroupRepository
from .local_blob_store import LocalBlobStore
from .redis_code_group_repository import RedisCodeGroupRepository

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory selecting storage backends from TransferConfig."""

    @staticmethod
    def create_blob_store(config: TransferConfig) -> BlobStore:
        """
        Create the local filesystem blob store.

        Environment Variables:
            DROPIN_STORAGE_DIR: Blob directory (default: /tmp/dropin/uploads)
        """
        store = LocalBlobStore(config.storage_dir)
        logger.info(f"Storage factory: blobs stored at {config.storage_dir}")
        return store

    @staticmethod
    def create_registry(config: TransferConfig,
                        clock: Callable[[], datetime] = utcnow) -> CodeGroupRepository:
        """
        Create the registry backend named by REGISTRY_BACKEND.

        Returns:
            JsonFileCodeGroupRepository for "file", RedisCodeGroupRepository for "redis"
        """
        if config.registry_backend == "redis":
            from dropin.config.redis_config import get_redis_repository, init_redis

            init_redis()
            repository = RedisCodeGroupRepository(
                get_redis_repository(),
                grace_seconds=config.registry_grace_seconds,
                clock=clock,
            )
            logger.info("Storage factory: registry backed by Redis")
            return repository

        repository = JsonFileCodeGroupRepository(config.metadata_dir)
        logger.info(f"Storage factory: registry sidecars at {config.metadata_dir}")
        return repository
