"""
Redis Repository Base Class

Provides JSON storage primitives with atomic set-if-absent on top of a
pooled Redis connection.
"""

import json
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import RedisError

from dropin.domain.errors import CorruptedRecordError, StorageFailureError


class RedisRepository:
    """Base Redis repository with atomic JSON operations."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def set_json(self, key: str, data: Dict[str, Any], ttl: Optional[int] = None,
                 only_if_absent: bool = False) -> bool:
        """
        Atomically set JSON data with optional TTL.

        Args:
            key: Redis key
            data: Dictionary to store as JSON
            ttl: Time to live in seconds
            only_if_absent: Use SET NX so an existing key is left untouched

        Returns:
            True if the value was written, False if NX found the key taken

        Raises:
            StorageFailureError: If Redis is unreachable or rejects the write
        """
        try:
            result = self.redis.set(
                self._make_key(key),
                json.dumps(data),
                ex=ttl if ttl else None,
                nx=only_if_absent,
            )
            return bool(result)
        except RedisError as e:
            raise StorageFailureError(f"Error setting JSON data for key {key}: {e}", e) from e

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Returns:
            Dictionary if found, None if the key does not exist

        Raises:
            StorageFailureError: On connection errors
            CorruptedRecordError: If the stored value is not valid JSON
        """
        try:
            data = self.redis.get(self._make_key(key))
        except RedisError as e:
            raise StorageFailureError(f"Error getting JSON data for key {key}: {e}", e) from e

        if data is None:
            return None

        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptedRecordError(f"Corrupted JSON data for key {key}: {e}", e) from e

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False if it did not exist
        """
        try:
            return self.redis.delete(self._make_key(key)) > 0
        except RedisError as e:
            raise StorageFailureError(f"Error deleting key {key}: {e}", e) from e

    def get_keys_by_pattern(self, pattern: str) -> List[str]:
        """
        Get all keys matching a pattern, without the repository prefix.

        Uses SCAN so large keyspaces do not block the server.
        """
        try:
            keys = self.redis.scan_iter(match=self._make_key(pattern), count=500)
            decoded = [key.decode("utf-8") if isinstance(key, bytes) else key for key in keys]
        except RedisError as e:
            raise StorageFailureError(f"Error getting keys by pattern {pattern}: {e}", e) from e

        if self.key_prefix:
            prefix_len = len(self.key_prefix) + 1  # +1 for the colon
            return [key[prefix_len:] for key in decoded]
        return decoded


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 max_connections: int = 20, password: Optional[str] = None):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

