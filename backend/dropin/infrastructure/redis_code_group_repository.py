"""
Redis Code Group Repository Implementation

Concrete Redis-based implementation of CodeGroupRepository.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from dropin.domain.errors import CorruptedRecordError
from dropin.domain.transfer.entities import CodeGroup, utcnow
from dropin.domain.transfer.repositories import CodeGroupRepository

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class RedisCodeGroupRepository(CodeGroupRepository):
    """
    Redis-based implementation of CodeGroupRepository.

    Each group is one JSON value under ``code_group:{CODE}`` written with
    SET NX, which makes code reservation atomic across processes.

    The Redis TTL outlives the group's own expiry by a grace period so
    that expired codes still answer "expired" rather than "not found",
    and so the sweeper gets a chance to delete their blobs. Keys that
    Redis drops on its own leave orphan blobs behind for the orphan scan.
    """

    def __init__(self, redis_repository: RedisRepository, grace_seconds: int = 7200,
                 clock: Callable[[], datetime] = utcnow):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance
            grace_seconds: Extra key lifetime after the group expires
            clock: Returns the current UTC time
        """
        self.redis_repo = redis_repository
        self.grace_seconds = grace_seconds
        self.clock = clock
        self.key_prefix = "code_group"

    def _key(self, code: str) -> str:
        return f"{self.key_prefix}:{code}"

    def add_if_absent(self, group: CodeGroup) -> bool:
        remaining = group.get_remaining_seconds(self.clock())
        if remaining <= 0:
            raise ValueError(f"Refusing to store already expired group {group.code}")

        redis_ttl = remaining + self.grace_seconds
        return self.redis_repo.set_json(
            self._key(group.code), group.to_dict(), ttl=redis_ttl, only_if_absent=True
        )

    def get(self, code: str) -> Optional[CodeGroup]:
        data = self.redis_repo.get_json(self._key(code))
        if data is None:
            return None

        try:
            return CodeGroup.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptedRecordError(f"Corrupted metadata for code {code}: {e}", e) from e

    def delete(self, code: str) -> bool:
        return self.redis_repo.delete(self._key(code))

    def list_codes(self) -> List[str]:
        prefix = f"{self.key_prefix}:"
        keys = self.redis_repo.get_keys_by_pattern(f"{prefix}*")
        return sorted(key[len(prefix):] for key in keys if key.startswith(prefix))

    def is_available(self) -> bool:
        try:
            return bool(self.redis_repo.redis.ping())
        except Exception:
            return False
