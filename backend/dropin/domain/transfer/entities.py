"""
Transfer Entities

Domain entities for code-keyed file shares.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple


def utcnow() -> datetime:
    """Timezone-aware current UTC time; the default application clock."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata of one uploaded file.

    Immutable after creation and owned by the CodeGroup that created it.
    """
    stored_name: str
    display_name: str
    content_type: str
    size_bytes: int

    def __post_init__(self):
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative, got {self.size_bytes}")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "stored_name": self.stored_name,
            "display_name": self.display_name,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileRecord":
        """Create FileRecord from dictionary."""
        return cls(
            stored_name=data["stored_name"],
            display_name=data["display_name"],
            content_type=data["content_type"],
            size_bytes=int(data["size_bytes"]),
        )


@dataclass(frozen=True)
class CodeGroup:
    """
    Entity representing one upload batch reachable through a share code.

    The file list is fixed at creation; a group is never extended.
    """
    code: str
    created_at: datetime
    expires_at: datetime
    files: Tuple[FileRecord, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        code: str,
        files: List[FileRecord],
        ttl: timedelta,
        now: Optional[datetime] = None,
    ) -> "CodeGroup":
        """
        Factory method to create a new group.

        Args:
            code: Normalized share code
            files: Non-empty list of file records, in upload order
            ttl: Time to live
            now: Creation time (defaults to the current UTC time)

        Returns:
            New CodeGroup instance
        """
        if not files:
            raise ValueError("A code group needs at least one file")
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")

        created_at = now or utcnow()
        return cls(
            code=code,
            created_at=created_at,
            expires_at=created_at + ttl,
            files=tuple(files),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A group is expired from its expiry instant onwards."""
        return (now or utcnow()) >= self.expires_at

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 if expired)
        """
        remaining = self.expires_at - (now or utcnow())
        return max(0, int(remaining.total_seconds()))

    def find_file(self, stored_name: str) -> Optional[FileRecord]:
        for record in self.files:
            if record.stored_name == stored_name:
                return record
        return None

    @property
    def stored_names(self) -> List[str]:
        return [record.stored_name for record in self.files]

    @property
    def total_size(self) -> int:
        return sum(record.size_bytes for record in self.files)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "files": [record.to_dict() for record in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CodeGroup":
        """Create CodeGroup from dictionary."""
        return cls(
            code=data["code"],
            created_at=_parse_timestamp(data["created_at"]),
            expires_at=_parse_timestamp(data["expires_at"]),
            files=tuple(FileRecord.from_dict(item) for item in data["files"]),
        )


def _parse_timestamp(value: str) -> datetime:
    # Naive timestamps are read as UTC
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
