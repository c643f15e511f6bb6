"""
Blob Store Interface

Abstract interface for storing and reading the raw bytes of uploaded files.
The domain layer stays infrastructure-agnostic by depending only on this
contract (local filesystem, object storage, ...).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Iterator, List, Optional

CHUNK_SIZE = 64 * 1024


class BlobStream:
    """
    A readable, possibly partial, view of one stored blob.

    Yields exactly ``length`` bytes starting at ``start`` and closes the
    underlying handle when exhausted, when closed, or when iteration is
    abandoned.
    """

    def __init__(self, handle: BinaryIO, start: int, end: int, total_size: int,
                 chunk_size: int = CHUNK_SIZE):
        self._handle = handle
        self.start = start
        self.end = end
        self.total_size = total_size
        self._chunk_size = chunk_size

    @property
    def length(self) -> int:
        return self.end - self.start + 1 if self.total_size else 0

    def __iter__(self) -> Iterator[bytes]:
        try:
            self._handle.seek(self.start)
            remaining = self.length
            while remaining > 0:
                chunk = self._handle.read(min(self._chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk
        finally:
            self.close()

    def read(self) -> bytes:
        """Read the whole view into memory."""
        return b"".join(self)

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> "BlobStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class BlobInfo:
    """Listing entry used by the orphan scan."""
    stored_name: str
    size_bytes: int
    modified_at: datetime


class BlobStore(ABC):
    """
    Unified interface for blob storage operations.

    Contract Guarantees:
    - put() never overwrites an existing blob
    - open_read() raises StoredFileNotFoundError for unknown names
    - delete() succeeds even if the blob doesn't exist (idempotent)
    - I/O failures surface as StorageFailureError
    """

    @abstractmethod
    def put(self, content: BinaryIO, suggested_name: str) -> str:
        """
        Write a payload under a new, collision-resistant name.

        Args:
            content: Binary file content, positioned at its start
            suggested_name: User-supplied name, used as a readable suffix

        Returns:
            The stored name

        Raises:
            StorageFailureError: If the write fails; no partial blob remains
        """
        pass  # pragma: no cover

    @abstractmethod
    def open_read(self, stored_name: str, range_start: Optional[int] = None,
                  range_end: Optional[int] = None) -> BlobStream:
        """
        Open a stream over a blob or an inclusive byte range of it.

        Args:
            stored_name: Name returned by put()
            range_start: First byte offset, inclusive
            range_end: Last byte offset, inclusive (defaults to the last byte)

        Returns:
            BlobStream; the caller must consume or close it

        Raises:
            StoredFileNotFoundError: If the blob does not exist
            RangeNotSatisfiableError: If range_start or range_end >= size
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, stored_name: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if a blob was removed, False if it was already absent
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, stored_name: str) -> bool:
        """Check whether a blob exists. Never raises."""
        pass  # pragma: no cover

    @abstractmethod
    def get_size(self, stored_name: str) -> Optional[int]:
        """Size in bytes, or None when the blob does not exist."""
        pass  # pragma: no cover

    @abstractmethod
    def list_blobs(self) -> List[BlobInfo]:
        """Enumerate stored blobs."""
        pass  # pragma: no cover

    def is_available(self) -> bool:
        """Report whether the store accepts writes."""
        return True
