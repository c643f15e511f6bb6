"""
Upload Service

Application service turning an upload batch into a share code.
Validates the whole batch first, then writes all blobs, then registers the
group; any failure leaves nothing visible through the registry.
"""

import io
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, List, Optional, Sequence

from dropin.domain.errors import (
    EmptyBatchError,
    PayloadTooLargeError,
    StorageFailureError,
    UnsupportedTypeError,
)
from dropin.domain.transfer import BlobStore, CodeGroup, CodeRegistry, FileRecord

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UploadItem:
    """One file of an upload batch, as received from the client."""
    display_name: str
    content_type: Optional[str]
    content: BinaryIO
    size: Optional[int] = None

    @classmethod
    def from_bytes(cls, display_name: str, content_type: Optional[str], data: bytes) -> "UploadItem":
        return cls(display_name, content_type, io.BytesIO(data), len(data))


@dataclass(frozen=True)
class UploadLimits:
    """Ceilings and content filter applied to every batch."""
    max_file_size: int = 100 * 1024 * 1024
    max_batch_size: int = 500 * 1024 * 1024
    max_files: int = 50
    allowed_content_types: Sequence[str] = ()

    @classmethod
    def from_config(cls, config) -> "UploadLimits":
        return cls(
            max_file_size=config.max_file_size,
            max_batch_size=config.max_batch_size,
            max_files=config.max_files_per_batch,
            allowed_content_types=tuple(config.allowed_content_types),
        )


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lowercase MIME type without parameters; octet-stream when missing."""
    if not content_type:
        return DEFAULT_CONTENT_TYPE
    base = content_type.split(";", 1)[0].strip().lower()
    return base or DEFAULT_CONTENT_TYPE


def is_content_type_allowed(content_type: str, allowed: Sequence[str]) -> bool:
    """Match against exact types and ``major/*`` wildcards. Empty allow-list allows all."""
    if not allowed:
        return True
    major = content_type.split("/", 1)[0]
    for pattern in allowed:
        if pattern == content_type or pattern == "*/*":
            return True
        if pattern.endswith("/*") and pattern[:-2] == major:
            return True
    return False


def _measure(stream: BinaryIO) -> int:
    position = stream.tell()
    stream.seek(0, io.SEEK_END)
    size = stream.tell() - position
    stream.seek(position)
    return size


class UploadService:
    """
    Orchestrates Blob Store writes and Registry creation for one batch.
    """

    def __init__(self, registry: CodeRegistry, blob_store: BlobStore,
                 limits: Optional[UploadLimits] = None,
                 ttl: timedelta = timedelta(hours=1)):
        self.registry = registry
        self.blob_store = blob_store
        self.limits = limits or UploadLimits()
        self.ttl = ttl

    def validate(self, items: List[UploadItem]) -> None:
        """
        Check a batch against the limits without side effects.

        Fills in missing item sizes.

        Raises:
            EmptyBatchError: If no files were given
            PayloadTooLargeError: If a file, the batch, or the file count is over the limit
            UnsupportedTypeError: If content filtering rejects a file
        """
        if not items:
            raise EmptyBatchError("No files uploaded")

        if len(items) > self.limits.max_files:
            raise PayloadTooLargeError(
                f"Batch has {len(items)} files, limit is {self.limits.max_files}"
            )

        total = 0
        for item in items:
            if item.size is None:
                item.size = _measure(item.content)

            if item.size > self.limits.max_file_size:
                raise PayloadTooLargeError(
                    f"{item.display_name} is {item.size} bytes, limit is {self.limits.max_file_size}"
                )
            total += item.size

            content_type = normalize_content_type(item.content_type)
            if not is_content_type_allowed(content_type, self.limits.allowed_content_types):
                raise UnsupportedTypeError(f"{item.display_name} has unsupported type {content_type}")

        if total > self.limits.max_batch_size:
            raise PayloadTooLargeError(
                f"Batch is {total} bytes, limit is {self.limits.max_batch_size}"
            )

    def upload(self, items: List[UploadItem]) -> CodeGroup:
        """
        Store a batch and issue its code.

        Args:
            items: Ordered, non-empty list of files

        Returns:
            The created CodeGroup (its code is what the sender shares)

        Raises:
            EmptyBatchError, PayloadTooLargeError, UnsupportedTypeError: On validation
            StorageFailureError: If a blob write or the registry write fails
        """
        self.validate(items)

        records: List[FileRecord] = []
        try:
            for item in items:
                stored_name = self.blob_store.put(item.content, item.display_name)
                records.append(
                    FileRecord(
                        stored_name=stored_name,
                        display_name=item.display_name,
                        content_type=normalize_content_type(item.content_type),
                        size_bytes=item.size,
                    )
                )
            return self.registry.create(records, self.ttl)
        except StorageFailureError:
            self._rollback(records)
            raise
        except Exception as e:
            self._rollback(records)
            raise StorageFailureError(f"Upload failed: {e}", e) from e

    def _rollback(self, records: List[FileRecord]) -> None:
        for record in records:
            try:
                self.blob_store.delete(record.stored_name)
            except Exception as e:
                logger.warning(f"Rollback could not delete blob {record.stored_name}: {e}")
        if records:
            logger.info(f"Rolled back {len(records)} blob(s) of a failed upload")
