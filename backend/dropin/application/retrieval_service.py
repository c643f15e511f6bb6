"""
Retrieval Service

Application service answering code lookups and opening file streams for
live groups.
"""

import logging
from typing import List, Optional

from dropin.domain.errors import StoredFileNotFoundError
from dropin.domain.transfer import BlobStore, ByteRange, CodeGroup, CodeRegistry, FileRecord

from .download_result import DownloadResult

logger = logging.getLogger(__name__)


class RetrievalService:
    """Read side of the transfer workflow."""

    def __init__(self, registry: CodeRegistry, blob_store: BlobStore):
        self.registry = registry
        self.blob_store = blob_store

    def get_group(self, code: str) -> CodeGroup:
        """
        Raises:
            CodeNotFoundError: If the code is unknown
            CodeExpiredError: If the code has expired (and is now cleaned up)
        """
        return self.registry.lookup_live(code)

    def list_files(self, code: str) -> List[FileRecord]:
        return list(self.get_group(code).files)

    def download_all(self, code: str) -> CodeGroup:
        """
        Metadata for fetching every file of a group one by one.

        Bundling into an archive is left to the caller.
        """
        return self.get_group(code)

    def download_one(self, code: str, stored_name: str,
                     byte_range: Optional[ByteRange] = None) -> DownloadResult:
        """
        Open one file of a live group, optionally a byte range of it.

        Args:
            code: Share code (any case)
            stored_name: Stored name of a file in the group
            byte_range: Requested range, None for the full file

        Returns:
            DownloadResult with an open stream

        Raises:
            CodeNotFoundError, CodeExpiredError: From the registry
            StoredFileNotFoundError: If the file is not in the group or its blob is gone
            RangeNotSatisfiableError: If the range lies outside the file
        """
        group = self.registry.lookup_live(code)

        record = group.find_file(stored_name)
        if record is None:
            raise StoredFileNotFoundError(f"File {stored_name!r} is not part of code {group.code}")

        if byte_range is None:
            stream = self.blob_store.open_read(record.stored_name)
            return DownloadResult(
                stream=stream,
                display_name=record.display_name,
                content_type=record.content_type,
                total_size=stream.total_size,
            )

        # Resolve against the blob's real size, not the recorded one
        total_size = self.blob_store.get_size(record.stored_name)
        if total_size is None:
            raise StoredFileNotFoundError(f"Blob missing for {record.stored_name}")

        start, end = byte_range.resolve(total_size)
        stream = self.blob_store.open_read(record.stored_name, start, end)
        logger.debug(f"Serving bytes {start}-{end}/{total_size} of {record.stored_name}")
        return DownloadResult(
            stream=stream,
            display_name=record.display_name,
            content_type=record.content_type,
            total_size=stream.total_size,
            served_range=(stream.start, stream.end),
        )
