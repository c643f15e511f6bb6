"""
Local Blob Store Implementation

Concrete implementation of BlobStore for the local filesystem. Blobs are
flat files inside one directory, named
``{epoch_millis}-{random}-{secure display name}``.
"""

import logging
import os
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, List, Optional

from werkzeug.utils import secure_filename

from dropin.domain.errors import (
    RangeNotSatisfiableError,
    StorageFailureError,
    StoredFileNotFoundError,
)
from dropin.domain.transfer.storage_repository import (
    CHUNK_SIZE,
    BlobInfo,
    BlobStore,
    BlobStream,
)

logger = logging.getLogger(__name__)

MAX_NAME_SUFFIX = 120


class LocalBlobStore(BlobStore):
    """
    Local filesystem implementation of BlobStore.

    Thread Safety:
        Writes use exclusive creation, so two uploads can never share a
        file. Reads open their own handle. No lock is held across I/O.

    Attributes:
        base_path: Directory holding every blob
    """

    def __init__(self, base_path: str = "/tmp/dropin/uploads"):
        """
        Initialize the local blob store.

        Args:
            base_path: Directory for blob storage (created if missing)
        """
        self.base_path = Path(base_path)
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(
                f"Failed to create storage directory: {self.base_path}", e
            ) from e

    def _resolve(self, stored_name: str) -> Optional[Path]:
        """Map a stored name to its path, or None if the name is not one we issue."""
        if not stored_name or stored_name != secure_filename(stored_name):
            return None
        return self.base_path / stored_name

    def _new_name(self, suggested_name: str) -> str:
        safe_name = secure_filename(suggested_name or "")[-MAX_NAME_SUFFIX:] or "file"
        millis = int(time.time() * 1000)
        return f"{millis}-{secrets.randbelow(10**9)}-{safe_name}"

    # BlobStore interface methods

    def put(self, content: BinaryIO, suggested_name: str) -> str:
        """
        Write content to a new blob.

        Exclusive creation guarantees no overwrite; on a name clash a new
        random part is drawn. A failed write removes the partial file.
        """
        for _ in range(5):
            stored_name = self._new_name(suggested_name)
            full_path = self.base_path / stored_name
            try:
                handle = open(full_path, "xb")
            except FileExistsError:
                continue
            except OSError as e:
                raise StorageFailureError(f"Failed to create blob: {e}", e) from e

            try:
                with handle:
                    while True:
                        chunk = content.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        handle.write(chunk)
            except Exception as e:
                full_path.unlink(missing_ok=True)
                raise StorageFailureError(f"Failed to write blob {stored_name}: {e}", e) from e

            return stored_name

        raise StorageFailureError("Could not find a free blob name")

    def open_read(self, stored_name: str, range_start: Optional[int] = None,
                  range_end: Optional[int] = None) -> BlobStream:
        full_path = self._resolve(stored_name)
        if full_path is None:
            raise StoredFileNotFoundError(f"Blob not found: {stored_name!r}")

        try:
            handle = open(full_path, "rb")
        except (FileNotFoundError, IsADirectoryError):
            raise StoredFileNotFoundError(f"Blob not found: {stored_name}")
        except OSError as e:
            raise StorageFailureError(f"Failed to open blob {stored_name}: {e}", e) from e

        try:
            total_size = os.fstat(handle.fileno()).st_size

            if range_start is None and range_end is None:
                return BlobStream(handle, 0, max(total_size - 1, 0), total_size)

            start = 0 if range_start is None else range_start
            end = total_size - 1 if range_end is None else range_end
            if start < 0 or start >= total_size or end >= total_size or start > end:
                raise RangeNotSatisfiableError(
                    f"Range {start}-{end} not satisfiable for {total_size} byte blob",
                    total_size,
                )
            return BlobStream(handle, start, end, total_size)
        except BaseException:
            handle.close()
            raise

    def delete(self, stored_name: str) -> bool:
        full_path = self._resolve(stored_name)
        if full_path is None:
            return False
        try:
            full_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFailureError(f"Failed to delete blob {stored_name}: {e}", e) from e

    def exists(self, stored_name: str) -> bool:
        try:
            full_path = self._resolve(stored_name)
            return full_path is not None and full_path.is_file()
        except OSError:
            return False

    def get_size(self, stored_name: str) -> Optional[int]:
        full_path = self._resolve(stored_name)
        if full_path is None:
            return None
        try:
            return full_path.stat().st_size if full_path.is_file() else None
        except OSError:
            return None

    def list_blobs(self) -> List[BlobInfo]:
        blobs = []
        try:
            entries = list(os.scandir(self.base_path))
        except OSError as e:
            raise StorageFailureError(f"Failed to list blobs: {e}", e) from e

        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                stat = entry.stat()
            except OSError:
                # Deleted between scandir() and stat()
                continue
            blobs.append(
                BlobInfo(
                    stored_name=entry.name,
                    size_bytes=stat.st_size,
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return blobs

    def is_available(self) -> bool:
        return self.base_path.is_dir() and os.access(self.base_path, os.W_OK)
