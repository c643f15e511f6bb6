"""
Download Result Value Object

Value object carrying an opened file stream and the metadata a caller
needs to build a full or partial-content response.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from dropin.domain.transfer import BlobStream


@dataclass(frozen=True)
class DownloadResult:
    """
    Result of a single-file download.

    Attributes:
        stream: Opened blob view; the caller must consume or close it
        display_name: Original file name, for Content-Disposition
        content_type: Advisory MIME type recorded at upload
        total_size: Size of the whole file in bytes
        served_range: Inclusive (start, end) when partial, None for full content
    """
    stream: BlobStream
    display_name: str
    content_type: str
    total_size: int
    served_range: Optional[Tuple[int, int]] = None

    @property
    def is_partial(self) -> bool:
        return self.served_range is not None

    @property
    def content_length(self) -> int:
        return self.stream.length

    @property
    def content_range(self) -> Optional[str]:
        """Value for the Content-Range header of a 206 response."""
        if self.served_range is None:
            return None
        start, end = self.served_range
        return f"bytes {start}-{end}/{self.total_size}"
