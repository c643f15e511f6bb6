"""
Transfer Domain

Handles code-keyed file shares: code issuance, TTL expiry and blob access.
"""

from .entities import CodeGroup, FileRecord, utcnow
from .repositories import CodeGroupRepository
from .services import CodeRegistry, ExpirySweeper, SweepReport
from .storage_repository import BlobInfo, BlobStore, BlobStream
from .value_objects import ByteRange, InvalidTransferCodeError, TransferCode

__all__ = [
    "BlobInfo",
    "BlobStore",
    "BlobStream",
    "ByteRange",
    "CodeGroup",
    "CodeGroupRepository",
    "CodeRegistry",
    "ExpirySweeper",
    "FileRecord",
    "InvalidTransferCodeError",
    "SweepReport",
    "TransferCode",
    "utcnow",
]
