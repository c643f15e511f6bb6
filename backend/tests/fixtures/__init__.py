"""
Test fixtures package.

Provides in-memory repository implementations and factory helpers for testing.
"""

from .clock import FakeClock
from .mock_repositories import MockBlobStore, MockCodeGroupRepository, make_file_record

__all__ = [
    "FakeClock",
    "MockBlobStore",
    "MockCodeGroupRepository",
    "make_file_record",
]
