"""
Unit tests for RetrievalService.
"""

from datetime import timedelta

import pytest

from dropin.domain.errors import (
    CodeExpiredError,
    CodeNotFoundError,
    RangeNotSatisfiableError,
    StoredFileNotFoundError,
)
from dropin.domain.transfer import ByteRange
from tests.fixtures import make_file_record


@pytest.fixture
def group(registry, blob_store):
    blob_store.add_blob("1-1-report.pdf", b"0123456789")
    blob_store.add_blob("2-2-notes.txt", b"hello")
    return registry.create([
        make_file_record("1-1-report.pdf", size=10, content_type="application/pdf"),
        make_file_record("2-2-notes.txt", size=5),
    ])


class TestListing:

    def test_list_files_in_upload_order(self, retrieval_service, group):
        names = [f.display_name for f in retrieval_service.list_files(group.code)]
        assert names == ["report.pdf", "notes.txt"]

    def test_download_all_returns_group(self, retrieval_service, group):
        assert retrieval_service.download_all(group.code.lower()) == group

    def test_unknown_code(self, retrieval_service):
        with pytest.raises(CodeNotFoundError):
            retrieval_service.get_group("ZZZZZ")

    def test_expired_code(self, retrieval_service, group, clock):
        clock.advance(hours=1)
        with pytest.raises(CodeExpiredError):
            retrieval_service.get_group(group.code)


class TestDownloadOne:

    def test_full_download(self, retrieval_service, group):
        result = retrieval_service.download_one(group.code, "1-1-report.pdf")

        assert result.stream.read() == b"0123456789"
        assert not result.is_partial
        assert result.content_length == 10
        assert result.display_name == "report.pdf"
        assert result.content_type == "application/pdf"
        assert result.content_range is None

    def test_partial_download(self, retrieval_service, group):
        result = retrieval_service.download_one(group.code, "1-1-report.pdf", ByteRange(2, 5))

        assert result.stream.read() == b"2345"
        assert result.is_partial
        assert result.content_length == 4
        assert result.content_range == "bytes 2-5/10"

    def test_suffix_download(self, retrieval_service, group):
        result = retrieval_service.download_one(group.code, "1-1-report.pdf", ByteRange.suffix(3))

        assert result.stream.read() == b"789"
        assert result.content_range == "bytes 7-9/10"

    def test_unsatisfiable_range(self, retrieval_service, group, blob_store):
        with pytest.raises(RangeNotSatisfiableError) as exc_info:
            retrieval_service.download_one(group.code, "1-1-report.pdf", ByteRange(5, 1000))

        assert exc_info.value.total_size == 10
        assert blob_store.get_calls("open_read") == []

    def test_file_not_in_group(self, retrieval_service, group, blob_store):
        blob_store.add_blob("9-9-other.txt", b"secret")

        with pytest.raises(StoredFileNotFoundError):
            retrieval_service.download_one(group.code, "9-9-other.txt")

    def test_missing_blob(self, retrieval_service, group, blob_store):
        blob_store.delete("2-2-notes.txt")

        with pytest.raises(StoredFileNotFoundError):
            retrieval_service.download_one(group.code, "2-2-notes.txt")
        with pytest.raises(StoredFileNotFoundError):
            retrieval_service.download_one(group.code, "2-2-notes.txt", ByteRange(0, 1))

    def test_expired_code_never_serves_bytes(self, retrieval_service, group, clock, blob_store):
        clock.advance(hours=1, seconds=1)

        with pytest.raises(CodeExpiredError):
            retrieval_service.download_one(group.code, "1-1-report.pdf")
        assert blob_store.get_calls("open_read") == []
