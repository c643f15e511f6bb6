"""
Unit tests for the CodeRegistry domain service.

Uses in-memory repositories and a manually advanced clock.
"""

import io
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from dropin.domain.errors import (
    CodeExpiredError,
    CodeNotFoundError,
    CorruptedRecordError,
    StorageFailureError,
)
from dropin.domain.transfer import CodeRegistry, TransferCode
from tests.fixtures import make_file_record


def _store(blob_store, name, data=b"0123456789"):
    blob_store.add_blob(name, data)
    return make_file_record(name, size=len(data))


class TestCodeRegistryCreate:

    def test_create_issues_five_char_code(self, registry, blob_store):
        group = registry.create([_store(blob_store, "1-1-a.txt")])

        assert len(group.code) == 5
        assert TransferCode.parse(group.code).value == group.code

    def test_create_uses_ttl_and_clock(self, registry, blob_store, clock):
        group = registry.create([_store(blob_store, "1-1-a.txt")], ttl=timedelta(minutes=10))

        assert group.created_at == clock.now
        assert group.expires_at == clock.now + timedelta(minutes=10)

    def test_collision_retries_with_new_code(self, group_repository, blob_store, clock):
        codes = iter([TransferCode("AAAAA"), TransferCode("AAAAA"), TransferCode("BBBBB")])
        registry = CodeRegistry(group_repository, blob_store, clock=clock,
                                code_factory=lambda: next(codes))

        first = registry.create([_store(blob_store, "1-1-a.txt")])
        second = registry.create([_store(blob_store, "2-2-b.txt")])

        assert first.code == "AAAAA"
        assert second.code == "BBBBB"
        # The first group is untouched by the colliding attempt
        assert group_repository.get("AAAAA").stored_names == ["1-1-a.txt"]

    def test_exhausted_attempts_raise_storage_failure(self, group_repository, blob_store, clock):
        registry = CodeRegistry(group_repository, blob_store, clock=clock, max_attempts=3,
                                code_factory=lambda: TransferCode("AAAAA"))
        registry.create([_store(blob_store, "1-1-a.txt")])

        with pytest.raises(StorageFailureError):
            registry.create([_store(blob_store, "2-2-b.txt")])
        assert len(group_repository.get_calls("add_if_absent")) == 4

    def test_repository_failure_propagates(self, blob_store, clock):
        repo = Mock()
        repo.add_if_absent.side_effect = StorageFailureError("disk gone")
        registry = CodeRegistry(repo, blob_store, clock=clock)

        with pytest.raises(StorageFailureError):
            registry.create([make_file_record()])


class TestCodeRegistryLookup:

    def test_lookup_live_is_case_insensitive(self, registry, blob_store):
        group = registry.create([_store(blob_store, "1-1-a.txt")])

        assert registry.lookup_live(f"  {group.code.lower()} ") == group

    def test_unknown_code_not_found(self, registry):
        with pytest.raises(CodeNotFoundError):
            registry.lookup_live("ZZZZZ")

    @pytest.mark.parametrize("raw", ["", "ab", "../../etc/passwd", "A" * 40])
    def test_malformed_code_not_found(self, registry, raw):
        with pytest.raises(CodeNotFoundError):
            registry.lookup_live(raw)

    def test_live_until_expiry_instant(self, registry, blob_store, clock):
        group = registry.create([_store(blob_store, "1-1-a.txt")], ttl=timedelta(hours=1))

        clock.advance(minutes=59, seconds=59)
        assert registry.lookup_live(group.code) == group

        clock.advance(seconds=1)
        with pytest.raises(CodeExpiredError):
            registry.lookup_live(group.code)

    def test_expired_lookup_deletes_row_and_blobs(self, registry, blob_store, group_repository, clock):
        group = registry.create([_store(blob_store, "1-1-a.txt"), _store(blob_store, "2-2-b.txt")])
        clock.advance(hours=2)

        with pytest.raises(CodeExpiredError):
            registry.lookup_live(group.code)

        assert group_repository.get(group.code) is None
        assert blob_store.stored_names() == []
        # Subsequent lookups see an unknown code
        with pytest.raises(CodeNotFoundError):
            registry.lookup_live(group.code)

    def test_cleanup_failure_still_reports_expired(self, group_repository, clock):
        blob_store = Mock()
        blob_store.delete.side_effect = RuntimeError("unexpected")
        registry = CodeRegistry(group_repository, blob_store, clock=clock)
        group = registry.create([make_file_record()])
        clock.advance(hours=2)

        with pytest.raises(CodeExpiredError):
            registry.lookup_live(group.code)


class TestCodeRegistryDeleteGroup:

    def test_delete_removes_row_before_blobs(self, group_repository, clock):
        events = []
        blob_store = Mock()
        blob_store.delete.side_effect = lambda name: events.append(("blob", name)) or True
        registry = CodeRegistry(group_repository, blob_store, clock=clock)
        group = registry.create([make_file_record("1-1-a.txt")])

        original_delete = group_repository.delete

        def tracking_delete(code):
            events.append(("row", code))
            return original_delete(code)

        group_repository.delete = tracking_delete

        assert registry.delete_group(group.code) is True
        assert events == [("row", group.code), ("blob", "1-1-a.txt")]

    def test_delete_is_idempotent(self, registry, blob_store):
        group = registry.create([_store(blob_store, "1-1-a.txt")])

        assert registry.delete_group(group.code) is True
        assert registry.delete_group(group.code) is False
        assert blob_store.stored_names() == []

    def test_blob_failure_does_not_abort_delete(self, group_repository, clock):
        blob_store = Mock()
        blob_store.delete.side_effect = [StorageFailureError("busy"), True]
        registry = CodeRegistry(group_repository, blob_store, clock=clock)
        group = registry.create([make_file_record("1-1-a"), make_file_record("2-2-b")])

        assert registry.delete_group(group.code) is True
        assert blob_store.delete.call_count == 2
        assert group_repository.get(group.code) is None

    def test_unreadable_row_is_still_deleted(self, registry, blob_store, group_repository):
        group = registry.create([_store(blob_store, "1-1-a.txt")])

        with patch.object(group_repository, "get", side_effect=CorruptedRecordError("bad json")):
            assert registry.delete_group(group.code) is True

        assert group.code not in group_repository.list_codes()

    def test_referenced_blobs(self, registry, blob_store):
        registry.create([_store(blob_store, "1-1-a"), _store(blob_store, "2-2-b")])
        registry.create([_store(blob_store, "3-3-c")])

        assert registry.referenced_blobs() == {"1-1-a", "2-2-b", "3-3-c"}

    def test_referenced_blobs_skips_unreadable_rows(self, registry, blob_store, group_repository):
        good = registry.create([_store(blob_store, "1-1-a")])
        bad = registry.create([_store(blob_store, "2-2-b")])
        original = group_repository.get

        def flaky_get(code):
            if code == bad.code:
                raise CorruptedRecordError("bad json")
            return original(code)

        with patch.object(group_repository, "get", side_effect=flaky_get):
            assert registry.referenced_blobs() == set(good.stored_names)
