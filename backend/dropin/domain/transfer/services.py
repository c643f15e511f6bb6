"""
Transfer Services

Domain services for the code registry and its expiry sweep.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from dropin.domain.errors import (
    CodeExpiredError,
    CodeNotFoundError,
    CorruptedRecordError,
    StorageFailureError,
)

from .entities import CodeGroup, FileRecord, utcnow
from .repositories import CodeGroupRepository
from .storage_repository import BlobStore
from .value_objects import InvalidTransferCodeError, TransferCode

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)


class CodeRegistry:
    """
    Domain service mapping share codes to code groups.

    Coordinates code issuance, liveness checks and cascading deletes.
    Expired groups are removed lazily by lookup_live() or by the sweeper,
    both through the same idempotent delete_group().
    """

    def __init__(
        self,
        group_repository: CodeGroupRepository,
        blob_store: BlobStore,
        clock: Callable[[], datetime] = utcnow,
        code_length: int = 5,
        max_attempts: int = 10,
        code_factory: Optional[Callable[[], TransferCode]] = None,
    ):
        """
        Initialize CodeRegistry.

        Args:
            group_repository: Persistence for registry rows
            blob_store: Store holding the files' bytes
            clock: Returns the current UTC time
            code_length: Length of generated codes
            max_attempts: Code generation attempts before giving up
            code_factory: Overrides random code generation
        """
        self.group_repo = group_repository
        self.blob_store = blob_store
        self.clock = clock
        self.max_attempts = max_attempts
        self._code_factory = code_factory or (lambda: TransferCode.generate(code_length))

    def create(self, files: List[FileRecord], ttl: timedelta = DEFAULT_TTL) -> CodeGroup:
        """
        Register a batch of stored files under a fresh code.

        Args:
            files: Non-empty list of file records, in upload order
            ttl: Time to live of the new group

        Returns:
            The created CodeGroup

        Raises:
            StorageFailureError: If persisting fails or no free code was found
        """
        for attempt in range(1, self.max_attempts + 1):
            code = str(self._code_factory())
            group = CodeGroup.create(code, files, ttl, now=self.clock())

            if self.group_repo.add_if_absent(group):
                logger.info(
                    f"Issued code {code} for {len(files)} file(s), expires {group.expires_at.isoformat()}"
                )
                return group

            logger.debug(f"Code collision on {code} (attempt {attempt}/{self.max_attempts})")

        raise StorageFailureError(
            f"Could not allocate a unique code after {self.max_attempts} attempts"
        )

    def lookup_live(self, code: str) -> CodeGroup:
        """
        Resolve a code to its live group.

        Args:
            code: Share code as typed by the user (any case)

        Returns:
            The live CodeGroup

        Raises:
            CodeNotFoundError: If the code is unknown or malformed
            CodeExpiredError: If the group has expired; it is deleted first
        """
        try:
            normalized = TransferCode.parse(code).value
        except InvalidTransferCodeError:
            raise CodeNotFoundError(f"Code not found: {code!r}")

        group = self.group_repo.get(normalized)
        if group is None:
            raise CodeNotFoundError(f"Code not found: {normalized}")

        if group.is_expired(self.clock()):
            try:
                self.delete_group(normalized)
            except Exception as e:
                # The reader only learns that the code is unusable
                logger.error(f"Cleanup of expired code {normalized} failed: {e}", exc_info=True)
            raise CodeExpiredError(f"Code has expired: {normalized}")

        return group

    def delete_group(self, code: str) -> bool:
        """
        Delete a group's registry row and then all of its blobs.

        Safe to run concurrently and repeatedly for the same code. The row
        goes first so a reader that saw the group live never finds its
        blobs removed before the row.

        Args:
            code: Normalized share code

        Returns:
            True if this call removed the registry row
        """
        try:
            group = self.group_repo.get(code)
        except CorruptedRecordError as e:
            # Blobs of an undecodable row are left to the orphan scan
            logger.warning(f"Deleting unreadable code {code}: {e}")
            group = None

        removed = self.group_repo.delete(code)

        if group is not None:
            for stored_name in group.stored_names:
                try:
                    self.blob_store.delete(stored_name)
                except StorageFailureError as e:
                    logger.warning(f"Failed to delete blob {stored_name} of code {code}: {e}")

        if removed:
            logger.info(f"Deleted code {code}")
        return removed

    def referenced_blobs(self) -> set:
        """Stored names referenced by any registry row, live or expired."""
        names = set()
        for code in self.group_repo.list_codes():
            try:
                group = self.group_repo.get(code)
            except CorruptedRecordError:
                continue
            if group is not None:
                names.update(group.stored_names)
        return names


@dataclass
class SweepReport:
    """Outcome of one sweeper run."""
    scanned: int = 0
    removed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"scanned": self.scanned, "removed": self.removed, "errors": list(self.errors)}


class ExpirySweeper:
    """
    Periodic safety net deleting expired groups.

    Correctness does not depend on it: lookup_live() enforces expiry.
    One failing entry is logged and the sweep continues.
    """

    def __init__(self, registry: CodeRegistry):
        self.registry = registry

    def sweep(self) -> SweepReport:
        report = SweepReport()
        now = self.registry.clock()

        try:
            codes = self.registry.group_repo.list_codes()
        except StorageFailureError as e:
            report.errors.append(f"Could not enumerate registry: {e}")
            logger.error(report.errors[-1])
            return report

        for code in codes:
            report.scanned += 1
            try:
                if not self._is_sweepable(code, now):
                    continue
                self.registry.delete_group(code)
                report.removed += 1
            except Exception as e:
                error_msg = f"Error sweeping code {code}: {e}"
                report.errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        logger.info(
            f"Sweep completed - Scanned: {report.scanned}, Removed: {report.removed}, "
            f"Errors: {len(report.errors)}"
        )
        return report

    def _is_sweepable(self, code: str, now: datetime) -> bool:
        try:
            group = self.registry.group_repo.get(code)
        except CorruptedRecordError:
            # Unreadable rows can never be served again
            return True
        return group is not None and group.is_expired(now)
