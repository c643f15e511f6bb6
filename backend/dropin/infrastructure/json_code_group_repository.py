"""
JSON File Code Group Repository

Registry backend keeping one ``{CODE}.json`` sidecar per code group in a
metadata directory. Needs no server, which makes it the default backend
for single-node deployments.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from dropin.domain.errors import CorruptedRecordError, StorageFailureError
from dropin.domain.transfer.entities import CodeGroup
from dropin.domain.transfer.repositories import CodeGroupRepository
from dropin.domain.transfer.value_objects import InvalidTransferCodeError, TransferCode

logger = logging.getLogger(__name__)

SUFFIX = ".json"


class JsonFileCodeGroupRepository(CodeGroupRepository):
    """
    File-per-code implementation of CodeGroupRepository.

    Creation writes the full document to a temporary file and hard-links it
    to its final name. link() fails when the name exists, which gives an
    atomic check-and-insert, and readers never see a half-written document.
    """

    def __init__(self, metadata_dir: str = "/tmp/dropin/metadata"):
        """
        Initialize the repository.

        Args:
            metadata_dir: Directory for the JSON sidecars (created if missing)
        """
        self.metadata_dir = Path(metadata_dir)
        try:
            self.metadata_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailureError(
                f"Failed to create metadata directory: {self.metadata_dir}", e
            ) from e

    def _path_for(self, code: str) -> Optional[Path]:
        try:
            normalized = TransferCode(code).value
        except InvalidTransferCodeError:
            return None
        return self.metadata_dir / f"{normalized}{SUFFIX}"

    def add_if_absent(self, group: CodeGroup) -> bool:
        target = self._path_for(group.code)
        if target is None:
            raise ValueError(f"Invalid share code: {group.code!r}")

        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=SUFFIX, dir=self.metadata_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(group.to_dict(), tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.link(tmp_name, target)
            return True
        except FileExistsError:
            return False
        except OSError as e:
            raise StorageFailureError(f"Failed to write code group {group.code}: {e}", e) from e
        finally:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

    def get(self, code: str) -> Optional[CodeGroup]:
        path = self._path_for(code)
        if path is None:
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailureError(f"Failed to read code group {code}: {e}", e) from e
        except json.JSONDecodeError as e:
            raise CorruptedRecordError(f"Corrupted metadata for code {code}: {e}", e) from e

        try:
            return CodeGroup.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptedRecordError(f"Corrupted metadata for code {code}: {e}", e) from e

    def delete(self, code: str) -> bool:
        path = self._path_for(code)
        if path is None:
            return False
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFailureError(f"Failed to delete code group {code}: {e}", e) from e

    def list_codes(self) -> List[str]:
        try:
            names = os.listdir(self.metadata_dir)
        except OSError as e:
            raise StorageFailureError(f"Failed to list metadata directory: {e}", e) from e

        return sorted(
            name[: -len(SUFFIX)]
            for name in names
            if name.endswith(SUFFIX) and not name.startswith(".")
        )

    def is_available(self) -> bool:
        return self.metadata_dir.is_dir() and os.access(self.metadata_dir, os.W_OK)
