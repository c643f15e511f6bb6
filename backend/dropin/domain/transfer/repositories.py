"""
Transfer Repositories

Repository interface for code group persistence (the registry rows).
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import CodeGroup


class CodeGroupRepository(ABC):
    """
    Abstract repository interface for code group persistence.

    Contract Guarantees:
    - add_if_absent() is an atomic check-and-insert: of two concurrent
      inserts under the same code exactly one returns True
    - get() returns expired groups as well; expiry is a domain decision
    - delete() is idempotent and never fails for a missing code
    - Storage I/O failures surface as StorageFailureError
    """

    @abstractmethod
    def add_if_absent(self, group: CodeGroup) -> bool:
        """
        Store a group unless its code is already taken.

        Args:
            group: CodeGroup to store

        Returns:
            True if stored, False if the code is already in use

        Raises:
            StorageFailureError: If the write fails; nothing stays visible
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, code: str) -> Optional[CodeGroup]:
        """
        Retrieve a group by code.

        Args:
            code: Normalized share code

        Returns:
            CodeGroup if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, code: str) -> bool:
        """
        Delete a group.

        Args:
            code: Normalized share code

        Returns:
            True if a row was removed, False if it was already absent
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_codes(self) -> List[str]:
        """
        Enumerate every stored code, live or expired.

        Returns:
            List of codes
        """
        pass  # pragma: no cover

    def is_available(self) -> bool:
        """Report whether the backing store is reachable."""
        return True
