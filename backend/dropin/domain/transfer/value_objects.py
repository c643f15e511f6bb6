"""
Transfer Value Objects

Immutable value objects for share codes and byte ranges.
"""

import secrets
import string
from dataclasses import dataclass
from typing import Optional, Tuple

from dropin.domain.errors import RangeNotSatisfiableError

# Uppercase letters and digits without the look-alikes 0/O and 1/I
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 12

_CODE_CHARS = frozenset(string.ascii_uppercase + string.digits)


class InvalidTransferCodeError(ValueError):
    """Raised when a string cannot be a share code."""
    pass


@dataclass(frozen=True)
class TransferCode:
    """
    Value object representing a normalized share code.

    Codes are case-insensitive; the canonical form is uppercase with
    surrounding whitespace stripped. Only ASCII letters and digits are
    accepted so a code is always safe to use as a storage key.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidTransferCodeError(f"Invalid share code: {self.value!r}")

    def _is_valid(self) -> bool:
        if not self.value or not isinstance(self.value, str):
            return False
        if not MIN_CODE_LENGTH <= len(self.value) <= MAX_CODE_LENGTH:
            return False
        return all(c in _CODE_CHARS for c in self.value)

    @classmethod
    def parse(cls, raw: str) -> "TransferCode":
        """
        Normalize user input into a code.

        Raises:
            InvalidTransferCodeError: If the input is not a well-formed code
        """
        if not isinstance(raw, str):
            raise InvalidTransferCodeError(f"Invalid share code: {raw!r}")
        return cls(raw.strip().upper())

    @classmethod
    def generate(cls, length: int = 5) -> "TransferCode":
        """Generate a random, human-typeable code."""
        return cls("".join(secrets.choice(CODE_ALPHABET) for _ in range(length)))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ByteRange:
    """
    A requested byte range, before it is checked against a file size.

    Three shapes are supported, mirroring the HTTP ``bytes=`` unit:
    ``start-end`` (both inclusive), ``start-`` (open ended, ``end`` is None)
    and ``-suffix`` (the last ``suffix_length`` bytes).
    """
    start: Optional[int] = None
    end: Optional[int] = None
    suffix_length: Optional[int] = None

    def __post_init__(self):
        if self.suffix_length is not None:
            if self.start is not None or self.end is not None:
                raise ValueError("suffix ranges cannot carry start/end")
            if self.suffix_length < 0:
                raise ValueError("suffix length must be non-negative")
            return
        if self.start is None or self.start < 0:
            raise ValueError("range start must be a non-negative integer")
        if self.end is not None and self.end < 0:
            raise ValueError("range end must be a non-negative integer")

    @classmethod
    def suffix(cls, length: int) -> "ByteRange":
        return cls(suffix_length=length)

    def resolve(self, total_size: int) -> Tuple[int, int]:
        """
        Resolve to absolute inclusive offsets ``(start, end)``.

        Explicit ranges must lie entirely inside the file: a start or end
        at or beyond ``total_size`` is unsatisfiable, as is ``start > end``.
        Open-ended and suffix ranges are clamped to the file.

        Raises:
            RangeNotSatisfiableError: If no byte of the file can be served
        """
        if self.suffix_length is not None:
            if self.suffix_length == 0 or total_size == 0:
                raise RangeNotSatisfiableError(
                    f"Suffix range of {self.suffix_length} bytes on {total_size} byte file",
                    total_size,
                )
            return max(0, total_size - self.suffix_length), total_size - 1

        end = total_size - 1 if self.end is None else self.end
        if self.start >= total_size or end >= total_size or self.start > end:
            raise RangeNotSatisfiableError(
                f"Range {self.start}-{self.end} not satisfiable for {total_size} byte file",
                total_size,
            )
        return self.start, end
