"""Error classification codes.

Any hashable value with consistent ``==`` works as a code, StrEnum members included.
StringCode and IntCode are the ready-made variants.

Example:
    >>> NotFound = StringCode("not_found")
    >>> NotFound == StringCode("not_found")
    True
    >>> IntCode(404) == StringCode("404")
    False
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Final, TypeAlias

Code: TypeAlias = Hashable


@dataclass(frozen=True, slots=True)
class StringCode:
    """String-backed code. Equal only to StringCodes with the same value."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class IntCode:
    """Integer-backed code (HTTP status, exit code, ...)."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


class _NoCode:
    """Sentinel for "no node in the chain carries a code"."""

    __slots__ = ()

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CODE"

    def __reduce__(self) -> str:
        return "NO_CODE"


NO_CODE: Final = _NoCode()
