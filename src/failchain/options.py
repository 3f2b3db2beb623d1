"""Decorations applied to a chain node at construction time.

An option is anything with ``apply(acc)``: it mutates the Decorations accumulator
before the node is sealed. Options run left-to-right in the order given.

Built-ins:
- Message / messagef: the node message (singular, later wins)
- Debug: one debug bag (cumulative, never merged with other bags)
- Marker: an opaque capability consumers test with has_marker()
- CallerSkip: omit extra frames when a helper constructs errors for its caller

Arguments implementing only ``wrap_error(err)`` (the Wrapper capability) are
deferred and wrap the sealed node from the outside.

Example:
    >>> TEMPORARY = "temporary"
    >>> err = new(NotFound, Message("user missing"), Debug(user_id=42), Marker(TEMPORARY))
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable


@dataclass(slots=True)
class Decorations:
    """Mutable accumulator that options write into before a node is sealed."""

    message: str = ""
    debugs: list[Mapping[str, Any]] = field(default_factory=list)
    markers: list[Hashable] = field(default_factory=list)
    skip: int = 0
    wrappers: list[Wrapper] = field(default_factory=list)

    def add_debug(self, bag: Mapping[str, Any]) -> None:
        self.debugs.append(bag)

    def add_marker(self, marker: Hashable) -> None:
        if marker not in self.markers:
            self.markers.append(marker)


@runtime_checkable
class Option(Protocol):
    """Deferred mutation of a node's decorations."""

    def apply(self, acc: Decorations) -> None: ...


@runtime_checkable
class Wrapper(Protocol):
    """Produces a new error around a given inner error."""

    def wrap_error(self, err: BaseException) -> BaseException: ...


@dataclass(frozen=True, slots=True)
class Message:
    """Set the node message, overwriting any earlier Message."""

    text: str

    def apply(self, acc: Decorations) -> None:
        acc.message = self.text


def messagef(fmt: str, /, *args: Any, **kwargs: Any) -> Message:
    """Message formatted eagerly with str.format."""
    return Message(fmt.format(*args, **kwargs))


class Debug:
    """Attach one read-only debug bag.

    Accepts a mapping, keyword fields, or both (keywords win on collision):
        >>> Debug({"id": "42"}, attempt=2).fields
        mappingproxy({'id': '42', 'attempt': 2})
    """

    __slots__ = ("fields",)

    def __init__(self, mapping: Mapping[str, Any] | None = None, /, **fields: Any) -> None:
        merged = dict(mapping) if mapping else {}
        merged.update(fields)
        if bad := [k for k in merged if not isinstance(k, str)]:
            raise TypeError(f"Debug keys must be str, got {bad!r}")
        self.fields: Mapping[str, Any] = MappingProxyType(merged)

    def apply(self, acc: Decorations) -> None:
        acc.add_debug(self.fields)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Debug) and dict(self.fields) == dict(other.fields)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Debug({dict(self.fields)!r})"


@dataclass(frozen=True, slots=True)
class Marker:
    """Attach an opaque marker; duplicates at one node collapse."""

    identity: Hashable

    def apply(self, acc: Decorations) -> None:
        acc.add_marker(self.identity)


@dataclass(frozen=True, slots=True)
class CallerSkip:
    """Skip extra frames at capture so the stack starts at the helper's caller."""

    frames: int = 1

    def __post_init__(self) -> None:
        if self.frames < 0:
            raise ValueError(f"CallerSkip frames must be >= 0, got {self.frames}")

    def apply(self, acc: Decorations) -> None:
        acc.skip += self.frames


def collect(options: Iterable[object]) -> Decorations:
    """Run options in order into a fresh accumulator.

    Raises:
        TypeError: An argument is neither an Option nor a Wrapper
    """
    acc = Decorations()
    for opt in options:
        if isinstance(opt, Option):
            opt.apply(acc)
        elif isinstance(opt, Wrapper):
            acc.wrappers.append(opt)
        else:
            raise TypeError(f"Expected an option or wrapper, got {type(opt).__name__}: {opt!r}")
    return acc
