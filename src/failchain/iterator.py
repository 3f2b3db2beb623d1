"""Chain traversal and the accessors built on it.

The Iterator walks from the outermost error to the cause. Each step:
1. Failure node: exposed with its code/message/debug/markers/stack, then ``inner``
2. Anything with ``unwrap()`` (or explicit ``raise ... from`` chaining): stepped through
3. Otherwise: a leaf, exposed and then the walk ends

Every accessor walks the whole chain on its own and is total: passing None
returns the empty answer instead of raising. Cyclic chains are not detected.

Precedence:
- code_of / message_of: outermost non-empty value wins
- is_code / has_marker: any node matches
- debugs_of / call_stack_of: everything, outermost-first
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any, Protocol, runtime_checkable

from .callstack import EMPTY_CALLSTACK, CallStack, Frame, callstack_from_traceback
from .codes import NO_CODE, Code
from .failure import Failure


@runtime_checkable
class Unwrapper(Protocol):
    """Foreign error that exposes its inner error."""

    def unwrap(self) -> BaseException | None: ...


def unwrap_once(err: BaseException | None) -> BaseException | None:
    """One traversal step; None when err is a leaf."""
    if err is None:
        return None
    if isinstance(err, Failure):
        return err.inner
    if isinstance(err, Unwrapper):
        return err.unwrap()
    # implicit __context__ is not part of the chain
    return err.__cause__


class Iterator:
    """Yields every value in a chain, outermost first.

    Example:
        >>> it = Iterator(err)
        >>> for e in it:
        ...     print(type(e).__name__)
        >>> it.current  # the cause once exhausted
    """

    __slots__ = ("_next", "_current")

    def __init__(self, err: BaseException | None) -> None:
        self._next = err
        self._current: BaseException | None = None

    def __iter__(self) -> Iterator:
        return self

    def __next__(self) -> BaseException:
        if self._next is None:
            raise StopIteration
        self._current = self._next
        self._next = unwrap_once(self._current)
        return self._current

    @property
    def current(self) -> BaseException | None:
        """Last value yielded."""
        return self._current

    def failures(self) -> list[Failure]:
        """Drain the remaining chain, keeping only this library's nodes."""
        return [e for e in self if isinstance(e, Failure)]


def code_of(err: BaseException | None) -> Code:
    """Code of the outermost node that has one, else NO_CODE."""
    for e in Iterator(err):
        if isinstance(e, Failure) and e.code is not None:
            return e.code
    return NO_CODE


def is_code(err: BaseException | None, *codes: Code) -> bool:
    """Whether any node in the chain carries one of ``codes``."""
    if not codes:
        return False
    for e in Iterator(err):
        if isinstance(e, Failure) and e.code is not None and e.code in codes:
            return True
    return False


def message_of(err: BaseException | None) -> str:
    """Outermost non-empty message, else ""."""
    for e in Iterator(err):
        if isinstance(e, Failure) and e.message:
            return e.message
    return ""


def debugs_of(err: BaseException | None) -> list[Mapping[str, Any]]:
    """All debug bags, outermost node first, attachment order within a node."""
    return [bag for f in Iterator(err).failures() for bag in f.debugs]


def call_stack_of(err: BaseException | None) -> CallStack:
    """Concatenated stacks across the chain, outermost node first.

    Values other than Failure contribute the frames of their ``__traceback__``.
    """
    frames: list[Frame] = []
    for e in Iterator(err):
        if isinstance(e, Failure):
            frames.extend(e.call_stack)
        elif e.__traceback__ is not None:
            frames.extend(callstack_from_traceback(e.__traceback__))
    return CallStack.model_construct(tuple(frames)) if frames else EMPTY_CALLSTACK


def cause_of(err: BaseException | None) -> BaseException | None:
    """Terminal value of the chain: the error that started it."""
    it = Iterator(err)
    for _ in it:
        pass
    return it.current


def markers_of(err: BaseException | None) -> frozenset[Hashable]:
    """Union of markers attached anywhere in the chain."""
    return frozenset().union(*(f.markers for f in Iterator(err).failures()))


def has_marker(err: BaseException | None, marker: Hashable) -> bool:
    """Whether any node carries ``marker``."""
    return any(isinstance(e, Failure) and marker in e.markers for e in Iterator(err))
