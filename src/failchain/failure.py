"""Chain nodes and their constructors.

A Failure is one sealed node: an optional code, the wrapped inner error, the
decorations its options produced, and the call stack captured when it was
built. Nodes are append-only; wrapping never touches the wrapped value.

Constructors:
- new(code, *opts): chain root, classification required
- wrap(err, *opts): decorate without reclassifying (None in, None out)
- translate(err, code, *opts): reclassify from this point outward
- unexpected(msg, *opts): unclassified error, built through the wrap path

Example:
    >>> NotFound, Forbidden = StringCode("not_found"), StringCode("forbidden")
    >>> e1 = new(NotFound, Debug(id="42"))
    >>> e2 = translate(e1, Forbidden, Message("no access"))
    >>> code_of(e2) == Forbidden and is_code(e2, NotFound)
    True
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from types import MappingProxyType
from typing import Any, overload

from .callstack import EMPTY_CALLSTACK, CallStack, callers
from .codes import Code
from .options import collect


class Failure(Exception):
    """Immutable chain node. Raise it, return it, or wrap it again.

    ``__cause__`` mirrors ``inner`` so interpreter tracebacks show the chain.
    """

    __slots__ = ("_code", "_inner", "_call_stack", "_message", "_debugs", "_markers")

    def __init__(
        self,
        code: Code | None = None,
        inner: BaseException | None = None,
        *,
        message: str = "",
        debugs: Iterable[Mapping[str, Any]] = (),
        markers: Iterable[Hashable] = (),
        call_stack: CallStack = EMPTY_CALLSTACK,
    ) -> None:
        super().__init__(message)
        self._code = code
        self._inner = inner
        self._message = message
        # sealed copies; a custom option may hand over a dict it still owns
        self._debugs = tuple(MappingProxyType(dict(d)) for d in debugs)
        self._markers = frozenset(markers)
        self._call_stack = call_stack
        if inner is not None:
            self.__cause__ = inner

    @property
    def code(self) -> Code | None:
        return self._code

    @property
    def inner(self) -> BaseException | None:
        return self._inner

    @property
    def call_stack(self) -> CallStack:
        return self._call_stack

    @property
    def message(self) -> str:
        return self._message

    @property
    def debugs(self) -> tuple[Mapping[str, Any], ...]:
        return self._debugs

    @property
    def markers(self) -> frozenset[Hashable]:
        return self._markers

    def unwrap(self) -> BaseException | None:
        return self._inner

    def __str__(self) -> str:
        parts = [self._call_stack.head_function(), self._message]
        if self._code is not None:
            parts.append(f"code({self._code})")
        if self._inner is not None:
            parts.append(str(self._inner) or type(self._inner).__name__)
        return ": ".join(p for p in parts if p)

    def __repr__(self) -> str:
        return f"Failure(code={self._code!r}, message={self._message!r}, inner={self._inner!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        # mappingproxy bags don't pickle
        return (_restore, (self._code, self._inner, self._message,
                           [dict(d) for d in self._debugs], tuple(self._markers), self._call_stack))


def _restore(code: Code | None, inner: BaseException | None, message: str,
             debugs: list[dict[str, Any]], markers: tuple[Hashable, ...], call_stack: CallStack) -> Failure:
    return Failure(code, inner, message=message, debugs=debugs, markers=markers, call_stack=call_stack)


class UnexpectedError(Exception):
    """Unclassified leaf created by unexpected()."""


def _build(code: Code | None, inner: BaseException | None, options: Iterable[object]) -> BaseException:
    """Seal a node; must be called directly from a public constructor."""
    acc = collect(options)
    # _build -> constructor -> application call site
    stack = callers(2 + acc.skip)
    err: BaseException = Failure(
        code,
        inner,
        message=acc.message,
        debugs=acc.debugs,
        markers=acc.markers,
        call_stack=stack,
    )
    for w in acc.wrappers:
        err = w.wrap_error(err)
    return err


def new(code: Code, *options: object) -> BaseException:
    """Create a chain root classified by ``code``.

    Raises:
        ValueError: code is None (decorating without a code goes through wrap)
    """
    if code is None:
        raise ValueError("new() requires a code; use wrap() to decorate without classifying")
    return _build(code, None, options)


@overload
def wrap(err: None, *options: object) -> None: ...
@overload
def wrap(err: BaseException, *options: object) -> BaseException: ...


def wrap(err: BaseException | None, *options: object) -> BaseException | None:
    """Wrap ``err`` in a new node that inherits its classification.

    ``return wrap(err)`` is safe when err is None: None propagates.
    """
    if err is None:
        return None
    return _build(None, err, options)


@overload
def translate(err: None, code: Code, *options: object) -> None: ...
@overload
def translate(err: BaseException, code: Code, *options: object) -> BaseException: ...


def translate(err: BaseException | None, code: Code, *options: object) -> BaseException | None:
    """Wrap ``err`` and reclassify as ``code``; deeper codes stay visible to is_code()."""
    if err is None:
        return None
    if code is None:
        raise ValueError("translate() requires a code; use wrap() to keep the inner classification")
    return _build(code, err, options)


def unexpected(message: str, *options: object) -> BaseException:
    """Unclassified error for states that should not happen."""
    return _build(None, UnexpectedError(message), options)

