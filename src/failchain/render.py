"""Rendering of error chains for terminals, logs and APIs.

Pure functions over the accessors; nothing here changes how chains are built.
- format_failure: one-line or verbose multi-block text
- report: FailureReport, a frozen pydantic model ready for model_dump_json()
- log_failure: hand a chain to a stdlib logger with the report attached

Example:
    >>> print(format_failure(err, verbose=True))
    [0] app.api.get_user
        message: no access
        code: forbidden
        stack:
            [get_user] /srv/app/api.py:31
    [1] app.repo.load
        code: not_found
        debug: id='42'
        ...
    cause: Failure
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .callstack import EMPTY_CALLSTACK, CallStack, callstack_from_traceback
from .codes import NO_CODE
from .config import get_settings
from .failure import Failure
from .iterator import Iterator, call_stack_of, cause_of, code_of, debugs_of, markers_of, message_of

logger = logging.getLogger("failchain")

_JSON_SCALARS = (str, int, float, bool, type(None))


def _jsonable(value: Any) -> Any:
    """Coerce debug values to JSON-native types; anything else becomes its repr."""
    if isinstance(value, _JSON_SCALARS):
        return value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return repr(value)


def _marker_name(marker: Hashable) -> str:
    return getattr(marker, "__qualname__", None) or str(marker)


class FailureReport(BaseModel):
    """Structured snapshot of a chain for serialization."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Failure Report",
            "examples": [{
                "code": "forbidden",
                "message": "no access",
                "debugs": [{"id": "42"}],
                "markers": [],
                "call_stack": [],
                "cause_type": "Failure",
                "cause_message": "load: code(not_found)",
            }],
        },
    )

    code: str | None = Field(default=None, description="Effective code, None when the chain has none")
    message: str = ""
    debugs: tuple[dict[str, Any], ...] = ()
    markers: tuple[str, ...] = ()
    call_stack: CallStack = EMPTY_CALLSTACK
    cause_type: str | None = None
    cause_message: str = ""


def report(err: BaseException | None) -> FailureReport:
    """Collect every accessor's answer into one FailureReport."""
    code = code_of(err)
    cause = cause_of(err)
    return FailureReport(
        code=None if code is NO_CODE else str(code),
        message=message_of(err),
        debugs=tuple(_jsonable(bag) for bag in debugs_of(err)),
        markers=tuple(sorted(_marker_name(m) for m in markers_of(err))),
        call_stack=call_stack_of(err),
        cause_type=type(cause).__qualname__ if cause is not None else None,
        cause_message=str(cause) if cause is not None else "",
    )


def _debug_line(bag: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={v!r}" for k, v in bag.items())


def _stack_lines(stack: CallStack, full_path: bool) -> list[str]:
    if not stack:
        return []
    return ["    stack:", *(f"        {f.format(verbose=True, full_path=full_path)}" for f in stack)]


def format_failure(err: BaseException | None, *, verbose: bool = False) -> str:
    """Render a chain as text.

    Args:
        err: Any error value, None renders as ""
        verbose: One block per chain value with code, message, debug bags and
            frames (as allowed by settings.render) instead of the one-liner

    Returns:
        Rendered text without a trailing newline
    """
    if err is None:
        return ""
    if not verbose:
        return str(err)

    opts = get_settings().render
    lines: list[str] = []
    it = Iterator(err)
    for i, e in enumerate(it):
        if isinstance(e, Failure):
            lines.append(f"[{i}] {e.call_stack[0].function if e.call_stack else '<unknown>'}")
            if e.message:
                lines.append(f"    message: {e.message}")
            if e.code is not None:
                lines.append(f"    code: {e.code}")
            if opts.include_debug:
                lines.extend(f"    debug: {_debug_line(bag)}" for bag in e.debugs)
            if opts.include_stack:
                lines.extend(_stack_lines(e.call_stack, opts.full_paths))
        else:
            lines.append(f"[{i}] {type(e).__qualname__}: {e}")
            if opts.include_stack and e.__traceback__ is not None:
                lines.extend(_stack_lines(callstack_from_traceback(e.__traceback__), opts.full_paths))
    lines.append(f"cause: {type(it.current).__qualname__}")
    return "\n".join(lines)


def log_failure(err: BaseException | None, log: logging.Logger | None = None, level: int = logging.ERROR) -> None:
    """Log the one-line form with ``extra={"failure": <report dict>}``; None is ignored."""
    if err is None:
        return
    (log or logger).log(level, format_failure(err), extra={"failure": report(err).model_dump(mode="json")})
