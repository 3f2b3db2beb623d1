"""failchain - classified, context-rich error chains with call stacks.

Attach a code, a message, debug context and the originating call stack to an
error, wrap it through as many layers as needed, and query the whole chain at
the boundary where it is finally handled.

Quick Start:
    >>> from failchain import Debug, Message, StringCode, code_of, is_code, new, translate
    >>>
    >>> NotFound = StringCode("not_found")
    >>> Forbidden = StringCode("forbidden")
    >>>
    >>> def load(user_id: str) -> None:
    ...     raise new(NotFound, Debug(id=user_id))
    >>>
    >>> try:
    ...     load("42")
    ... except Exception as e:
    ...     err = translate(e, Forbidden, Message("no access"))
    >>> code_of(err) == Forbidden, is_code(err, NotFound)
    (True, True)

Diagnostics:
    >>> from failchain import call_stack_of, debugs_of, format_failure, report
    >>> print(format_failure(err, verbose=True))
    >>> report(err).model_dump_json()

Foreign errors:
    Any exception exposing ``unwrap()`` (or chained with ``raise ... from``) is
    stepped through during traversal. Any option exposing ``wrap_error(err)``
    wraps the new node from the outside.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Call stacks
from .callstack import (
    EMPTY_CALLSTACK,
    CallStack,
    Frame,
    callers,
    callstack_from_frame,
    callstack_from_summary,
    callstack_from_traceback,
)

# Codes
from .codes import NO_CODE, Code, IntCode, StringCode

# Options
from .options import CallerSkip, Debug, Decorations, Marker, Message, Option, Wrapper, messagef

# Chain nodes
from .failure import Failure, UnexpectedError, new, translate, unexpected, wrap

# Traversal
from .iterator import (
    Iterator,
    Unwrapper,
    call_stack_of,
    cause_of,
    code_of,
    debugs_of,
    has_marker,
    is_code,
    markers_of,
    message_of,
    unwrap_once,
)

# Rendering
from .render import FailureReport, format_failure, log_failure, report

# Settings
from .config import FailchainSettings, clear_settings_cache, get_settings

__all__ = [
    # Call stacks
    "Frame", "CallStack", "EMPTY_CALLSTACK", "callers",
    "callstack_from_frame", "callstack_from_summary", "callstack_from_traceback",
    # Codes
    "Code", "StringCode", "IntCode", "NO_CODE",
    # Options
    "Option", "Wrapper", "Decorations", "Message", "messagef", "Debug", "Marker", "CallerSkip",
    # Chain nodes
    "Failure", "UnexpectedError", "new", "wrap", "translate", "unexpected",
    # Traversal
    "Iterator", "Unwrapper", "unwrap_once",
    "code_of", "is_code", "message_of", "debugs_of", "call_stack_of", "cause_of", "markers_of", "has_marker",
    # Rendering
    "FailureReport", "format_failure", "report", "log_failure",
    # Settings
    "FailchainSettings", "get_settings", "clear_settings_cache",
]
