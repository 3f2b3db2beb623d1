"""Call stack capture and normalization.

Turns interpreter frame metadata into immutable, symbolic call stacks:
- Frame: one entry (path, line, module, qualified function name)
- CallStack: ordered frames, index 0 is the frame that initiated the capture
- callers(): capture from the current call point outward
- callstack_from_*: ingest stacks recorded by other mechanisms (tracebacks,
  StackSummary, raw frames) into the same shape

Capture is bounded by ``settings.capture.max_frames``. Hitting the bound yields a
shorter stack, never an error; nothing resolvable yields EMPTY_CALLSTACK.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, overload

from pydantic import BaseModel, ConfigDict, Field, RootModel, computed_field

from .config import get_settings

if TYPE_CHECKING:
    from traceback import FrameSummary
    from types import CodeType, FrameType, TracebackType

logger = logging.getLogger("failchain.callstack")

# load before the first capture; callers() only reads the cached instance
get_settings()


class Frame(BaseModel):
    """One symbolic stack entry. Frozen; built with model_construct on capture paths."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={"examples": [{"path": "/srv/app/repo.py", "line": 42, "module": "app.repo", "qualname": "Repo.load"}]},
    )

    path: str = Field(description="File path as recorded by the interpreter")
    line: int = Field(ge=0)
    module: str = Field(default="", description="Owning module, empty when unknown")
    qualname: str = Field(description="Qualified name inside the module, e.g. Repo.load")

    @computed_field
    @property
    def function(self) -> str:
        """Fully-qualified name: module.qualname."""
        return f"{self.module}.{self.qualname}" if self.module else self.qualname

    @property
    def file(self) -> str:
        return os.path.basename(self.path)

    @property
    def func(self) -> str:
        """Function name with the module qualifier stripped."""
        return self.qualname

    @property
    def name(self) -> str:
        return self.qualname.rsplit(".", 1)[-1]

    @property
    def pkg(self) -> str:
        return self.module

    def format(self, *, verbose: bool = False, full_path: bool = True) -> str:
        """Render as ``path:line``, prefixed with ``[func]`` when verbose."""
        loc = f"{self.path if full_path else self.file}:{self.line}"
        return f"[{self.func}] {loc}" if verbose else loc

    def __str__(self) -> str:
        return self.format()


class CallStack(RootModel[tuple[Frame, ...]]):
    """Immutable ordered frames, innermost (capture site) first.

    Behaves like a read-only sequence; ``+`` concatenates into a new CallStack.
    """

    model_config = ConfigDict(frozen=True, revalidate_instances="never")

    root: tuple[Frame, ...] = ()

    def __len__(self) -> int:
        return len(self.root)

    def __iter__(self) -> Iterator[Frame]:  # type: ignore[override]
        return iter(self.root)

    def __bool__(self) -> bool:
        return bool(self.root)

    @overload
    def __getitem__(self, item: int) -> Frame: ...
    @overload
    def __getitem__(self, item: slice) -> CallStack: ...

    def __getitem__(self, item: int | slice) -> Frame | CallStack:
        if isinstance(item, slice):
            return CallStack.model_construct(self.root[item])
        return self.root[item]

    def __add__(self, other: CallStack) -> CallStack:
        if not isinstance(other, CallStack):
            return NotImplemented
        if not other.root:
            return self
        if not self.root:
            return other
        return CallStack.model_construct(self.root + other.root)

    @property
    def frames(self) -> tuple[Frame, ...]:
        return self.root

    def head_function(self) -> str:
        """Function that initiated the capture, or empty for an unknown origin."""
        return self.root[0].func if self.root else ""

    def format(self, *, verbose: bool = False, full_path: bool = True) -> str:
        """Short form ``a: b: c`` of function names, or one ``[func] path:line`` per line."""
        if verbose:
            return "\n".join(f.format(verbose=True, full_path=full_path) for f in self.root)
        return ": ".join(f.func for f in self.root)

    def __str__(self) -> str:
        return self.format()


EMPTY_CALLSTACK = CallStack.model_construct(())


def _frame_of(code: CodeType, line: int | None, module: str) -> Frame:
    return Frame.model_construct(
        path=code.co_filename,
        line=line or 0,
        module=module,
        qualname=code.co_qualname,
    )


def _seal(frames: list[Frame]) -> CallStack:
    return CallStack.model_construct(tuple(frames)) if frames else EMPTY_CALLSTACK


def _limit(limit: int | None) -> int:
    return get_settings().capture.max_frames if limit is None else limit


def callers(skip: int = 0, *, limit: int | None = None) -> CallStack:
    """Capture the stack of the caller of callers(), outward.

    Args:
        skip: Additional innermost frames to omit (e.g. constructor frames)
        limit: Max frames to keep; defaults to settings.capture.max_frames

    Returns:
        CallStack, empty when capture is disabled or nothing resolves
    """
    if not get_settings().capture.enabled:
        return EMPTY_CALLSTACK
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:  # skip reaches past the outermost frame
        return EMPTY_CALLSTACK
    return callstack_from_frame(frame, limit=limit)


def callstack_from_frame(frame: FrameType | None, *, limit: int | None = None) -> CallStack:
    """Walk a raw frame object outward through f_back."""
    limit = _limit(limit)
    frames: list[Frame] = []
    while frame is not None and len(frames) < limit:
        frames.append(_frame_of(frame.f_code, frame.f_lineno, frame.f_globals.get("__name__", "")))
        frame = frame.f_back
    if frame is not None and frames:
        logger.debug(f"Call stack truncated at {limit} frames (innermost: {frames[0].function})")
    return _seal(frames)


def callstack_from_traceback(tb: TracebackType | None, *, limit: int | None = None) -> CallStack:
    """Normalize an exception traceback; index 0 becomes the raising frame."""
    frames: list[Frame] = []
    while tb is not None:
        f = tb.tb_frame
        frames.append(_frame_of(f.f_code, tb.tb_lineno, f.f_globals.get("__name__", "")))
        tb = tb.tb_next
    frames.reverse()
    return _seal(_truncate(frames, _limit(limit)))


def callstack_from_summary(summary: Iterable[FrameSummary] | None, *, limit: int | None = None) -> CallStack:
    """Normalize a StackSummary (outermost-first, as traceback.extract_* return it).

    FrameSummary carries no module, so frames get an empty module.
    """
    if summary is None:
        return EMPTY_CALLSTACK
    frames = [
        Frame.model_construct(path=fs.filename, line=fs.lineno or 0, module="", qualname=fs.name)
        for fs in summary
    ]
    frames.reverse()
    return _seal(_truncate(frames, _limit(limit)))


def _truncate(frames: list[Frame], limit: int) -> list[Frame]:
    if len(frames) <= limit:
        return frames
    logger.debug(f"Foreign stack truncated from {len(frames)} to {limit} frames")
    return frames[:limit]
