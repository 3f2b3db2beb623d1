"""Tests for call stack capture and foreign stack ingestion."""

from __future__ import annotations

import json
import sys
import traceback

import pytest
from pydantic import ValidationError

from failchain.callstack import (
    EMPTY_CALLSTACK,
    CallStack,
    Frame,
    callers,
    callstack_from_frame,
    callstack_from_summary,
    callstack_from_traceback,
)
from failchain.config import clear_settings_cache


def _capture_here() -> CallStack:
    return callers()


def _capture_for_caller() -> CallStack:
    return callers(1)


def _raise_inner() -> None:
    raise KeyError("missing")


def _raise_outer() -> None:
    _raise_inner()


# ═════════════════════════════════════════════════════════════════════════════
# Frame
# ═════════════════════════════════════════════════════════════════════════════


def test_frame_derived_accessors() -> None:
    """Derived names split module qualifier from function."""
    f = Frame(path="/srv/app/repo.py", line=42, module="app.repo", qualname="Repo.load")

    assert f.file == "repo.py"
    assert f.function == "app.repo.Repo.load"
    assert f.func == "Repo.load"
    assert f.name == "load"
    assert f.pkg == "app.repo"


def test_frame_format() -> None:
    f = Frame(path="/srv/app/repo.py", line=42, module="app.repo", qualname="Repo.load")

    assert str(f) == "/srv/app/repo.py:42"
    assert f.format(verbose=True) == "[Repo.load] /srv/app/repo.py:42"
    assert f.format(verbose=True, full_path=False) == "[Repo.load] repo.py:42"


def test_frame_without_module() -> None:
    f = Frame(path="x.py", line=1, qualname="handler")
    assert f.function == "handler"
    assert f.pkg == ""


def test_frame_is_frozen() -> None:
    f = Frame(path="x.py", line=1, qualname="handler")
    with pytest.raises(ValidationError):
        f.line = 2  # type: ignore[misc]


def test_frame_json_includes_function() -> None:
    f = Frame(path="x.py", line=3, module="pkg.mod", qualname="run")
    assert json.loads(f.model_dump_json())["function"] == "pkg.mod.run"


# ═════════════════════════════════════════════════════════════════════════════
# Capture
# ═════════════════════════════════════════════════════════════════════════════


def test_callers_starts_at_calling_function() -> None:
    """Index 0 is the function that called callers(), then its callers outward."""
    cs = _capture_here()

    assert cs[0].func == "_capture_here"
    assert cs[1].func == "test_callers_starts_at_calling_function"
    assert cs[0].pkg == __name__
    assert cs[0].file == "test_callstack.py"


def test_callers_skip() -> None:
    cs = _capture_for_caller()
    assert cs[0].func == "test_callers_skip"


def test_callers_limit_truncates() -> None:
    """Hitting the bound yields a shorter stack, not an error."""
    cs = callers(limit=2)
    assert len(cs) == 2
    assert cs[0].func == "test_callers_limit_truncates"


def test_callers_max_frames_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAILCHAIN_CAPTURE_MAX_FRAMES", "3")
    clear_settings_cache()
    assert len(callers()) == 3


def test_callers_disabled_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAILCHAIN_CAPTURE_ENABLED", "false")
    clear_settings_cache()
    cs = callers()

    assert cs is EMPTY_CALLSTACK
    assert len(cs) == 0
    assert not cs


def test_callers_skip_past_outermost_frame() -> None:
    assert callers(10_000) is EMPTY_CALLSTACK


def test_callstack_from_frame() -> None:
    cs = callstack_from_frame(sys._getframe())
    assert cs[0].func == "test_callstack_from_frame"
    assert callstack_from_frame(None) is EMPTY_CALLSTACK


# ═════════════════════════════════════════════════════════════════════════════
# Foreign stacks
# ═════════════════════════════════════════════════════════════════════════════


def test_callstack_from_traceback_orders_raise_site_first() -> None:
    try:
        _raise_outer()
    except KeyError as e:
        cs = callstack_from_traceback(e.__traceback__)

    assert [f.func for f in cs] == [
        "_raise_inner",
        "_raise_outer",
        "test_callstack_from_traceback_orders_raise_site_first",
    ]
    assert cs[0].pkg == __name__


def test_callstack_from_summary() -> None:
    try:
        _raise_outer()
    except KeyError as e:
        summary = traceback.extract_tb(e.__traceback__)

    cs = callstack_from_summary(summary)
    assert [f.func for f in cs][:2] == ["_raise_inner", "_raise_outer"]
    assert cs[0].file == "test_callstack.py"
    assert cs[0].module == ""


def test_foreign_ingestion_respects_limit() -> None:
    try:
        _raise_outer()
    except KeyError as e:
        cs = callstack_from_traceback(e.__traceback__, limit=1)

    assert [f.func for f in cs] == ["_raise_inner"]


def test_foreign_ingestion_of_none() -> None:
    assert callstack_from_traceback(None) is EMPTY_CALLSTACK
    assert callstack_from_summary(None) is EMPTY_CALLSTACK
    assert callstack_from_summary([]) is EMPTY_CALLSTACK


# ═════════════════════════════════════════════════════════════════════════════
# CallStack
# ═════════════════════════════════════════════════════════════════════════════


def test_callstack_concat_and_slice() -> None:
    a = CallStack((Frame(path="a.py", line=1, qualname="a"),))
    b = CallStack((Frame(path="b.py", line=2, qualname="b"), Frame(path="c.py", line=3, qualname="c")))

    joined = a + b
    assert [f.func for f in joined] == ["a", "b", "c"]
    assert isinstance(joined[1:], CallStack)
    assert [f.func for f in joined[1:]] == ["b", "c"]
    assert a + EMPTY_CALLSTACK is a
    assert EMPTY_CALLSTACK + b is b


def test_callstack_format() -> None:
    cs = CallStack((Frame(path="/a.py", line=1, qualname="inner"), Frame(path="/b.py", line=2, qualname="outer")))

    assert str(cs) == "inner: outer"
    assert cs.format(verbose=True) == "[inner] /a.py:1\n[outer] /b.py:2"
    assert cs.head_function() == "inner"
    assert EMPTY_CALLSTACK.head_function() == ""
