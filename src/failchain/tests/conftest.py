"""Shared fixtures for failchain tests."""

import pytest

from failchain.config import clear_settings_cache


@pytest.fixture(autouse=True)
def fresh_settings() -> object:
    """Fresh settings per test; tests that monkeypatch the env call clear_settings_cache() again."""
    clear_settings_cache()
    yield
    clear_settings_cache()
