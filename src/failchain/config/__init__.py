"""Configuration management using pydantic-settings."""

from .settings import (
    CaptureSettings,
    FailchainSettings,
    RenderSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CaptureSettings",
    "FailchainSettings",
    "RenderSettings",
    "clear_settings_cache",
    "get_settings",
]
