"""Environment-based configuration using pydantic-settings.

Controls call stack capture cost and how much detail rendering emits.

Example:
    >>> from failchain.config import get_settings
    >>> settings = get_settings()
    >>> settings.capture.max_frames
    32

    # Or with environment variables:
    # FAILCHAIN_CAPTURE_MAX_FRAMES=64
    # FAILCHAIN_RENDER_INCLUDE_DEBUG=false
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CaptureSettings(BaseSettings):
    """Call stack capture configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FAILCHAIN_CAPTURE_",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Capture call stacks at construction")
    max_frames: Annotated[int, Field(ge=1, le=1024, description="Upper bound on frames per capture")] = 32


class RenderSettings(BaseSettings):
    """Verbose formatting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FAILCHAIN_RENDER_",
        extra="ignore",
    )

    include_stack: bool = True
    include_debug: bool = True
    full_paths: bool = Field(default=True, description="Absolute paths instead of base file names")


class FailchainSettings(BaseSettings):
    """Root settings for failchain.

    Example environment variables:
        FAILCHAIN_CAPTURE_ENABLED=false
        FAILCHAIN_CAPTURE_MAX_FRAMES=16
        FAILCHAIN_RENDER_FULL_PATHS=false
    """

    model_config = SettingsConfigDict(
        env_prefix="FAILCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)


@lru_cache(maxsize=1)
def get_settings() -> FailchainSettings:
    """Get the global settings instance (cached)."""
    return FailchainSettings()


def clear_settings_cache() -> FailchainSettings:
    """Reload settings from the environment and ``.env`` (useful for testing).

    The reloaded instance is cached before returning, so later get_settings()
    calls, including those made while capturing call stacks, never touch disk.
    """
    get_settings.cache_clear()
    return get_settings()
