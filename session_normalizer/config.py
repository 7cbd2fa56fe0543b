"""
Configuration for session-normalizer.

Settings come from environment variables with the SESSION_NORMALIZER_ prefix
(SESSION_NORMALIZER_DETECTION_LINE_LIMIT=10). Every component that reads a
setting also accepts an explicit argument, which wins over the environment.
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

__all__ = [
    'NormalizerSettings',
    'get_settings',
    'lazy_settings',
    'settings',
]

T = TypeVar('T', bound='NormalizerSettings')


class NormalizerSettings(pydantic_settings.BaseSettings):
    """Tunables for detection, validation and CLI logging."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='SESSION_NORMALIZER_',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # Shared .env files carry unrelated keys
    )

    # Number of leading non-empty lines probed by format detection
    DETECTION_LINE_LIMIT: int = 5

    # Number of leading non-empty lines that must be valid JSON
    STRICT_JSON_LINE_LIMIT: int = 3

    # Root log level applied by the CLI (the library never configures handlers)
    LOG_LEVEL: str = 'WARNING'

    @pydantic.field_validator('DETECTION_LINE_LIMIT')
    @classmethod
    def validate_detection_line_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError('DETECTION_LINE_LIMIT must be at least 1')
        return v

    @pydantic.field_validator('STRICT_JSON_LINE_LIMIT')
    @classmethod
    def validate_strict_json_line_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError('STRICT_JSON_LINE_LIMIT must not be negative')
        return v

    @pydantic.field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL names a standard logging level."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f'LOG_LEVEL must be a logging level name, got {v!r}')
        return level


def get_settings(settings_class: type[T] = NormalizerSettings, env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """Defer instantiation until first attribute access."""
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))


settings: NormalizerSettings = lazy_settings(NormalizerSettings)
