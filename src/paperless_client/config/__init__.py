"""Configuration module for paperless-client.

This module provides configuration management using Pydantic settings with
support for YAML files and environment variable overrides. Configuration
values support ${VAR} and ${VAR:-default} syntax for environment variable
interpolation.

Example:
    >>> from paperless_client.config import load_settings, get_settings
    >>>
    >>> settings = load_settings()
    >>> print(settings.paperless.url)
    http://localhost:8000
    >>> print(settings.retry.enabled)
    False
    >>>
    >>> # Use cached singleton
    >>> settings = get_settings()
"""

from __future__ import annotations

from paperless_client.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from paperless_client.config.schema import (
    ConfigBaseModel,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ObservabilityConfig,
    PaginationConfig,
    PaperlessConfig,
    RetryConfig,
)
from paperless_client.config.settings import (
    Settings,
    clear_settings_cache,
    find_config_file,
    get_settings,
    load_settings,
)


__all__ = [
    # Base model
    "ConfigBaseModel",
    # Exceptions
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Configuration section models (for type hints)
    "LoggingConfig",
    "ObservabilityConfig",
    "PaginationConfig",
    "PaperlessConfig",
    "RetryConfig",
    # Main settings class and functions
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]
