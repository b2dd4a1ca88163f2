"""Configuration schema models for paperless-client.

These models are used by the Settings class to validate configuration
loaded from YAML files and environment variables.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path  # noqa: TC003 - needed at runtime for Pydantic
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from paperless_client.observability.logging import LogLevel


__all__ = [
    "ConfigBaseModel",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ObservabilityConfig",
    "PaginationConfig",
    "PaperlessConfig",
    "RetryConfig",
]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class LogFormat(StrEnum):
    """Log output format.

    Attributes:
        AUTO: Console renderer on a TTY, logfmt otherwise.
        CONSOLE: Human-readable console output with colors.
        LOGFMT: Machine-parseable key=value output.
    """

    AUTO = "auto"
    CONSOLE = "console"
    LOGFMT = "logfmt"


# ---------------------------------------------------------------------------
# Base Configuration Model
# ---------------------------------------------------------------------------


class ConfigBaseModel(BaseModel):
    """Base model for all configuration sections.

    Uses stricter settings than API models to catch configuration typos:
    - extra="forbid" raises errors for unknown fields
    - validate_default=True ensures defaults are validated
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


# ---------------------------------------------------------------------------
# Paperless-ngx Connection
# ---------------------------------------------------------------------------


class PaperlessConfig(ConfigBaseModel):
    """Paperless-ngx connection configuration.

    Authenticate with either ``token`` (or ``token_file``) or with
    ``username`` and ``password``. A token takes precedence. Secrets are
    held as ``SecretStr`` so they never show up in reprs or dumps.

    Attributes:
        url: Base URL of the Paperless-ngx instance.
        token: API authentication token (supports ${VAR} interpolation).
        token_file: Path to a file containing the API token.
        username: Account name for basic authentication.
        password: Account password for basic authentication.
        auth_scheme: Authorization scheme used with the token.
        api_version: Paperless-ngx API version requested.
        timeout: Default request timeout in seconds.
        connect_timeout: Connection timeout in seconds.
        verify_tls: Verify the server certificate.
        headers: Extra headers sent with every request.
    """

    url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the Paperless-ngx instance",
    )
    token: SecretStr | None = Field(
        default=None,
        description="API authentication token (supports ${VAR} interpolation)",
    )
    token_file: Path | None = Field(
        default=None,
        description="Path to file containing the API token",
    )
    username: str | None = Field(default=None, description="Basic auth username")
    password: SecretStr | None = Field(default=None, description="Basic auth password")
    auth_scheme: str = Field(
        default="Token",
        description="Authorization scheme for token auth (Token or Bearer)",
    )
    api_version: Annotated[int, Field(ge=1, description="API version")] = 9
    timeout: Annotated[float, Field(gt=0, description="Request timeout (s)")] = 30.0
    connect_timeout: Annotated[
        float,
        Field(gt=0, description="Connection timeout (s)"),
    ] = 10.0
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request",
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slash from URL to avoid double slashes."""
        return v.rstrip("/")

    @field_validator("token", "password", mode="before")
    @classmethod
    def empty_secret_is_none(cls, v: object) -> object:
        """Treat empty strings (e.g. unset ${VAR}) as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def password_requires_username(self) -> PaperlessConfig:
        """Reject a password configured without a username."""
        if self.password is not None and not self.username:
            msg = "paperless.password requires paperless.username"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Retry and Pagination
# ---------------------------------------------------------------------------


class RetryConfig(ConfigBaseModel):
    """Retry policy for idempotent requests.

    Disabled by default: every request is attempted exactly once.

    Attributes:
        enabled: Whether transient failures are retried.
        max_attempts: Total attempts including the first one.
        initial_backoff: Delay before the first retry in seconds.
        max_backoff: Upper bound for a single delay in seconds.
        multiplier: Growth factor between delays.
        respect_retry_after: Honour 429 Retry-After hints.
    """

    enabled: bool = Field(default=False)
    max_attempts: Annotated[int, Field(ge=1, le=20)] = 3
    initial_backoff: Annotated[float, Field(ge=0)] = 0.5
    max_backoff: Annotated[float, Field(ge=0)] = 30.0
    multiplier: Annotated[float, Field(ge=1)] = 2.0
    respect_retry_after: bool = Field(default=True)


class PaginationConfig(ConfigBaseModel):
    """Pagination defaults.

    Attributes:
        page_size: Items requested per page by listing helpers.
    """

    page_size: Annotated[int, Field(ge=1, le=100_000)] = 100


# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------


class LoggingConfig(ConfigBaseModel):
    """Logging configuration.

    Attributes:
        level: Log verbosity level.
        format: Log output format.
    """

    level: LogLevel = Field(default=LogLevel.INFO)
    format: LogFormat = Field(default=LogFormat.AUTO)

    @field_validator("level", mode="before")
    @classmethod
    def lowercase_level(cls, v: object) -> object:
        """Accept ``INFO`` as well as ``info``."""
        return v.lower() if isinstance(v, str) else v


class ObservabilityConfig(ConfigBaseModel):
    """Observability configuration.

    Attributes:
        logging: Logging configuration.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
