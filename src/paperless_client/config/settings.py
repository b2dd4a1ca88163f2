"""Loading of client settings.

Values come from, in decreasing precedence: constructor arguments,
``PAPERLESS_CLIENT_*`` environment variables, then a YAML file found via
:data:`Settings.CONFIG_SEARCH_PATHS`.

Example:
    >>> from paperless_client.config import get_settings
    >>> get_settings().paperless.url
    'http://localhost:8000'
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field, SecretStr, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from paperless_client.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from paperless_client.config.schema import (
    ObservabilityConfig,
    PaginationConfig,
    PaperlessConfig,
    RetryConfig,
)


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = [
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]


# ---------------------------------------------------------------------------
# ${VAR} expansion in YAML values
# ---------------------------------------------------------------------------

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _interpolate_env_vars(value: object) -> object:
    """Expand environment references inside a parsed YAML document.

    Strings may contain ``${NAME}`` or ``${NAME:-fallback}``; an unset name
    with no fallback expands to an empty string. Mappings and lists are
    walked, scalars of other types pass through.

    Example:
        >>> os.environ["PAPERLESS_HOST"] = "paperless.lan"
        >>> _interpolate_env_vars({"url": "http://${PAPERLESS_HOST}:8000"})
        {'url': 'http://paperless.lan:8000'}
        >>> _interpolate_env_vars("${MISSING:-fallback}")
        'fallback'
    """
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            return match.group(2) or ""

        return _ENV_VAR_PATTERN.sub(replace, value)

    if isinstance(value, dict):
        return {k: _interpolate_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_interpolate_env_vars(item) for item in value]

    return value


class _InterpolatingYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML source that expands environment references after parsing."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | str | None = None,
    ) -> None:
        # None defers to model_config
        if yaml_file is not None:
            super().__init__(settings_cls, yaml_file=yaml_file)
        else:
            super().__init__(settings_cls)

    def _read_files(
        self,
        files: Path | str | Sequence[Path | str] | None,
        *args: Any,  # noqa: ANN401
        **kwargs: Any,  # noqa: ANN401
    ) -> dict[str, Any]:
        raw_data = super()._read_files(files, *args, **kwargs)
        interpolated = _interpolate_env_vars(raw_data)
        if not isinstance(interpolated, dict):  # pragma: no cover
            return {}
        return interpolated


# ---------------------------------------------------------------------------
# Settings Class
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Client settings loaded from a YAML file and environment variables.

    Precedence, strongest first: constructor arguments, environment
    variables (``PAPERLESS_CLIENT_*``, nested with ``__``), the YAML file,
    field defaults.

    Attributes:
        paperless: Connection and authentication settings.
        retry: Retry policy for idempotent requests.
        pagination: Listing defaults.
        observability: Logging settings.

    Example:
        >>> # PAPERLESS_CLIENT_RETRY__ENABLED=true overrides the YAML value
        >>> settings = load_settings(Path("/etc/paperless-client/config.yaml"))
        >>> settings.retry.max_attempts
        3
    """

    model_config = SettingsConfigDict(
        yaml_file=None,  # No default file - search paths used instead
        yaml_file_encoding="utf-8",
        env_prefix="PAPERLESS_CLIENT_",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    CONFIG_SEARCH_PATHS: ClassVar[list[Path]] = [
        Path("paperless-client.yaml"),
        Path("paperless-client.yml"),
        Path.home() / ".config" / "paperless-client" / "config.yaml",
        Path("/etc/paperless-client/config.yaml"),
    ]

    # Set by load_settings for the duration of one Settings() call
    _yaml_file_override: ClassVar[Path | str | None] = None

    paperless: PaperlessConfig = Field(default_factory=PaperlessConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @model_validator(mode="after")
    def resolve_paperless_token(self) -> Settings:
        """Fill in ``paperless.token`` when it was not given directly.

        A configured ``token_file`` is read first. Failing that, the
        ``PAPERLESS_TOKEN`` environment variable is used unless a username
        selects basic auth.

        Raises:
            ValueError: If token_file is specified but the file doesn't exist.
        """
        if self.paperless.token is not None:
            return self

        if self.paperless.token_file:
            token_path = self.paperless.token_file
            if not token_path.is_file():
                msg = f"Token file not found: {token_path}"
                raise ValueError(msg)
            token = SecretStr(token_path.read_text().strip())
            self.paperless = self.paperless.model_copy(update={"token": token})
            return self

        env_token = os.environ.get("PAPERLESS_TOKEN")
        if env_token and not self.paperless.username:
            token = SecretStr(env_token)
            self.paperless = self.paperless.model_copy(update={"token": token})

        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order the sources; dotenv is not consulted."""
        yaml_file = cls._yaml_file_override
        return (
            init_settings,
            env_settings,
            _InterpolatingYamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
            file_secret_settings,
        )


# ---------------------------------------------------------------------------
# Loading and caching
# ---------------------------------------------------------------------------

_cached_settings: Settings | None = None


def find_config_file(config_path: Path | str | None = None) -> Path | None:
    """Locate the YAML file to read.

    Args:
        config_path: A specific file to use. When None, the first existing
            entry of ``Settings.CONFIG_SEARCH_PATHS`` is returned.

    Returns:
        The file, or None when nothing exists.
    """
    if config_path is not None:
        path = Path(config_path)
        return path if path.is_file() else None

    for search_path in Settings.CONFIG_SEARCH_PATHS:
        if search_path.is_file():
            return search_path

    return None


def load_settings(
    config_path: Path | str | None = None,
    *,
    require_config_file: bool = False,
) -> Settings:
    """Load and validate settings.

    The loaded settings are cached for subsequent calls to get_settings().

    Args:
        config_path: Path to YAML config file. If None, searches standard
            locations (./paperless-client.yaml, ./paperless-client.yml,
            ~/.config/paperless-client/config.yaml,
            /etc/paperless-client/config.yaml).
        require_config_file: If True, raise when no config file is found.

    Returns:
        The validated settings.

    Raises:
        ConfigurationFileNotFoundError: When require_config_file=True and
            no config file is found, or an explicit path does not exist.
        ConfigurationValidationError: When configuration validation fails.
    """
    global _cached_settings  # noqa: PLW0603

    config_file = find_config_file(config_path)

    if config_file is None and (require_config_file or config_path is not None):
        raise ConfigurationFileNotFoundError(
            path=str(config_path) if config_path else None,
            searched_paths=[str(p) for p in Settings.CONFIG_SEARCH_PATHS],
        )

    try:
        Settings._yaml_file_override = config_file  # noqa: SLF001
        try:
            settings = Settings()
        finally:
            Settings._yaml_file_override = None  # noqa: SLF001
    except ConfigurationError:
        raise
    except ValidationError as exc:
        # Input values are left out so secrets never reach the message
        errors = exc.errors(include_url=False, include_input=False)
        details = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or '<root>'}: {e['msg']}" for e in errors
        )
        msg = f"Invalid configuration: {details}"
        raise ConfigurationValidationError(msg, errors=[dict(e) for e in errors]) from exc
    except Exception as exc:
        msg = f"Failed to load configuration: {exc}"
        raise ConfigurationValidationError(msg) from exc
    else:
        _cached_settings = settings
        return settings


def get_settings() -> Settings:
    """Get the cached settings instance, loading it if necessary."""
    global _cached_settings  # noqa: PLW0603

    if _cached_settings is None:
        _cached_settings = load_settings()

    return _cached_settings


def clear_settings_cache() -> None:
    """Clear the cached settings instance (mainly useful for tests)."""
    global _cached_settings  # noqa: PLW0603
    _cached_settings = None
