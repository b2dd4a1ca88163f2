"""structlog setup shared by the client modules.

Every module gets its logger from :func:`get_logger`. Output is logfmt when
stderr is not a terminal and a coloured console rendering when it is.
Credential-looking fields are masked by :func:`redact_secrets` before any
renderer sees them, and :func:`set_request_id` ties the lines of one
logical operation together.

The library never configures logging on import; applications call
``configure_logging`` once at startup if they want this setup.
"""

from __future__ import annotations

import logging
import re
import sys
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)
from structlog.processors import TimeStamper, add_log_level


if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import EventDict, WrappedLogger

__all__ = [
    "LogLevel",
    "clear_request_context",
    "configure_logging",
    "generate_request_id",
    "get_logger",
    "get_request_id",
    "redact_secrets",
    "set_request_id",
]

REDACTED = "<redacted>"

_SENSITIVE_KEY = re.compile(
    r"authorization|token|password|passwd|secret|api[_-]?key|cookie",
    re.IGNORECASE,
)


class LogLevel(StrEnum):
    """Level names accepted by :func:`configure_logging`."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib_level(self) -> int:
        """Return the matching ``logging`` module constant."""
        level: int = getattr(logging, self.name)
        return level


_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID (first 8 hex characters of a UUID4)."""
    return uuid.uuid4().hex[:8]


def get_request_id() -> str | None:
    """Get the current request ID from context, or None if not set."""
    return _request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Tag subsequent log lines of the current task with a request ID.

    Args:
        request_id: The ID to use; a fresh one is generated when None.

    Returns:
        The ID now in effect.
    """
    if request_id is None:
        request_id = generate_request_id()

    _request_id_var.set(request_id)
    bind_contextvars(request_id=request_id)
    return request_id


def clear_request_context() -> None:
    """Clear the request context (request ID and structlog contextvars)."""
    _request_id_var.set(None)
    clear_contextvars()


def add_request_id(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add request_id to event dict if present in context and not already set."""
    del logger, method_name
    if "request_id" not in event_dict:
        request_id = get_request_id()
        if request_id is not None:
            event_dict["request_id"] = request_id
    return event_dict


def _redact(value: object) -> object:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if isinstance(k, str) and _SENSITIVE_KEY.search(k) else _redact(v)
            for k, v in value.items()
        }
    return value


def redact_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask values whose key looks like a credential.

    Applies to top-level keys and to keys of nested mappings (e.g. a
    ``headers`` dict), so an ``Authorization`` header bound by accident is
    rendered as ``<redacted>``.

    The event name itself is never touched.
    """
    del logger, method_name
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if _SENSITIVE_KEY.search(key):
            event_dict[key] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[key] = _redact(value)
    return event_dict


def _create_renderer(
    *,
    colors: bool = True,
    key_order: Sequence[str] | None = None,
) -> structlog.dev.ConsoleRenderer | structlog.processors.LogfmtRenderer:
    """Build the console renderer, or logfmt with a stable leading key order."""
    if colors:
        return structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )
    default_key_order = ["timestamp", "level", "event", "request_id"]
    order = list(key_order) if key_order else default_key_order
    return structlog.processors.LogfmtRenderer(
        key_order=order,
        drop_missing=True,
        bool_as_flag=False,
    )


def _use_colors(fmt: str, force_colors: bool | None) -> bool:
    if force_colors is not None:
        return force_colors
    if fmt == "console":
        return True
    if fmt == "logfmt":
        return False
    return sys.stderr is not None and hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    fmt: str = "auto",
    force_colors: bool | None = None,
) -> None:
    """Install the structlog pipeline for an application using the client.

    The library itself never calls this; applications opt in once at
    startup. Stdlib logging (used by httpx) is routed to the same stream.

    Args:
        level: Minimum level, as a :class:`LogLevel` or its name in any case.
        fmt: ``"console"``, ``"logfmt"`` or ``"auto"`` (console on a TTY).
        force_colors: Force color output on/off, overriding ``fmt``.

    Example:
        >>> from paperless_client.observability import configure_logging, LogLevel
        >>> configure_logging(level=LogLevel.DEBUG)
        >>> configure_logging(level="info", fmt="logfmt")
    """
    if isinstance(level, str):
        level = LogLevel(level.lower())

    use_colors = _use_colors(str(fmt), force_colors)

    # Order matters: redaction must run before rendering.
    processors: list[structlog.typing.Processor] = [
        merge_contextvars,
        add_request_id,
        add_log_level,
        TimeStamper(fmt="iso", utc=True, key="timestamp"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _create_renderer(colors=use_colors),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level.to_stdlib_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx and friends log through stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level.to_stdlib_level(),
        force=True,
    )


def get_logger(
    name: str | None = None,
    **initial_context: object,
) -> structlog.BoundLogger:
    """Return a structlog logger, optionally pre-bound with context.

    Args:
        name: Usually the calling module's ``__name__``.
        **initial_context: Fields added to every event from this logger.

    Returns:
        A bound structlog logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("page_fetched", page=2, items=25)
        2024-01-15T10:30:45.123456Z [info] page_fetched page=2 items=25
    """
    log: structlog.BoundLogger = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log
