"""Observability module (structured logging)."""

from __future__ import annotations

from paperless_client.observability.logging import (
    LogLevel,
    clear_request_context,
    configure_logging,
    generate_request_id,
    get_logger,
    get_request_id,
    redact_secrets,
    set_request_id,
)


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
