"""Classification of HTTP responses into the client's error taxonomy.

:func:`map_status` is a pure function of status, headers and a bounded body
prefix; it holds no state and never performs I/O, so the whole table can be
tested without a server.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

from paperless_client.core.errors import (
    PaperlessConflictError,
    PaperlessForbiddenError,
    PaperlessHTTPError,
    PaperlessNotFoundError,
    PaperlessRateLimitError,
    PaperlessServerError,
    PaperlessUnauthorizedError,
    PaperlessValidationError,
)


if TYPE_CHECKING:
    from collections.abc import Mapping


__all__ = [
    "ERROR_EXCERPT_LIMIT",
    "MAX_ERROR_BODY",
    "VALIDATION_STATUS_CODES",
    "body_excerpt",
    "map_status",
    "parse_retry_after",
]

# Bytes of an error body kept on PaperlessServerError for diagnostics
ERROR_EXCERPT_LIMIT = 1024

# Bytes of an error body read from the network at most
MAX_ERROR_BODY = 64 * 1024

# Django REST framework reports field errors with 400; 422 is the generic code
VALIDATION_STATUS_CODES = frozenset({400, 422})

_SIMPLE_STATUS_ERRORS: dict[int, tuple[type[PaperlessHTTPError], str]] = {
    401: (PaperlessUnauthorizedError, "Authentication failed"),
    403: (PaperlessForbiddenError, "Permission denied"),
    404: (PaperlessNotFoundError, "Resource not found"),
    409: (PaperlessConflictError, "Request conflicts with current state"),
}


def body_excerpt(body: bytes, limit: int = ERROR_EXCERPT_LIMIT) -> str:
    """Decode the first ``limit`` bytes of a body for diagnostics."""
    return body[:limit].decode("utf-8", errors="replace")


def parse_retry_after(
    value: str | None,
    *,
    now: datetime | None = None,
) -> float | None:
    """Parse a ``Retry-After`` header into seconds.

    Args:
        value: Header value: delta-seconds or an HTTP-date.
        now: Reference time for HTTP-dates (defaults to the current time).

    Returns:
        Seconds to wait (never negative), or None if absent or unparseable.
    """
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        return max(seconds, 0.0)

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    reference = now or datetime.now(UTC)
    return max((when - reference).total_seconds(), 0.0)


def _validation_errors(body: bytes) -> dict[str, object] | None:
    try:
        parsed = json.loads(body)
    except (UnicodeDecodeError, ValueError):
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def map_status(
    status_code: int,
    headers: Mapping[str, str],
    body: bytes,
    *,
    method: str | None = None,
    url: str | None = None,
) -> PaperlessHTTPError | None:
    """Classify a response.

    Args:
        status_code: HTTP status code.
        headers: Response headers (case-insensitive mapping expected).
        body: The body, or a bounded prefix of it.
        method: Request method, for the error message.
        url: Request URL without query, for the error message.

    Returns:
        The error to raise, or None for 2xx responses.
    """
    if 200 <= status_code < 300:  # noqa: PLR2004
        return None

    context = {"status_code": status_code, "method": method, "url": url}

    simple = _SIMPLE_STATUS_ERRORS.get(status_code)
    if simple is not None:
        error_cls, message = simple
        return error_cls(message, **context)  # type: ignore[arg-type]

    if status_code in VALIDATION_STATUS_CODES:
        errors = _validation_errors(body)
        if errors is not None:
            return PaperlessValidationError(
                "Validation error",
                errors=errors,
                **context,  # type: ignore[arg-type]
            )

    if status_code == 429:  # noqa: PLR2004
        return PaperlessRateLimitError(
            retry_after=parse_retry_after(headers.get("Retry-After")),
            **context,  # type: ignore[arg-type]
        )

    if status_code >= 500:  # noqa: PLR2004
        message = f"Server error: {status_code}"
    else:
        message = f"Unexpected response: {status_code}"
    return PaperlessServerError(
        message,
        body_excerpt=body_excerpt(body),
        **context,  # type: ignore[arg-type]
    )
