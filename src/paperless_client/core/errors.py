"""Exception taxonomy for the Paperless-ngx API client.

Every failure surfaced by the client is a :class:`PaperlessError`. Each
concrete class carries an :class:`ErrorKind` tag so callers (and the retry
policy) can branch on the kind of failure without ``isinstance`` chains.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


__all__ = [
    "CredentialMissingError",
    "ErrorKind",
    "InvalidRequestError",
    "PaperlessAuthenticationError",
    "PaperlessConflictError",
    "PaperlessDecodeError",
    "PaperlessError",
    "PaperlessForbiddenError",
    "PaperlessHTTPError",
    "PaperlessNotFoundError",
    "PaperlessRateLimitError",
    "PaperlessServerError",
    "PaperlessTransportError",
    "PaperlessUnauthorizedError",
    "PaperlessValidationError",
    "TransportErrorKind",
]


class ErrorKind(StrEnum):
    """Closed set of failure kinds produced by the client."""

    TRANSPORT = "transport"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    DECODE = "decode"
    CREDENTIAL_MISSING = "credential_missing"
    INVALID_REQUEST = "invalid_request"


class TransportErrorKind(StrEnum):
    """What went wrong below the HTTP layer.

    Attributes:
        CONNECT: Connection could not be established (DNS, refused, reset).
        TIMEOUT: Connect, read, write or pool timeout.
        TLS: TLS handshake or certificate verification failure.
        STREAM: Stream interrupted while uploading or downloading a body.
    """

    CONNECT = "connect"
    TIMEOUT = "timeout"
    TLS = "tls"
    STREAM = "stream"


class PaperlessError(Exception):
    """Base exception for all Paperless-ngx client errors.

    Attributes:
        kind: The taxonomy tag of this error.
        message: Human-readable error description.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class PaperlessTransportError(PaperlessError):
    """Raised when the request never produced an HTTP response.

    This includes network errors, DNS failures, TLS failures, timeouts and
    interrupted body streams. These errors are typically retryable.

    Attributes:
        transport_kind: Finer classification of the transport failure.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str = "Failed to connect to Paperless-ngx",
        *,
        transport_kind: TransportErrorKind = TransportErrorKind.CONNECT,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the transport error.

        Args:
            message: Human-readable error description.
            transport_kind: Finer classification of the failure.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.transport_kind = transport_kind
        self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.message} ({self.transport_kind})"


class PaperlessHTTPError(PaperlessError):
    """Base for errors classified from an HTTP status code.

    Attributes:
        status_code: The HTTP status of the response.
        method: HTTP method of the failed request, if known.
        url: Request URL without its query string, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the HTTP error.

        Args:
            message: Human-readable error description.
            status_code: The HTTP status of the response.
            method: HTTP method of the failed request.
            url: Request URL (query string stripped).
        """
        super().__init__(message)
        self.status_code = status_code
        self.method = method
        self.url = url

    def __str__(self) -> str:
        """Return string representation with status code and request."""
        text = f"{self.message} (status={self.status_code})"
        if self.method and self.url:
            text = f"{text} [{self.method} {self.url}]"
        return text


class PaperlessAuthenticationError(PaperlessHTTPError):
    """Base for authentication and authorization failures (401/403).

    These errors are not retryable without fixing the credentials.
    """


class PaperlessUnauthorizedError(PaperlessAuthenticationError):
    """Raised for 401 responses: missing, invalid or expired credentials."""

    kind = ErrorKind.UNAUTHORIZED


class PaperlessForbiddenError(PaperlessAuthenticationError):
    """Raised for 403 responses: credentials lack the required permission."""

    kind = ErrorKind.FORBIDDEN


class PaperlessNotFoundError(PaperlessHTTPError):
    """Raised when a resource is not found (404)."""

    kind = ErrorKind.NOT_FOUND


class PaperlessConflictError(PaperlessHTTPError):
    """Raised when the request conflicts with server state (409)."""

    kind = ErrorKind.CONFLICT


class PaperlessValidationError(PaperlessHTTPError):
    """Raised when the server rejects the request payload.

    Attributes:
        errors: Field name to error message(s), exactly as the server sent it.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        errors: dict[str, Any],
        status_code: int = 422,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the validation error.

        Args:
            message: Human-readable error description.
            errors: Field-level validation errors.
            status_code: The HTTP status of the response.
            method: HTTP method of the failed request.
            url: Request URL (query string stripped).
        """
        super().__init__(message, status_code=status_code, method=method, url=url)
        self.errors = errors


class PaperlessRateLimitError(PaperlessHTTPError):
    """Raised when rate limited by Paperless-ngx (429).

    Attributes:
        retry_after: Seconds the server asked us to wait, if provided. This is
            a hint; the mapper never sleeps.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Rate limited by Paperless-ngx",
        *,
        retry_after: float | None = None,
        status_code: int = 429,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the rate limit error.

        Args:
            message: Human-readable error description.
            retry_after: Seconds to wait before retrying.
            status_code: The HTTP status of the response.
            method: HTTP method of the failed request.
            url: Request URL (query string stripped).
        """
        super().__init__(message, status_code=status_code, method=method, url=url)
        self.retry_after = retry_after


class PaperlessServerError(PaperlessHTTPError):
    """Raised for 5xx responses and for any unclassified non-2xx status.

    Attributes:
        body_excerpt: The first bytes of the response body, decoded leniently.
    """

    kind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body_excerpt: str = "",
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize the server error.

        Args:
            message: Human-readable error description.
            status_code: The HTTP status of the response.
            body_excerpt: Bounded prefix of the response body.
            method: HTTP method of the failed request.
            url: Request URL (query string stripped).
        """
        super().__init__(message, status_code=status_code, method=method, url=url)
        self.body_excerpt = body_excerpt


class PaperlessDecodeError(PaperlessError):
    """Raised when a successful response cannot be decoded.

    Attributes:
        expected: Description of the shape that was expected.
        reason: Why decoding failed.
    """

    kind = ErrorKind.DECODE

    def __init__(self, expected: str, reason: str) -> None:
        """Initialize the decode error.

        Args:
            expected: Description of the expected shape (e.g. "Page[Tag]").
            reason: The parse or validation failure.
        """
        super().__init__(f"Failed to decode response as {expected}: {reason}")
        self.expected = expected
        self.reason = reason


class CredentialMissingError(PaperlessError):
    """Raised when a request needs credentials but none are available."""

    kind = ErrorKind.CREDENTIAL_MISSING

    def __init__(self, message: str = "No credentials available") -> None:
        super().__init__(message)


class InvalidRequestError(PaperlessError):
    """Raised when a request cannot be built from the given inputs."""

    kind = ErrorKind.INVALID_REQUEST
