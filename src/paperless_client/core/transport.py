"""Transport port: the single seam between the client and the network.

The client only ever talks to an object satisfying :class:`Transport`. The
default :class:`HttpxTransport` adapts ``httpx.AsyncClient``; tests and
callers may substitute any conforming executor.
"""

from __future__ import annotations

import ssl
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

import httpx

from paperless_client.core.errors import PaperlessTransportError, TransportErrorKind
from paperless_client.observability import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable

    from paperless_client.core.request import Request


__all__ = [
    "HttpxTransport",
    "RawResponse",
    "Transport",
    "translate_transport_exception",
]

logger = get_logger(__name__)


class RawResponse:
    """Status, headers and a lazily read body.

    The body is a byte stream; it is only pulled from the network when read.
    Whoever receives a ``RawResponse`` must close it, which releases the
    underlying connection even if the body was not consumed.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers (case-insensitive).
    """

    def __init__(
        self,
        status_code: int,
        headers: httpx.Headers | dict[str, str] | None = None,
        *,
        stream: AsyncIterable[bytes] | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the response envelope.

        Args:
            status_code: HTTP status code.
            headers: Response headers.
            stream: Body chunks; an empty body if omitted.
            on_close: Callback releasing the underlying connection.
        """
        self.status_code = status_code
        self.headers = httpx.Headers(headers)
        self._stream = stream
        self._on_close = on_close
        self._closed = False

    @classmethod
    def from_content(
        cls,
        status_code: int,
        content: bytes = b"",
        headers: httpx.Headers | dict[str, str] | None = None,
    ) -> Self:
        """Build a response around an in-memory body."""

        async def _body() -> AsyncIterator[bytes]:
            if content:
                yield content

        return cls(status_code, headers, stream=_body())

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300  # noqa: PLR2004

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive."""
        if self._stream is None:
            return
        async for chunk in self._stream:
            if chunk:
                yield chunk

    async def aread(self, limit: int | None = None) -> bytes:
        """Read the body, stopping after ``limit`` bytes if given.

        Args:
            limit: Maximum number of bytes to keep; None reads everything.

        Returns:
            The body, or its first ``limit`` bytes.
        """
        buffer = bytearray()
        async for chunk in self.aiter_bytes():
            buffer += chunk
            if limit is not None and len(buffer) >= limit:
                del buffer[limit:]
                break
        return bytes(buffer)

    async def aclose(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


@runtime_checkable
class Transport(Protocol):
    """Executes one HTTP request.

    Implementations must raise :class:`PaperlessTransportError` (or let the
    client translate ``httpx``/``OSError`` failures) when no response was
    obtained, and must be safe for concurrent use.
    """

    async def send(self, request: Request) -> RawResponse:
        """Send the request and return the response with an unread body."""
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...


def _caused_by_tls(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def translate_transport_exception(exc: BaseException) -> PaperlessTransportError:
    """Classify a low-level failure as a :class:`PaperlessTransportError`.

    Args:
        exc: An ``httpx`` transport exception, ``OSError`` or ``TimeoutError``.

    Returns:
        The equivalent domain error, chained to ``exc``.
    """
    if isinstance(exc, PaperlessTransportError):
        return exc
    if isinstance(exc, httpx.TimeoutException | TimeoutError):
        return PaperlessTransportError(
            "Request timed out",
            transport_kind=TransportErrorKind.TIMEOUT,
            cause=exc,
        )
    if _caused_by_tls(exc):
        return PaperlessTransportError(
            "TLS handshake with Paperless-ngx failed",
            transport_kind=TransportErrorKind.TLS,
            cause=exc,
        )
    if isinstance(
        exc,
        httpx.ReadError | httpx.WriteError | httpx.RemoteProtocolError | httpx.StreamError,
    ):
        return PaperlessTransportError(
            "Connection interrupted while streaming",
            transport_kind=TransportErrorKind.STREAM,
            cause=exc,
        )
    return PaperlessTransportError(cause=exc)


_TRANSPORT_FAILURES = (httpx.TransportError, httpx.StreamError, OSError, TimeoutError)


class HttpxTransport:
    """:class:`Transport` implementation backed by ``httpx.AsyncClient``.

    Request bodies are streamed from the multipart encoder and response
    bodies are streamed back, so neither is buffered in full.

    Example:
        ```python
        transport = HttpxTransport(timeout=httpx.Timeout(60.0, connect=10.0))
        client = PaperlessClient(url, credentials, transport=transport)
        ```
    """

    DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: httpx.Timeout | float | None = None,
        verify: bool | ssl.SSLContext = True,
        limits: httpx.Limits | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: An existing client to use; it is not closed by us.
            timeout: Default timeout when creating our own client.
            verify: TLS verification setting for our own client.
            limits: Connection pool limits for our own client.
            transport: Low-level httpx transport (e.g. for testing).
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.DEFAULT_TIMEOUT,
            verify=verify,
            limits=limits or httpx.Limits(),
            transport=transport,
        )

    async def send(self, request: Request) -> RawResponse:
        """Send the request, returning a response whose body is unread.

        Raises:
            PaperlessTransportError: If no response could be obtained.
        """
        timeout = (
            httpx.Timeout(request.timeout)
            if request.timeout is not None
            else httpx.USE_CLIENT_DEFAULT
        )
        content = request.content if request.stream is None else request.stream
        http_request = self._client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            content=content,
            timeout=timeout,
        )
        try:
            response = await self._client.send(http_request, stream=True)
        except _TRANSPORT_FAILURES as exc:
            raise translate_transport_exception(exc) from exc

        async def _body() -> AsyncIterator[bytes]:
            try:
                async for chunk in response.aiter_bytes():
                    yield chunk
            except _TRANSPORT_FAILURES as exc:
                raise translate_transport_exception(exc) from exc

        return RawResponse(
            response.status_code,
            response.headers,
            stream=_body(),
            on_close=response.aclose,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
