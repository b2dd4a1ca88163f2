"""Async client facade for the Paperless-ngx API.

Every operation goes through the same fixed pipeline::

    RequestBuilder -> CredentialStore -> RetryPolicy -> Transport
        -> error mapping -> decoding (-> PageIterator for listings)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Any, Self

import httpx

from paperless_client.core.credentials import CredentialStore
from paperless_client.core.decoding import decode_object, decode_page
from paperless_client.core.endpoints import Endpoint, ResponseShape
from paperless_client.core.errors import InvalidRequestError, PaperlessError
from paperless_client.core.mapping import MAX_ERROR_BODY, map_status
from paperless_client.core.multipart import DEFAULT_CHUNK_SIZE
from paperless_client.core.pagination import PageIterator
from paperless_client.core.request import DEFAULT_API_VERSION, RequestBuilder
from paperless_client.core.retry import RetryPolicy
from paperless_client.core.transport import (
    HttpxTransport,
    translate_transport_exception,
)
from paperless_client.observability import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Mapping

    from paperless_client.config import Settings
    from paperless_client.core.models import Page
    from paperless_client.core.multipart import MultipartPart
    from paperless_client.core.request import Request
    from paperless_client.core.transport import RawResponse, Transport


__all__ = ["PaperlessClient"]

try:
    _VERSION = version("paperless-client")
except PackageNotFoundError:  # pragma: no cover
    _VERSION = "0.0.0"

# Failures a foreign transport may raise instead of PaperlessTransportError
_FOREIGN_TRANSPORT_ERRORS = (httpx.TransportError, OSError, TimeoutError)


class PaperlessClient:
    """Async client for the Paperless-ngx REST API.

    The client composes credentials, an optional retry policy and an
    injectable transport into one pipeline used by every endpoint. It holds
    no per-call mutable state, so one instance can serve many concurrent
    calls.

    Example:
        ```python
        async with PaperlessClient(
            "http://paperless:8000",
            CredentialStore.with_token("your-api-token"),
            retry=RetryPolicy(max_attempts=3),
        ) as client:
            tag = await client.call(TAG_RETRIEVE, path_params={"id": 1})
            async for doc in client.list(DOCUMENT_LIST, query={"page_size": 50}):
                print(doc.title)
        ```

    Attributes:
        base_url: The base URL of the Paperless-ngx instance.
        retry: The retry policy applied to idempotent operations.
        api_version: Paperless-ngx API version requested via ``Accept``.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(  # noqa: PLR0913
        self,
        base_url: str,
        credentials: CredentialStore | str | None,
        *,
        transport: Transport | None = None,
        retry: RetryPolicy | None = None,
        timeout: float | None = None,
        api_version: int = DEFAULT_API_VERSION,
        headers: Mapping[str, str] | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the Paperless-ngx instance
                (e.g., "http://localhost:8000").
            credentials: Credential store, or an API token string. The client
                takes ownership and clears it on close.
            transport: Executor for HTTP requests; an :class:`HttpxTransport`
                is created (and owned) if omitted.
            retry: Retry policy; retries are disabled if omitted.
            timeout: Default per-request timeout in seconds.
            api_version: Paperless-ngx API version.
            headers: Extra headers sent with every request.
            chunk_size: Chunk size for streamed uploads.
        """
        self.base_url = base_url.rstrip("/")
        self._base = httpx.URL(self.base_url)
        if isinstance(credentials, str):
            credentials = CredentialStore.with_token(credentials)
        self._credentials = credentials if credentials is not None else CredentialStore.empty()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport()
        self.retry = retry or RetryPolicy.disabled()
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self.api_version = api_version
        self._chunk_size = chunk_size
        self._headers = {"User-Agent": f"paperless-client/{_VERSION}", **(headers or {})}
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: Transport | None = None,
    ) -> Self:
        """Build a client from loaded settings.

        Args:
            settings: Application settings (see :func:`load_settings`).
            transport: Optional executor; by default an :class:`HttpxTransport`
                honouring the TLS and timeout settings is created.

        Returns:
            A configured client.
        """
        paperless = settings.paperless
        client = cls(
            paperless.url,
            CredentialStore.from_config(paperless),
            transport=transport
            or HttpxTransport(
                timeout=httpx.Timeout(paperless.timeout, connect=paperless.connect_timeout),
                verify=paperless.verify_tls,
            ),
            retry=RetryPolicy.from_config(settings.retry),
            timeout=paperless.timeout,
            api_version=paperless.api_version,
            headers=paperless.headers,
        )
        client._owns_transport = transport is None  # noqa: SLF001
        return client

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context and release resources."""
        await self.close()

    async def close(self) -> None:
        """Close an owned transport and scrub the credentials."""
        if self._owns_transport:
            await self._transport.aclose()
        self._credentials.clear()

    # -------------------------------------------------------------------------
    # Request construction
    # -------------------------------------------------------------------------

    def _prepare(self, builder: RequestBuilder, timeout: float | None = None) -> Request:
        for name, value in self._headers.items():
            builder.with_header(name, value)
        builder.with_api_version(self.api_version)
        builder.with_timeout(timeout if timeout is not None else self.timeout)
        builder.with_chunk_size(self._chunk_size)
        return builder.build(self._credentials)

    def _build(  # noqa: PLR0913
        self,
        endpoint: Endpoint[Any],
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        json: Any | None = None,  # noqa: ANN401
        multipart: Iterable[MultipartPart] | None = None,
        timeout: float | None = None,
    ) -> Request:
        builder = RequestBuilder(endpoint.method, self.base_url, endpoint.path, path_params)
        builder.with_params(query)
        if json is not None:
            builder.with_json_body(json)
        if multipart is not None:
            builder.with_multipart(multipart)
        return self._prepare(builder, timeout)

    def _rebase_cursor(self, cursor: str) -> httpx.URL:
        """Point a server-provided page URL at our own base URL's origin.

        Paperless-ngx behind a reverse proxy often reports its internal
        scheme or host in ``next``/``previous``. Only the path and query of
        the cursor are trusted, so credentials never leave the configured
        origin.
        """
        target = httpx.URL(cursor)
        if target.is_relative_url:
            return self._base.join(target)
        if (target.scheme, target.netloc) != (self._base.scheme, self._base.netloc):
            self._logger.debug(
                "pagination_cursor_rebased",
                reported=f"{target.scheme}://{target.host}",
                using=f"{self._base.scheme}://{self._base.host}",
            )
        return target.copy_with(scheme=self._base.scheme, netloc=self._base.netloc)

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _send(self, request: Request) -> RawResponse:
        """One attempt: execute the request and map error statuses.

        Returns:
            A 2xx response whose body is still unread; the caller closes it.
        """
        log = self._logger.bind(method=request.method, url=request.log_url)
        log.debug("api_request")
        try:
            response = await self._transport.send(request)
        except PaperlessError:
            raise
        except _FOREIGN_TRANSPORT_ERRORS as exc:
            log.debug("transport_error", error=type(exc).__name__)
            raise translate_transport_exception(exc) from exc

        log.debug("api_response", status_code=response.status_code)
        if response.is_success:
            return response

        try:
            body = await response.aread(limit=MAX_ERROR_BODY)
        except _FOREIGN_TRANSPORT_ERRORS as exc:
            raise translate_transport_exception(exc) from exc
        finally:
            await response.aclose()
        error = map_status(
            response.status_code,
            response.headers,
            body,
            method=request.method,
            url=request.log_url,
        )
        if error is None:  # pragma: no cover
            msg = f"Unmapped status {response.status_code}"
            raise PaperlessError(msg)
        raise error

    async def _exchange(self, request: Request) -> tuple[RawResponse, bytes]:
        response = await self._send(request)
        try:
            body = await response.aread()
        except _FOREIGN_TRANSPORT_ERRORS as exc:
            raise translate_transport_exception(exc) from exc
        finally:
            await response.aclose()
        return response, body

    def _retryable(self, endpoint: Endpoint[Any], request: Request) -> bool:
        return endpoint.is_idempotent and request.replayable

    # -------------------------------------------------------------------------
    # Public entry points
    # -------------------------------------------------------------------------

    async def call[T](  # noqa: PLR0913
        self,
        endpoint: Endpoint[T],
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        json: Any | None = None,  # noqa: ANN401
        multipart: Iterable[MultipartPart] | None = None,
        timeout: float | None = None,
    ) -> T:
        """Execute a single-object, binary or no-content operation.

        Args:
            endpoint: The operation to perform.
            path_params: Values for the path template placeholders.
            query: Query parameters (lists expand to repeated keys).
            json: JSON body (a pydantic model or JSON-compatible value).
            multipart: Parts of a streaming multipart body.
            timeout: Per-call timeout in seconds, overriding the default.

        Returns:
            The decoded value; None for ``EMPTY`` endpoints; bytes for
            ``BINARY`` endpoints.

        Raises:
            PaperlessError: The classified failure.
        """
        if endpoint.shape is ResponseShape.PAGE:
            msg = f"{endpoint.method} {endpoint.path} is a listing; use list()"
            raise InvalidRequestError(msg)
        request = self._build(
            endpoint,
            path_params=path_params,
            query=query,
            json=json,
            multipart=multipart,
            timeout=timeout,
        )

        async def attempt() -> T:
            response, body = await self._exchange(request)
            if endpoint.shape is ResponseShape.EMPTY:
                return None  # type: ignore[return-value]
            if endpoint.shape is ResponseShape.BINARY:
                return body  # type: ignore[return-value]
            return decode_object(
                body,
                endpoint.response_type,
                content_type=response.content_type,
            )

        return await self.retry.run(attempt, retryable=self._retryable(endpoint, request))

    async def fetch_page[T](
        self,
        endpoint: Endpoint[T],
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        cursor: str | None = None,
    ) -> Page[T]:
        """Fetch one page of a listing.

        Args:
            endpoint: A ``PAGE`` endpoint.
            path_params: Values for the path template placeholders.
            query: Query parameters for the first page.
            cursor: A ``next``/``previous`` URL; when given, ``query`` and
                ``path_params`` are ignored because the cursor carries them.

        Returns:
            The decoded page.
        """
        if endpoint.shape is not ResponseShape.PAGE:
            msg = f"{endpoint.method} {endpoint.path} is not a listing"
            raise InvalidRequestError(msg)
        if cursor is None:
            request = self._build(endpoint, path_params=path_params, query=query)
        else:
            builder = RequestBuilder.from_url(endpoint.method, self._rebase_cursor(cursor))
            request = self._prepare(builder)

        async def attempt() -> Page[T]:
            response, body = await self._exchange(request)
            return decode_page(
                body,
                endpoint.response_type,
                content_type=response.content_type,
            )

        return await self.retry.run(attempt, retryable=self._retryable(endpoint, request))

    def list[T](
        self,
        endpoint: Endpoint[T],
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> PageIterator[T]:
        """Lazily iterate over every item of a listing.

        Nothing is requested until the iterator is first advanced.

        Args:
            endpoint: A ``PAGE`` endpoint.
            path_params: Values for the path template placeholders.
            query: Query parameters (filters, ordering, page_size).

        Returns:
            A single-pass async iterator of decoded items.
        """
        if endpoint.shape is not ResponseShape.PAGE:
            msg = f"{endpoint.method} {endpoint.path} is not a listing"
            raise InvalidRequestError(msg)
        # Fail early on bad path params rather than on first iteration
        RequestBuilder(endpoint.method, self.base_url, endpoint.path, path_params)

        async def fetch(cursor: str | None) -> Page[T]:
            return await self.fetch_page(
                endpoint,
                path_params=path_params,
                query=query,
                cursor=cursor,
            )

        return PageIterator(fetch)

    async def next_page[T](self, endpoint: Endpoint[T], page: Page[T]) -> Page[T] | None:
        """Fetch the page after ``page``, or None on the last page."""
        if page.next is None:
            return None
        return await self.fetch_page(endpoint, cursor=page.next)

    async def previous_page[T](
        self,
        endpoint: Endpoint[T],
        page: Page[T],
    ) -> Page[T] | None:
        """Fetch the page before ``page``, or None on the first page."""
        if page.previous is None:
            return None
        return await self.fetch_page(endpoint, cursor=page.previous)

    @asynccontextmanager
    async def stream(
        self,
        endpoint: Endpoint[Any],
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[RawResponse]:
        """Open a streaming response, e.g. for a file download.

        Error statuses are mapped before the response is yielded. The
        response is closed when the context exits, including on
        cancellation.

        Example:
            ```python
            async with client.stream(DOCUMENT_DOWNLOAD, path_params={"id": 1}) as r:
                async for chunk in r.aiter_bytes():
                    f.write(chunk)
            ```
        """
        request = self._build(endpoint, path_params=path_params, query=query)
        response = await self.retry.run(
            lambda: self._send(request),
            retryable=self._retryable(endpoint, request),
        )
        try:
            yield response
        finally:
            await response.aclose()

    def __repr__(self) -> str:
        return (
            f"PaperlessClient(base_url={self.base_url!r}, "
            f"credentials={self._credentials!r}, retry={self.retry!r})"
        )
