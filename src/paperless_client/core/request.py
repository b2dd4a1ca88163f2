"""Request construction for the Paperless-ngx API client."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import parse_qsl, quote, urlencode

import httpx
import pydantic_core
from pydantic import BaseModel

from paperless_client.core.errors import InvalidRequestError
from paperless_client.core.multipart import (
    DEFAULT_CHUNK_SIZE,
    MultipartPart,
    MultipartStream,
)


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from paperless_client.core.credentials import CredentialStore


__all__ = [
    "DEFAULT_API_VERSION",
    "QueryValue",
    "Request",
    "RequestBuilder",
]

DEFAULT_API_VERSION = 9

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

type QueryValue = str | int | float | bool | Enum | None


def _query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True, slots=True)
class Request:
    """A fully built request, ready to hand to a transport.

    Attributes:
        method: Upper-case HTTP method.
        url: Absolute URL including the query string.
        headers: Request headers, authorization included.
        content: JSON body bytes, if any.
        stream: Streaming multipart body, if any.
        timeout: Per-request timeout in seconds; None uses the transport's.
    """

    method: str
    url: httpx.URL
    headers: httpx.Headers
    content: bytes | None = None
    stream: MultipartStream | None = None
    timeout: float | None = None

    @property
    def replayable(self) -> bool:
        """Whether the body can be sent again on retry."""
        return self.stream is None or self.stream.replayable

    @property
    def log_url(self) -> str:
        """The URL without its query string, safe to log."""
        return str(self.url.copy_with(query=None))


class RequestBuilder:
    """Assembles a :class:`Request` step by step.

    Example:
        ```python
        request = (
            RequestBuilder("GET", "http://paperless:8000", "/api/documents/")
            .with_query("tags__id__all", "1,2")
            .with_query("page_size", 25)
            .build(credentials)
        )
        ```
    """

    def __init__(
        self,
        method: str,
        base_url: str | httpx.URL,
        path_template: str,
        path_params: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            method: HTTP method.
            base_url: Server base URL (e.g., "http://localhost:8000").
            path_template: Path with ``{name}`` placeholders.
            path_params: Values for the placeholders; percent-encoded.

        Raises:
            InvalidRequestError: If placeholders and params do not match.
        """
        path = _expand_path(path_template, path_params or {})
        base = str(base_url).rstrip("/")
        self._init(method, httpx.URL(base + path))

    @classmethod
    def from_url(cls, method: str, url: str | httpx.URL) -> Self:
        """Start from an absolute URL, e.g. a pagination cursor.

        Query parameters already present in ``url`` are kept, in order.
        """
        builder = cls.__new__(cls)
        builder._init(method, httpx.URL(url))  # noqa: SLF001
        return builder

    def _init(self, method: str, url: httpx.URL) -> None:
        self._method = method.upper()
        self._url = url.copy_with(query=None)
        self._query = parse_qsl(url.query.decode("ascii"), keep_blank_values=True)
        self._headers = httpx.Headers()
        self._json: bytes | None = None
        self._multipart: list[MultipartPart] | None = None
        self._timeout: float | None = None
        self._chunk_size = DEFAULT_CHUNK_SIZE
        self._api_version = DEFAULT_API_VERSION

    @property
    def method(self) -> str:
        return self._method

    def with_query(
        self,
        key: str,
        value: QueryValue | Iterable[QueryValue],
    ) -> Self:
        """Append a query parameter.

        Keys may repeat; order is preserved. ``None`` values are skipped and
        lists or tuples expand to one parameter per element. Sets have no
        order of their own, so they expand sorted by rendered value.
        """
        if isinstance(value, set | frozenset):
            value = sorted((v for v in value if v is not None), key=_query_value)
        if isinstance(value, list | tuple):
            for item in value:
                self.with_query(key, item)
            return self
        if value is not None:
            self._query.append((key, _query_value(value)))  # type: ignore[arg-type]
        return self

    def with_params(self, params: Mapping[str, Any] | None) -> Self:
        """Append every entry of a mapping via :meth:`with_query`."""
        for key, value in (params or {}).items():
            self.with_query(key, value)
        return self

    def with_header(self, name: str, value: str) -> Self:
        """Set a header, replacing any previous value."""
        self._headers[name] = value
        return self

    def with_timeout(self, seconds: float | None) -> Self:
        self._timeout = seconds
        return self

    def with_api_version(self, version: int) -> Self:
        """Select the paperless-ngx API version sent in ``Accept``."""
        self._api_version = version
        return self

    def with_chunk_size(self, chunk_size: int) -> Self:
        self._chunk_size = chunk_size
        return self

    def with_json_body(self, value: Any) -> Self:  # noqa: ANN401
        """Set a JSON body.

        Pydantic models are serialized without ``None`` fields and by alias.

        Raises:
            InvalidRequestError: If a multipart body is already set.
        """
        if self._multipart is not None:
            msg = "A request cannot have both a JSON and a multipart body"
            raise InvalidRequestError(msg)
        if isinstance(value, BaseModel):
            self._json = value.model_dump_json(exclude_none=True, by_alias=True).encode()
        else:
            try:
                self._json = pydantic_core.to_json(value)
            except pydantic_core.PydanticSerializationError as exc:
                msg = f"Request body is not JSON serializable: {exc}"
                raise InvalidRequestError(msg) from exc
        return self

    def with_multipart(self, parts: Iterable[MultipartPart]) -> Self:
        """Set a streaming multipart body.

        Raises:
            InvalidRequestError: If a JSON body is already set.
        """
        if self._json is not None:
            msg = "A request cannot have both a JSON and a multipart body"
            raise InvalidRequestError(msg)
        self._multipart = list(parts)
        return self

    def build(self, credentials: CredentialStore | None) -> Request:
        """Produce the transport-ready request.

        Args:
            credentials: Store that authorizes the request; None sends the
                request unauthenticated.

        Returns:
            The built request.

        Raises:
            CredentialMissingError: If the store holds no secret.
        """
        self._headers.setdefault(
            "Accept",
            f"application/json; version={self._api_version}",
        )
        stream: MultipartStream | None = None
        if self._json is not None:
            self._headers["Content-Type"] = "application/json"
            self._headers["Content-Length"] = str(len(self._json))
        elif self._multipart is not None:
            stream = MultipartStream(self._multipart, chunk_size=self._chunk_size)
            self._headers["Content-Type"] = stream.content_type
            length = stream.content_length
            if length is not None:
                self._headers["Content-Length"] = str(length)
        if credentials is not None:
            credentials.authorize(self)

        url = self._url
        if self._query:
            # httpx.QueryParams groups repeated keys; keep insertion order
            encoded = urlencode(self._query, quote_via=quote, safe="")
            url = url.copy_with(query=encoded.encode("ascii"))
        return Request(
            method=self._method,
            url=url,
            headers=httpx.Headers(self._headers),
            content=self._json,
            stream=stream,
            timeout=self._timeout,
        )


def _expand_path(template: str, params: Mapping[str, Any]) -> str:
    names = set(_PLACEHOLDER.findall(template))
    missing = names - params.keys()
    if missing:
        msg = f"Missing path parameter(s) for {template}: {', '.join(sorted(missing))}"
        raise InvalidRequestError(msg)
    unexpected = params.keys() - names
    if unexpected:
        msg = f"Unknown path parameter(s) for {template}: {', '.join(sorted(unexpected))}"
        raise InvalidRequestError(msg)
    return _PLACEHOLDER.sub(
        lambda match: quote(_query_value(params[match.group(1)]), safe=""),
        template,
    )
