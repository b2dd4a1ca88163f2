"""Request/response pipeline shared by every Paperless-ngx endpoint.

Example:
    ```python
    from paperless_client.core import (
        CredentialStore,
        Endpoint,
        PaperlessClient,
        ResponseShape,
        RetryPolicy,
    )

    TAGS = Endpoint("GET", "/api/tags/", ResponseShape.PAGE, Tag)

    async with PaperlessClient(
        "http://paperless:8000",
        CredentialStore.with_token("your-api-token"),
        retry=RetryPolicy(max_attempts=3),
    ) as client:
        tags = await client.list(TAGS, query={"page_size": 100}).collect()
    ```
"""

from __future__ import annotations

from paperless_client.core.client import PaperlessClient
from paperless_client.core.credentials import CredentialKind, CredentialStore
from paperless_client.core.decoding import decode_object, decode_page
from paperless_client.core.endpoints import Endpoint, ResponseShape
from paperless_client.core.errors import (
    CredentialMissingError,
    ErrorKind,
    InvalidRequestError,
    PaperlessAuthenticationError,
    PaperlessConflictError,
    PaperlessDecodeError,
    PaperlessError,
    PaperlessForbiddenError,
    PaperlessHTTPError,
    PaperlessNotFoundError,
    PaperlessRateLimitError,
    PaperlessServerError,
    PaperlessTransportError,
    PaperlessUnauthorizedError,
    PaperlessValidationError,
    TransportErrorKind,
)
from paperless_client.core.mapping import map_status, parse_retry_after
from paperless_client.core.models import Page, PaperlessBaseModel
from paperless_client.core.multipart import MultipartPart, MultipartStream
from paperless_client.core.pagination import PageIterator, PageState
from paperless_client.core.request import Request, RequestBuilder
from paperless_client.core.retry import RetryPolicy
from paperless_client.core.transport import HttpxTransport, RawResponse, Transport


__all__ = [
    "CredentialKind",
    "CredentialMissingError",
    "CredentialStore",
    "Endpoint",
    "ErrorKind",
    "HttpxTransport",
    "InvalidRequestError",
    "MultipartPart",
    "MultipartStream",
    "Page",
    "PageIterator",
    "PageState",
    "PaperlessAuthenticationError",
    "PaperlessBaseModel",
    "PaperlessClient",
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
    "RawResponse",
    "Request",
    "RequestBuilder",
    "ResponseShape",
    "RetryPolicy",
    "Transport",
    "TransportErrorKind",
    "decode_object",
    "decode_page",
    "map_status",
    "parse_retry_after",
]
