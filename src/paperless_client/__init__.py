"""Typed async client for the Paperless-ngx REST API."""

from __future__ import annotations

from paperless_client.core import (
    CredentialStore,
    Endpoint,
    ErrorKind,
    HttpxTransport,
    Page,
    PageIterator,
    PaperlessClient,
    PaperlessError,
    ResponseShape,
    RetryPolicy,
    Transport,
)
from paperless_client.resources import PaperlessAPI


__version__ = "0.1.0"

__all__ = [
    "CredentialStore",
    "Endpoint",
    "ErrorKind",
    "HttpxTransport",
    "Page",
    "PageIterator",
    "PaperlessAPI",
    "PaperlessClient",
    "PaperlessError",
    "ResponseShape",
    "RetryPolicy",
    "Transport",
    "__version__",
]
