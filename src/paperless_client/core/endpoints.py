"""Static descriptions of API endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from paperless_client.core.retry import IDEMPOTENT_METHODS


__all__ = [
    "Endpoint",
    "ResponseShape",
]


class ResponseShape(StrEnum):
    """What a successful response body contains.

    Attributes:
        OBJECT: A single JSON value decoded into the response type.
        PAGE: A paginated listing of the response type.
        EMPTY: No content worth decoding (e.g. 204 on delete).
        BINARY: Raw bytes (files, thumbnails); usually consumed through
            ``PaperlessClient.stream``.
    """

    OBJECT = "object"
    PAGE = "page"
    EMPTY = "empty"
    BINARY = "binary"


@dataclass(frozen=True, slots=True)
class Endpoint[T]:
    """An API operation: method, path template and expected response.

    Attributes:
        method: HTTP method.
        path: Path template relative to the server root, with ``{name}``
            placeholders (e.g. ``/api/documents/{id}/``).
        shape: The response shape.
        response_type: Decoded type of the body (of each item for pages).
        idempotent: Explicit idempotency declaration; None derives it from
            the method (GET, HEAD and OPTIONS are idempotent).
    """

    method: str
    path: str
    shape: ResponseShape = ResponseShape.OBJECT
    response_type: type[T] | Any = None
    idempotent: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        needs_type = self.shape in {ResponseShape.OBJECT, ResponseShape.PAGE}
        if needs_type and self.response_type is None:
            msg = f"{self.method} {self.path}: response_type is required for {self.shape}"
            raise ValueError(msg)

    @property
    def is_idempotent(self) -> bool:
        """Whether retrying this operation is safe."""
        if self.idempotent is not None:
            return self.idempotent
        return self.method in IDEMPOTENT_METHODS
