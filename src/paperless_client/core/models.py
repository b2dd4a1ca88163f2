"""Base model and page envelope shared by every resource."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


__all__ = [
    "Page",
    "PaperlessBaseModel",
]


class PaperlessBaseModel(BaseModel):
    """Base model with common configuration for all Paperless-ngx models."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=False,
        extra="ignore",  # Ignore unknown fields from API
    )


class Page[T](PaperlessBaseModel):
    """One page of a paginated listing.

    Paperless-ngx returns paginated results for list operations. ``count``
    is the size of the whole listing, not of this page; ``next`` and
    ``previous`` are absolute URLs used as cursors.

    Attributes:
        count: Total number of items matching the query.
        next: URL for the next page, or None if this is the last page.
        previous: URL for the previous page, or None if this is the first page.
        results: Items on this page, in server order.
        all: List of all matching IDs (when the endpoint provides it).
    """

    model_config = ConfigDict(frozen=True)

    count: int = Field(ge=0)
    next: str | None = None
    previous: str | None = None
    results: list[T]
    all: list[int] = Field(default_factory=list)
