"""Endpoint descriptors for the Paperless-ngx REST API."""

from __future__ import annotations

from typing import Any

from paperless_client.core.endpoints import Endpoint, ResponseShape
from paperless_client.resources.models import (
    Correspondent,
    Document,
    DocumentMetadata,
    DocumentType,
    ShareLink,
    StoragePath,
    Tag,
    TaskStatus,
)


__all__ = [
    "CORRESPONDENTS",
    "DOCUMENTS",
    "DOCUMENT_TYPES",
    "SHARE_LINKS",
    "STORAGE_PATHS",
    "TAGS",
    "TASKS",
    "CrudEndpoints",
    "DocumentEndpoints",
    "TaskEndpoints",
]


class CrudEndpoints[T]:
    """The five standard operations of a Paperless-ngx model viewset.

    Attributes:
        list: Paginated listing (``GET /api/<name>/``).
        create: ``POST /api/<name>/``.
        retrieve: ``GET /api/<name>/{id}/``.
        update: Partial update (``PATCH /api/<name>/{id}/``).
        destroy: ``DELETE /api/<name>/{id}/``, no content.
    """

    def __init__(self, name: str, model: type[T]) -> None:
        collection = f"/api/{name}/"
        item = f"/api/{name}/{{id}}/"
        self.name = name
        self.model = model
        self.list: Endpoint[T] = Endpoint("GET", collection, ResponseShape.PAGE, model)
        self.create: Endpoint[T] = Endpoint("POST", collection, ResponseShape.OBJECT, model)
        self.retrieve: Endpoint[T] = Endpoint("GET", item, ResponseShape.OBJECT, model)
        self.update: Endpoint[T] = Endpoint("PATCH", item, ResponseShape.OBJECT, model)
        self.destroy: Endpoint[None] = Endpoint("DELETE", item, ResponseShape.EMPTY)

    def __repr__(self) -> str:
        return f"CrudEndpoints({self.name!r}, {self.model.__name__})"


class DocumentEndpoints(CrudEndpoints[Document]):
    """Document operations beyond plain CRUD."""

    def __init__(self) -> None:
        super().__init__("documents", Document)
        self.metadata: Endpoint[DocumentMetadata] = Endpoint(
            "GET",
            "/api/documents/{id}/metadata/",
            ResponseShape.OBJECT,
            DocumentMetadata,
        )
        self.download: Endpoint[bytes] = Endpoint(
            "GET",
            "/api/documents/{id}/download/",
            ResponseShape.BINARY,
        )
        self.preview: Endpoint[bytes] = Endpoint(
            "GET",
            "/api/documents/{id}/preview/",
            ResponseShape.BINARY,
        )
        self.thumbnail: Endpoint[bytes] = Endpoint(
            "GET",
            "/api/documents/{id}/thumb/",
            ResponseShape.BINARY,
        )
        # Responds with the consumption task id as a bare JSON string
        self.upload: Endpoint[str] = Endpoint(
            "POST",
            "/api/documents/post_document/",
            ResponseShape.OBJECT,
            str,
        )
        self.share_links: Endpoint[list[ShareLink]] = Endpoint(
            "GET",
            "/api/documents/{id}/share_links/",
            ResponseShape.OBJECT,
            list[ShareLink],
        )


class TaskEndpoints:
    """Consumption task lookups.

    ``/api/tasks/`` is not paginated; it returns a plain JSON array.
    """

    def __init__(self) -> None:
        self.list: Endpoint[list[TaskStatus]] = Endpoint(
            "GET",
            "/api/tasks/",
            ResponseShape.OBJECT,
            list[TaskStatus],
        )
        self.acknowledge: Endpoint[Any] = Endpoint(
            "POST",
            "/api/tasks/acknowledge/",
            ResponseShape.OBJECT,
            dict[str, Any],
            idempotent=True,
        )


DOCUMENTS = DocumentEndpoints()
TAGS = CrudEndpoints("tags", Tag)
CORRESPONDENTS = CrudEndpoints("correspondents", Correspondent)
DOCUMENT_TYPES = CrudEndpoints("document_types", DocumentType)
STORAGE_PATHS = CrudEndpoints("storage_paths", StoragePath)
SHARE_LINKS = CrudEndpoints("share_links", ShareLink)
TASKS = TaskEndpoints()
