"""Typed per-resource operations built on :class:`PaperlessClient`.

Each service is a thin caller of the client facade: it picks the endpoint
descriptor, shapes query parameters and bodies, and returns decoded
models. Transport, retries, error mapping and decoding all happen in the
client pipeline.
"""

from __future__ import annotations

import asyncio
import mimetypes
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from paperless_client.core.multipart import MultipartPart
from paperless_client.observability import get_logger
from paperless_client.resources.endpoints import (
    CORRESPONDENTS,
    DOCUMENT_TYPES,
    DOCUMENTS,
    SHARE_LINKS,
    STORAGE_PATHS,
    TAGS,
    TASKS,
)
from paperless_client.resources.models import (
    Correspondent,
    Document,
    DocumentType,
    DocumentUpdate,
    ShareLink,
    StoragePath,
    Tag,
    TagCreate,
    TaskState,
    TaskStatus,
)


if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Mapping
    from typing import IO

    from pydantic import BaseModel

    from paperless_client.core.client import PaperlessClient
    from paperless_client.core.models import Page
    from paperless_client.core.pagination import PageIterator
    from paperless_client.core.transport import RawResponse
    from paperless_client.resources.endpoints import CrudEndpoints
    from paperless_client.resources.models import DocumentMetadata


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "UPLOAD_TIMEOUT",
    "CorrespondentsService",
    "DocumentTypesService",
    "DocumentsService",
    "ResourceService",
    "ShareLinksService",
    "StoragePathsService",
    "TagsService",
    "TasksService",
]

DEFAULT_PAGE_SIZE = 100

# Uploads stream the whole file inside one request
UPLOAD_TIMEOUT = 300.0

logger = get_logger(__name__)


def _compact(params: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class ResourceService[T]:
    """List, retrieve, create, update and delete one resource type.

    Attributes:
        client: The client every call goes through.
        endpoints: The resource's endpoint descriptors.
        page_size: Items requested per page when listing.
    """

    def __init__(
        self,
        client: PaperlessClient,
        endpoints: CrudEndpoints[T],
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.client = client
        self.endpoints = endpoints
        self.page_size = page_size

    async def list(
        self,
        *,
        page: int = 1,
        page_size: int | None = None,
        ordering: str | None = None,
        **filters: Any,  # noqa: ANN401
    ) -> Page[T]:
        """Fetch a single page.

        Args:
            page: Page number (1-indexed).
            page_size: Results per page; the service default if None.
            ordering: Field to order by (prefix with '-' for descending).
            **filters: Extra query parameters (e.g. ``name__icontains``).

        Returns:
            The requested page.
        """
        query = _compact(
            {
                "page": page,
                "page_size": page_size or self.page_size,
                "ordering": ordering,
                **filters,
            }
        )
        return await self.client.fetch_page(self.endpoints.list, query=query)

    def iterate(
        self,
        *,
        ordering: str | None = None,
        **filters: Any,  # noqa: ANN401
    ) -> PageIterator[T]:
        """Iterate lazily over every matching item, page by page."""
        query = _compact({"page_size": self.page_size, "ordering": ordering, **filters})
        return self.client.list(self.endpoints.list, query=query)

    async def all(self, **filters: Any) -> list[T]:  # noqa: ANN401
        """Collect every matching item into a list."""
        return await self.iterate(**filters).collect()

    async def next_page(self, page: Page[T]) -> Page[T] | None:
        """Fetch the page after ``page``, or None on the last page."""
        return await self.client.next_page(self.endpoints.list, page)

    async def previous_page(self, page: Page[T]) -> Page[T] | None:
        """Fetch the page before ``page``, or None on the first page."""
        return await self.client.previous_page(self.endpoints.list, page)

    async def get(self, item_id: int) -> T:
        """Retrieve one item by ID.

        Raises:
            PaperlessNotFoundError: If no such item exists.
        """
        return await self.client.call(self.endpoints.retrieve, path_params={"id": item_id})

    async def create(self, data: BaseModel) -> T:
        """Create an item from a ``*Create`` model."""
        return await self.client.call(self.endpoints.create, json=data)

    async def update(self, item_id: int, data: BaseModel) -> T:
        """Partially update an item; only non-None fields are sent."""
        return await self.client.call(
            self.endpoints.update,
            path_params={"id": item_id},
            json=data,
        )

    async def delete(self, item_id: int) -> None:
        """Delete an item."""
        await self.client.call(self.endpoints.destroy, path_params={"id": item_id})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.endpoints.name!r})"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentsService(ResourceService[Document]):
    """Document operations, including file transfer."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, DOCUMENTS, page_size=page_size)

    @staticmethod
    def filters(  # noqa: PLR0913
        *,
        tags_include: list[int] | None = None,
        tags_exclude: list[int] | None = None,
        correspondent: int | None = None,
        document_type: int | None = None,
        query: str | None = None,
        truncate_content: bool | None = None,
        created_from: str | None = None,
        created_to: str | None = None,
        added_from: str | None = None,
        added_to: str | None = None,
    ) -> dict[str, Any]:
        """Translate friendly filter arguments into Paperless-ngx query keys.

        Args:
            tags_include: Only include documents with ALL of these tag IDs.
            tags_exclude: Exclude documents with ANY of these tag IDs.
            correspondent: Filter by correspondent ID.
            document_type: Filter by document type ID.
            query: Full-text search query.
            truncate_content: Truncate ``content`` in listings.
            created_from: Filter by created date (YYYY-MM-DD), from.
            created_to: Filter by created date (YYYY-MM-DD), to.
            added_from: Filter by added date (YYYY-MM-DD), from.
            added_to: Filter by added date (YYYY-MM-DD), to.

        Returns:
            Query parameters, without unset filters.
        """
        return _compact(
            {
                "tags__id__all": ",".join(map(str, tags_include)) if tags_include else None,
                "tags__id__none": ",".join(map(str, tags_exclude)) if tags_exclude else None,
                "correspondent__id": correspondent,
                "document_type__id": document_type,
                "query": query,
                "truncate_content": truncate_content,
                "created__date__gt": created_from,
                "created__date__lt": created_to,
                "added__date__gt": added_from,
                "added__date__lt": added_to,
            }
        )

    async def metadata(self, document_id: int) -> DocumentMetadata:
        """Get checksums, sizes and MIME types of a document's files."""
        return await self.client.call(DOCUMENTS.metadata, path_params={"id": document_id})

    async def share_links(self, document_id: int) -> list[ShareLink]:
        """List the share links pointing at a document."""
        return await self.client.call(DOCUMENTS.share_links, path_params={"id": document_id})

    @asynccontextmanager
    async def download(
        self,
        document_id: int,
        *,
        original: bool = True,
    ) -> AsyncIterator[RawResponse]:
        """Download a document file as a streaming response.

        Args:
            document_id: The document ID.
            original: If True, download the original file; if False, the
                archived (OCRed PDF) version.

        Yields:
            The open response; read it with ``aiter_bytes()``.

        Example:
            ```python
            async with api.documents.download(123) as response:
                async for chunk in response.aiter_bytes():
                    file.write(chunk)
            ```
        """
        query = {"original": "true"} if original else None
        async with self.client.stream(
            DOCUMENTS.download,
            path_params={"id": document_id},
            query=query,
        ) as response:
            yield response

    async def download_to_path(
        self,
        document_id: int,
        dest_path: Path,
        *,
        original: bool = True,
    ) -> Path:
        """Download a document file to ``dest_path``, chunk by chunk.

        Returns:
            The destination path.
        """
        async with self.download(document_id, original=original) as response:
            with dest_path.open("wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
        return dest_path

    async def thumbnail(self, document_id: int) -> bytes:
        """Fetch the thumbnail image of a document."""
        return await self.client.call(DOCUMENTS.thumbnail, path_params={"id": document_id})

    async def upload(  # noqa: PLR0913
        self,
        document: Path | bytes | IO[bytes] | AsyncIterable[bytes],
        *,
        filename: str | None = None,
        content_type: str | None = None,
        title: str | None = None,
        correspondent: int | None = None,
        document_type: int | None = None,
        storage_path: int | None = None,
        tags: list[int] | None = None,
        created: str | None = None,
        archive_serial_number: int | None = None,
        timeout: float = UPLOAD_TIMEOUT,  # noqa: ASYNC109
    ) -> str:
        """Upload a new document for consumption.

        The file is streamed in chunks; it is never loaded into memory
        as a whole. Uploads are not retried.

        Args:
            document: Path, bytes, binary file object or async byte source.
            filename: File name announced to the server; defaults to the
                path's name.
            content_type: MIME type; guessed from the file name if None.
            title: Document title (defaults to filename).
            correspondent: Correspondent ID.
            document_type: Document type ID.
            storage_path: Storage path ID.
            tags: Tag IDs, sent as repeated ``tags`` fields.
            created: Created date (YYYY-MM-DD format).
            archive_serial_number: ASN for the document.
            timeout: Request timeout in seconds.

        Returns:
            Task ID for tracking consumption (see :class:`TasksService`).
        """
        if filename is None and isinstance(document, Path):
            filename = document.name
        filename = filename or "document"
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        parts = [
            MultipartPart.file(
                "document",
                document,
                filename=filename,
                content_type=content_type,
            )
        ]
        fields = _compact(
            {
                "title": title,
                "correspondent": correspondent,
                "document_type": document_type,
                "storage_path": storage_path,
                "created": created,
                "archive_serial_number": archive_serial_number,
            }
        )
        parts.extend(MultipartPart.field(name, value) for name, value in fields.items())
        parts.extend(MultipartPart.field("tags", tag_id) for tag_id in tags or ())

        task_id = await self.client.call(DOCUMENTS.upload, multipart=parts, timeout=timeout)
        logger.info("document_uploaded", filename=filename, task_id=task_id)
        return task_id

    async def add_tags(self, document_id: int, tag_ids: list[int]) -> Document:
        """Add tags to a document, keeping its existing tags."""
        doc = await self.get(document_id)
        new_tags = sorted(set(doc.tags) | set(tag_ids))
        return await self.update(document_id, DocumentUpdate(tags=new_tags))

    async def remove_tags(self, document_id: int, tag_ids: list[int]) -> Document:
        """Remove tags from a document."""
        doc = await self.get(document_id)
        new_tags = sorted(set(doc.tags) - set(tag_ids))
        return await self.update(document_id, DocumentUpdate(tags=new_tags))


# ---------------------------------------------------------------------------
# Tags and other matchable objects
# ---------------------------------------------------------------------------


class TagsService(ResourceService[Tag]):
    """Tag operations."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, TAGS, page_size=page_size)

    async def get_by_name(self, name: str) -> Tag | None:
        """Find a tag by its exact name (case-insensitive)."""
        page = await self.list(page_size=1, name__iexact=name)
        return page.results[0] if page.results else None

    async def ensure(self, name: str, **kwargs: Any) -> Tag:  # noqa: ANN401
        """Get or create a tag by name.

        Args:
            name: Tag name.
            **kwargs: Additional creation fields (color, is_inbox_tag...).

        Returns:
            The existing or newly created tag.
        """
        existing = await self.get_by_name(name)
        if existing is not None:
            return existing
        logger.info("tag_created", name=name)
        return await self.create(TagCreate(name=name, **kwargs))


class CorrespondentsService(ResourceService[Correspondent]):
    """Correspondent operations."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, CORRESPONDENTS, page_size=page_size)


class DocumentTypesService(ResourceService[DocumentType]):
    """Document type operations."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, DOCUMENT_TYPES, page_size=page_size)


class StoragePathsService(ResourceService[StoragePath]):
    """Storage path operations."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, STORAGE_PATHS, page_size=page_size)


class ShareLinksService(ResourceService[ShareLink]):
    """Share link operations."""

    def __init__(
        self,
        client: PaperlessClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(client, SHARE_LINKS, page_size=page_size)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TasksService:
    """Consumption task status."""

    def __init__(self, client: PaperlessClient) -> None:
        self.client = client

    async def list(self) -> list[TaskStatus]:
        """List recent tasks (not paginated by the server)."""
        return await self.client.call(TASKS.list)

    async def get(self, task_id: str) -> TaskStatus:
        """Get the status of a task.

        A task the server does not know yet (consumption not started)
        reports as ``PENDING``.

        Args:
            task_id: The task ID (from an upload).

        Returns:
            Task status information.
        """
        tasks = await self.client.call(TASKS.list, query={"task_id": task_id})
        if tasks:
            return tasks[0]
        return TaskStatus(task_id=task_id, status=TaskState.PENDING)

    async def wait(
        self,
        task_id: str,
        *,
        timeout: float = 300.0,  # noqa: ASYNC109
        poll_interval: float = 2.0,
    ) -> TaskStatus:
        """Poll a task until it finishes.

        Args:
            task_id: The task ID.
            timeout: Maximum time to wait in seconds.
            poll_interval: Time between status checks.

        Returns:
            Final task status (SUCCESS, FAILURE or REVOKED).

        Raises:
            TimeoutError: If the task doesn't finish within ``timeout``.
        """
        loop = asyncio.get_running_loop()
        start = loop.time()

        while True:
            status = await self.get(task_id)
            if status.status.is_finished:
                return status

            if loop.time() - start >= timeout:
                msg = f"Task {task_id} did not complete within {timeout}s"
                raise TimeoutError(msg)

            await asyncio.sleep(poll_interval)

    async def acknowledge(self, task_ids: list[int]) -> None:
        """Mark tasks as acknowledged so they leave the task list.

        Args:
            task_ids: Numeric task IDs (``TaskStatus`` rows, not task UUIDs).
        """
        await self.client.call(TASKS.acknowledge, json={"tasks": task_ids})
