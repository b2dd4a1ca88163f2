"""One object exposing every resource service over a shared client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from paperless_client.core.client import PaperlessClient
from paperless_client.core.errors import PaperlessError
from paperless_client.resources.services import (
    DEFAULT_PAGE_SIZE,
    CorrespondentsService,
    DocumentsService,
    DocumentTypesService,
    ShareLinksService,
    StoragePathsService,
    TagsService,
    TasksService,
)


if TYPE_CHECKING:
    from paperless_client.config import Settings
    from paperless_client.core.transport import Transport


__all__ = ["PaperlessAPI"]


class PaperlessAPI:
    """Typed access to the Paperless-ngx API.

    Example:
        ```python
        async with PaperlessAPI.from_settings(load_settings()) as api:
            inbox = await api.tags.ensure("inbox", is_inbox_tag=True)
            async for doc in api.documents.iterate(tags__id__all=inbox.id):
                print(doc.title)
        ```

    Attributes:
        client: The underlying client facade.
        documents: Documents, including upload and download.
        tags: Tags.
        correspondents: Correspondents.
        document_types: Document types.
        storage_paths: Storage paths.
        share_links: Share links.
        tasks: Consumption tasks.
    """

    def __init__(self, client: PaperlessClient, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.client = client
        self.documents = DocumentsService(client, page_size=page_size)
        self.tags = TagsService(client, page_size=page_size)
        self.correspondents = CorrespondentsService(client, page_size=page_size)
        self.document_types = DocumentTypesService(client, page_size=page_size)
        self.storage_paths = StoragePathsService(client, page_size=page_size)
        self.share_links = ShareLinksService(client, page_size=page_size)
        self.tasks = TasksService(client)

    @classmethod
    def from_settings(cls, settings: Settings, *, transport: Transport | None = None) -> Self:
        """Build the client and services from loaded settings."""
        client = PaperlessClient.from_settings(settings, transport=transport)
        return cls(client, page_size=settings.pagination.page_size)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying client."""
        await self.client.close()

    async def health_check(self) -> bool:
        """Check if Paperless-ngx is reachable and accepts our credentials.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            await self.tags.list(page_size=1)
        except PaperlessError:
            return False
        return True
