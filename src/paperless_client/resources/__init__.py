"""Typed models, endpoint descriptors and services for Paperless-ngx resources.

Example:
    ```python
    from paperless_client.resources import PaperlessAPI

    async with PaperlessAPI(client) as api:
        task_id = await api.documents.upload(Path("invoice.pdf"), title="Invoice")
        status = await api.tasks.wait(task_id)
    ```
"""

from __future__ import annotations

from paperless_client.resources.api import PaperlessAPI
from paperless_client.resources.endpoints import (
    CORRESPONDENTS,
    DOCUMENT_TYPES,
    DOCUMENTS,
    SHARE_LINKS,
    STORAGE_PATHS,
    TAGS,
    TASKS,
    CrudEndpoints,
    DocumentEndpoints,
    TaskEndpoints,
)
from paperless_client.resources.models import (
    Correspondent,
    CorrespondentCreate,
    CorrespondentUpdate,
    Document,
    DocumentMetadata,
    DocumentType,
    DocumentTypeCreate,
    DocumentTypeUpdate,
    DocumentUpdate,
    FileVersion,
    ImapSecurity,
    MatchingAlgorithm,
    ObjectPermissions,
    Permissions,
    ShareLink,
    ShareLinkCreate,
    ShareLinkUpdate,
    StoragePath,
    StoragePathCreate,
    StoragePathUpdate,
    Tag,
    TagCreate,
    TagUpdate,
    TaskState,
    TaskStatus,
)
from paperless_client.resources.services import (
    CorrespondentsService,
    DocumentsService,
    DocumentTypesService,
    ResourceService,
    ShareLinksService,
    StoragePathsService,
    TagsService,
    TasksService,
)


__all__ = [
    # Endpoint descriptors
    "CORRESPONDENTS",
    "DOCUMENTS",
    "DOCUMENT_TYPES",
    "SHARE_LINKS",
    "STORAGE_PATHS",
    "TAGS",
    "TASKS",
    # Models
    "Correspondent",
    "CorrespondentCreate",
    "CorrespondentUpdate",
    # Services
    "CorrespondentsService",
    "CrudEndpoints",
    "Document",
    "DocumentEndpoints",
    "DocumentMetadata",
    "DocumentType",
    "DocumentTypeCreate",
    "DocumentTypeUpdate",
    "DocumentTypesService",
    "DocumentUpdate",
    "DocumentsService",
    "FileVersion",
    "ImapSecurity",
    "MatchingAlgorithm",
    "ObjectPermissions",
    "PaperlessAPI",
    "Permissions",
    "ResourceService",
    "ShareLink",
    "ShareLinkCreate",
    "ShareLinkUpdate",
    "ShareLinksService",
    "StoragePath",
    "StoragePathCreate",
    "StoragePathUpdate",
    "StoragePathsService",
    "Tag",
    "TagCreate",
    "TagUpdate",
    "TagsService",
    "TaskEndpoints",
    "TaskState",
    "TaskStatus",
    "TasksService",
]
