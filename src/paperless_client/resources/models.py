"""Pydantic models for Paperless-ngx API resources."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import Field

from paperless_client.core.models import Page, PaperlessBaseModel


__all__ = [
    "Correspondent",
    "CorrespondentCreate",
    "CorrespondentUpdate",
    "Document",
    "DocumentMetadata",
    "DocumentType",
    "DocumentTypeCreate",
    "DocumentTypeUpdate",
    "DocumentUpdate",
    "FileVersion",
    "ImapSecurity",
    "MatchingAlgorithm",
    "ObjectPermissions",
    "Page",
    "Permissions",
    "ShareLink",
    "ShareLinkCreate",
    "ShareLinkUpdate",
    "StoragePath",
    "StoragePathCreate",
    "StoragePathUpdate",
    "Tag",
    "TagCreate",
    "TagUpdate",
    "TaskState",
    "TaskStatus",
]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TaskState(StrEnum):
    """Celery task states used by Paperless-ngx."""

    PENDING = "PENDING"
    STARTED = "STARTED"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    RETRY = "RETRY"
    REVOKED = "REVOKED"

    @property
    def is_finished(self) -> bool:
        """Whether the task will not change state any more."""
        return self in {TaskState.SUCCESS, TaskState.FAILURE, TaskState.REVOKED}


class MatchingAlgorithm(IntEnum):
    """How Paperless-ngx auto-assigns a tag, correspondent or type."""

    NONE = 0
    ANY = 1
    ALL = 2
    LITERAL = 3
    REGEX = 4
    FUZZY = 5
    AUTO = 6


class ImapSecurity(IntEnum):
    """Transport security of a mail account."""

    NO_ENCRYPTION = 1
    SSL = 2
    STARTTLS = 3


class FileVersion(StrEnum):
    """Which stored file of a document a share link serves."""

    ARCHIVE = "archive"
    ORIGINAL = "original"


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


class Permissions(PaperlessBaseModel):
    """Users and groups granted one kind of access."""

    users: list[int] = Field(default_factory=list)
    groups: list[int] = Field(default_factory=list)


class ObjectPermissions(PaperlessBaseModel):
    """Object-level permissions (returned with ``full_perms=true``)."""

    view: Permissions = Field(default_factory=Permissions)
    change: Permissions = Field(default_factory=Permissions)


# ---------------------------------------------------------------------------
# Tags, correspondents, document types, storage paths
# ---------------------------------------------------------------------------


class Tag(PaperlessBaseModel):
    """Represents a tag in Paperless-ngx."""

    id: int
    slug: str
    name: str
    color: str = Field(default="#a6cee3")
    text_color: str = Field(default="#000000")
    match: str = ""
    matching_algorithm: MatchingAlgorithm = MatchingAlgorithm.NONE
    is_insensitive: bool = Field(default=True)
    is_inbox_tag: bool = Field(default=False)
    document_count: int = Field(default=0)
    owner: int | None = None
    permissions: ObjectPermissions | None = None
    user_can_change: bool = Field(default=True)


class TagCreate(PaperlessBaseModel):
    """Model for creating a new tag."""

    name: str
    color: str = "#a6cee3"
    text_color: str = "#000000"
    is_inbox_tag: bool = False
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


class TagUpdate(PaperlessBaseModel):
    """Partial tag update; only non-None fields are sent."""

    name: str | None = None
    color: str | None = None
    text_color: str | None = None
    is_inbox_tag: bool | None = None
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


class Correspondent(PaperlessBaseModel):
    """Represents a correspondent (sender/recipient) in Paperless-ngx."""

    id: int
    slug: str
    name: str
    match: str = ""
    matching_algorithm: MatchingAlgorithm = MatchingAlgorithm.NONE
    is_insensitive: bool = Field(default=True)
    document_count: int = Field(default=0)
    last_correspondence: datetime | None = None
    owner: int | None = None
    permissions: ObjectPermissions | None = None
    user_can_change: bool = Field(default=True)


class CorrespondentCreate(PaperlessBaseModel):
    """Model for creating a correspondent."""

    name: str
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


class CorrespondentUpdate(PaperlessBaseModel):
    """Partial correspondent update."""

    name: str | None = None
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


class DocumentType(PaperlessBaseModel):
    """Represents a document type in Paperless-ngx."""

    id: int
    slug: str
    name: str
    match: str = ""
    matching_algorithm: MatchingAlgorithm = MatchingAlgorithm.NONE
    is_insensitive: bool = Field(default=True)
    document_count: int = Field(default=0)
    owner: int | None = None
    permissions: ObjectPermissions | None = None
    user_can_change: bool = Field(default=True)


class DocumentTypeCreate(CorrespondentCreate):
    """Model for creating a document type."""


class DocumentTypeUpdate(CorrespondentUpdate):
    """Partial document type update."""


class StoragePath(PaperlessBaseModel):
    """Represents a storage path (file naming template) in Paperless-ngx."""

    id: int
    slug: str
    name: str
    path: str
    match: str = ""
    matching_algorithm: MatchingAlgorithm = MatchingAlgorithm.NONE
    is_insensitive: bool = Field(default=True)
    document_count: int = Field(default=0)
    owner: int | None = None
    permissions: ObjectPermissions | None = None
    user_can_change: bool = Field(default=True)


class StoragePathCreate(PaperlessBaseModel):
    """Model for creating a storage path."""

    name: str
    path: str
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


class StoragePathUpdate(PaperlessBaseModel):
    """Partial storage path update."""

    name: str | None = None
    path: str | None = None
    match: str | None = None
    matching_algorithm: MatchingAlgorithm | None = None
    is_insensitive: bool | None = None
    owner: int | None = None


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentMetadata(PaperlessBaseModel):
    """Document metadata returned from the metadata endpoint.

    Contains file checksums, sizes, and MIME type information.
    """

    original_checksum: str | None = None
    original_size: int | None = None
    original_mime_type: str | None = None
    media_filename: str | None = None
    has_archive_version: bool = False
    original_metadata: list[dict[str, str]] = Field(default_factory=list)
    archive_checksum: str | None = None
    archive_media_filename: str | None = None
    archive_size: int | None = None
    archive_metadata: list[dict[str, str]] = Field(default_factory=list)
    lang: str | None = None


class Document(PaperlessBaseModel):
    """Represents a document in Paperless-ngx.

    ``content`` holds the extracted text; it is truncated in listings
    unless ``truncate_content=false`` is requested.
    """

    id: int
    correspondent: int | None = None
    document_type: int | None = None
    storage_path: int | None = None
    title: str
    content: str = ""
    tags: list[int] = Field(default_factory=list)
    created: datetime
    created_date: str | None = None  # YYYY-MM-DD
    modified: datetime
    added: datetime
    archive_serial_number: int | None = None
    original_file_name: str = Field(default="")
    archived_file_name: str | None = None
    owner: int | None = None
    permissions: ObjectPermissions | None = None
    user_can_change: bool = Field(default=True)
    is_shared_by_requester: bool = Field(default=False)
    notes: list[dict[str, Any]] = Field(default_factory=list)
    custom_fields: list[dict[str, Any]] = Field(default_factory=list)


class DocumentUpdate(PaperlessBaseModel):
    """Model for updating a document via PATCH request.

    Only non-None fields are included in the request body.
    """

    title: str | None = None
    content: str | None = None
    correspondent: int | None = None
    document_type: int | None = None
    storage_path: int | None = None
    tags: list[int] | None = None
    archive_serial_number: int | None = None
    created_date: str | None = None
    owner: int | None = None


# ---------------------------------------------------------------------------
# Share links
# ---------------------------------------------------------------------------


class ShareLink(PaperlessBaseModel):
    """A public link to one document."""

    id: int
    slug: str
    document: int
    created: datetime | None = None
    expiration: datetime | None = None
    file_version: FileVersion = FileVersion.ARCHIVE
    owner: int | None = None


class ShareLinkCreate(PaperlessBaseModel):
    """Model for creating a share link."""

    document: int
    expiration: datetime | None = None
    file_version: FileVersion = FileVersion.ARCHIVE


class ShareLinkUpdate(PaperlessBaseModel):
    """Partial share link update."""

    expiration: datetime | None = None
    file_version: FileVersion | None = None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskStatus(PaperlessBaseModel):
    """Status of an asynchronous task in Paperless-ngx.

    Uploading a document returns a task ID that can be polled to check
    processing status.
    """

    task_id: str
    id: int | None = None
    task_file_name: str | None = None
    date_created: datetime | None = None
    date_done: datetime | None = None
    type: str | None = None
    status: TaskState = TaskState.PENDING
    result: str | None = None
    acknowledged: bool = False
    related_document: str | int | None = None
