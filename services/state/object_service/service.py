"""Authoritative in-process Python API for the Object Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from packages.cmis_shared.config import CmisSettings
from packages.cmis_shared.envelope import Envelope, EnvelopeMeta
from resources.adapters.cmis_transport import CmisTransport, RepositoryMetadata
from services.state.object_service.content_stream import ContentStreamChannel
from services.state.object_service.domain import (
    AllowableActions,
    BulkUpdateEntry,
    BulkUpdateResult,
    ContentStream,
    Extension,
    FailedToDelete,
    ObjectData,
    ObjectIdAndChangeToken,
    Properties,
    Rendition,
)
from services.state.object_service.options import (
    ContentRange,
    CreateOptions,
    DeleteOptions,
    DeleteTreeOptions,
    DocumentCreateOptions,
    ReadOptions,
    RenditionPaging,
    SetContentOptions,
)


class ObjectService(ABC):
    """Public API for repository object lifecycle operations.

    Every operation returns an envelope. Single-object failures are reported
    as envelope errors; batch and recursive operations report per-item
    failures inside their payload on an ok envelope.
    """

    @abstractmethod
    def create_document(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: DocumentCreateOptions | None = None,
    ) -> Envelope[str]:
        """Create one document and return its new object id."""

    @abstractmethod
    def create_document_from_source(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        source_id: str,
        properties: Properties,
        options: DocumentCreateOptions | None = None,
    ) -> Envelope[str]:
        """Copy one document, applying ``properties`` over the source's."""

    @abstractmethod
    def create_folder(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions,
    ) -> Envelope[str]:
        """Create one folder under ``options.folder_id``."""

    @abstractmethod
    def create_item(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        """Create one item object."""

    @abstractmethod
    def create_policy(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        """Create one policy object."""

    @abstractmethod
    def create_relationship(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        """Create one unfiled relationship object."""

    @abstractmethod
    def get_object(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        options: ReadOptions | None = None,
    ) -> Envelope[ObjectData]:
        """Read one object snapshot by id."""

    @abstractmethod
    def get_object_by_path(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        path: str,
        options: ReadOptions | None = None,
    ) -> Envelope[ObjectData]:
        """Read one object snapshot by absolute path."""

    @abstractmethod
    def get_properties(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        filter: str | None = None,
        extension: Extension | None = None,
    ) -> Envelope[Properties]:
        """Read the properties of one object."""

    @abstractmethod
    def get_allowable_actions(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        extension: Extension | None = None,
    ) -> Envelope[AllowableActions]:
        """Read the actions the caller may currently perform on one object."""

    @abstractmethod
    def get_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        content_range: ContentRange | None = None,
    ) -> Envelope[ContentStream]:
        """Read all or part of one object's content stream."""

    @abstractmethod
    def get_renditions(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        paging: RenditionPaging | None = None,
    ) -> Envelope[list[Rendition]]:
        """Read one page of an object's renditions."""

    @abstractmethod
    def update_properties(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        properties: Properties,
        change_token: str | None = None,
        extension: Extension | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Update properties and return the successor pair."""

    @abstractmethod
    def bulk_update_properties(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        entries: Sequence[BulkUpdateEntry],
        properties: Properties,
        add_secondary_type_ids: Sequence[str] = (),
        remove_secondary_type_ids: Sequence[str] = (),
        extension: Extension | None = None,
    ) -> Envelope[BulkUpdateResult]:
        """Apply one update to many objects, best effort per entry."""

    @abstractmethod
    def set_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        content_stream: ContentStream,
        change_token: str | None = None,
        options: SetContentOptions | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Replace or set one object's content stream."""

    @abstractmethod
    def open_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        change_token: str | None = None,
    ) -> Envelope[ContentStreamChannel]:
        """Start a chunked append sequence without contacting the repository."""

    @abstractmethod
    def append_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        channel: ContentStreamChannel,
        content_stream: ContentStream,
        is_last_chunk: bool,
        extension: Extension | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Append one chunk through an open channel."""

    @abstractmethod
    def delete_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        change_token: str | None = None,
        extension: Extension | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Remove one object's content stream."""

    @abstractmethod
    def move_object(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        target_folder_id: str,
        source_folder_id: str,
        extension: Extension | None = None,
    ) -> Envelope[str]:
        """Move one object between folders and return its (possibly new) id."""

    @abstractmethod
    def delete_object(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        options: DeleteOptions | None = None,
    ) -> Envelope[bool]:
        """Delete one object, by default with its whole version series."""

    @abstractmethod
    def delete_tree(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        folder_id: str,
        options: DeleteTreeOptions | None = None,
    ) -> Envelope[FailedToDelete]:
        """Delete a folder and its subtree; report objects left behind."""


def build_object_service(
    *,
    settings: CmisSettings,
    transport: CmisTransport | None = None,
    metadata: RepositoryMetadata | None = None,
) -> ObjectService:
    """Build the default Object Service from typed settings."""
    from resources.adapters.cmis_transport import (
        HttpJsonTransport,
        resolve_cmis_transport_settings,
    )
    from services.state.object_service.config import resolve_object_service_settings
    from services.state.object_service.implementation import DefaultObjectService

    if transport is None:
        http_transport = HttpJsonTransport(
            settings=resolve_cmis_transport_settings(settings)
        )
        transport = http_transport
        if metadata is None:
            metadata = http_transport
    return DefaultObjectService(
        settings=resolve_object_service_settings(settings),
        transport=transport,
        metadata=metadata,
    )
