"""Concrete Object Service implementation."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from packages.cmis_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.cmis_shared.errors import ErrorDetail
from packages.cmis_shared.logging import get_logger, public_api_instrumented
from resources.adapters.cmis_transport import (
    CmisTransport,
    ObjectOperation,
    RepositoryMetadata,
)
from services.state.object_service.acl import normalize_delta
from services.state.object_service.change_token import ChangeTokenGuard
from services.state.object_service.codec import (
    DescendantNode,
    MalformedResponseError,
    decode_allowable_actions,
    decode_content_stream,
    decode_created_id,
    decode_descendants,
    decode_id_and_token,
    decode_object,
    decode_properties_response,
    decode_renditions,
    encode_acl_delta,
    encode_content_stream,
    encode_extension,
    encode_id_list,
    encode_properties,
    parameters,
)
from services.state.object_service.component import SERVICE_COMPONENT_ID
from services.state.object_service.config import ObjectServiceSettings
from services.state.object_service.content_stream import ContentStreamChannel
from services.state.object_service.coordinator import (
    BulkUpdateCoordinator,
    TreeDeletionCoordinator,
)
from services.state.object_service.domain import (
    AllowableActions,
    BaseTypeId,
    BulkUpdateEntry,
    BulkUpdateResult,
    ContentStream,
    Extension,
    FailedToDelete,
    ObjectData,
    ObjectIdAndChangeToken,
    Properties,
    PropertyIds,
    Rendition,
)
from services.state.object_service.errors import (
    CONSTRAINT_VIOLATION,
    FOLDER_NOT_FOUND,
    OBJECT_NOT_FOUND,
    constraint_violation,
    error_metadata,
    invalid_argument,
    malformed_response,
    stream_closed,
    transport_failure_to_error,
    unexpected_error,
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
from services.state.object_service.service import ObjectService
from services.state.object_service.validation import (
    BulkUpdateRequest,
    ContentRangeRequest,
    CreateFolderRequest,
    CreateFromSourceRequest,
    CreateRelationshipRequest,
    CreateRequest,
    DeleteTreeRequest,
    MoveObjectRequest,
    MutationRequest,
    ObjectRequest,
    PropertiesRequest,
    ReadObjectRequest,
    ReadPathRequest,
    RenditionsRequest,
    UpdatePropertiesRequest,
)

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class DefaultObjectService(ObjectService):
    """Default Object Service dispatching every operation through a transport."""

    def __init__(
        self,
        *,
        settings: ObjectServiceSettings,
        transport: CmisTransport,
        metadata: RepositoryMetadata | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._metadata = metadata
        self._bulk = BulkUpdateCoordinator(
            transport=transport, map_failure=self._map_exception
        )
        self._tree = TreeDeletionCoordinator(
            transport=transport, map_failure=self._map_exception
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
    def create_document(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: DocumentCreateOptions | None = None,
    ) -> Envelope[str]:
        """Create one document, with optional initial content."""
        resolved = options or DocumentCreateOptions()
        return self._create(
            meta=meta,
            operation="create_document",
            wire_operation=ObjectOperation.CREATE_DOCUMENT,
            model=CreateRequest,
            repository_id=repository_id,
            properties=properties,
            options=resolved,
            extra={
                "contentStream": encode_content_stream(resolved.content_stream),
                "versioningState": resolved.versioning_state.value,
            },
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "source_id"),
    )
    def create_document_from_source(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        source_id: str,
        properties: Properties,
        options: DocumentCreateOptions | None = None,
    ) -> Envelope[str]:
        """Copy one document; content always comes from the source."""
        resolved = options or DocumentCreateOptions()
        if resolved.content_stream is not None:
            return failure(
                meta=meta,
                errors=[
                    invalid_argument(
                        "content_stream cannot be supplied when copying a document",
                        metadata=error_metadata(
                            "create_document_from_source", field="content_stream"
                        ),
                    )
                ],
            )
        return self._create(
            meta=meta,
            operation="create_document_from_source",
            wire_operation=ObjectOperation.CREATE_DOCUMENT_FROM_SOURCE,
            model=CreateFromSourceRequest,
            repository_id=repository_id,
            properties=properties,
            options=resolved,
            extra={
                "sourceId": source_id,
                "versioningState": resolved.versioning_state.value,
            },
            request_fields={"source_id": source_id},
            not_found_code=OBJECT_NOT_FOUND,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
    def create_folder(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions,
    ) -> Envelope[str]:
        """Create one folder under its required parent."""
        return self._create(
            meta=meta,
            operation="create_folder",
            wire_operation=ObjectOperation.CREATE_FOLDER,
            model=CreateFolderRequest,
            repository_id=repository_id,
            properties=properties,
            options=options,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
    def create_item(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        return self._create(
            meta=meta,
            operation="create_item",
            wire_operation=ObjectOperation.CREATE_ITEM,
            model=CreateRequest,
            repository_id=repository_id,
            properties=properties,
            options=options or CreateOptions(),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
    def create_policy(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        return self._create(
            meta=meta,
            operation="create_policy",
            wire_operation=ObjectOperation.CREATE_POLICY,
            model=CreateRequest,
            repository_id=repository_id,
            properties=properties,
            options=options or CreateOptions(),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
    def create_relationship(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        properties: Properties,
        options: CreateOptions | None = None,
    ) -> Envelope[str]:
        return self._create(
            meta=meta,
            operation="create_relationship",
            wire_operation=ObjectOperation.CREATE_RELATIONSHIP,
            model=CreateRelationshipRequest,
            repository_id=repository_id,
            properties=properties,
            options=options or CreateOptions(),
            not_found_code=OBJECT_NOT_FOUND,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def get_object(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        options: ReadOptions | None = None,
    ) -> Envelope[ObjectData]:
        """Read one object snapshot by id."""
        resolved = options or ReadOptions()
        request, errors = self._validate_request(
            meta=meta,
            operation="get_object",
            model=ReadObjectRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "filter": self._property_filter(resolved.filter),
                "rendition_filter": self._rendition_filter(resolved.rendition_filter),
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_object",
            wire_operation=ObjectOperation.GET_OBJECT,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                **_read_parameters(request.filter, request.rendition_filter, resolved),
            ),
            decode=decode_object,
            metadata=error_metadata("get_object", object_id=request.object_id),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "path"),
    )
    def get_object_by_path(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        path: str,
        options: ReadOptions | None = None,
    ) -> Envelope[ObjectData]:
        """Read one object snapshot by absolute path."""
        resolved = options or ReadOptions()
        request, errors = self._validate_request(
            meta=meta,
            operation="get_object_by_path",
            model=ReadPathRequest,
            payload={
                "repository_id": repository_id,
                "path": path,
                "filter": self._property_filter(resolved.filter),
                "rendition_filter": self._rendition_filter(resolved.rendition_filter),
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_object_by_path",
            wire_operation=ObjectOperation.GET_OBJECT_BY_PATH,
            params=parameters(
                repositoryId=request.repository_id,
                path=request.path,
                **_read_parameters(request.filter, request.rendition_filter, resolved),
            ),
            decode=decode_object,
            metadata=error_metadata("get_object_by_path", path=request.path),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def get_properties(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        filter: str | None = None,
        extension: Extension | None = None,
    ) -> Envelope[Properties]:
        request, errors = self._validate_request(
            meta=meta,
            operation="get_properties",
            model=PropertiesRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "filter": self._property_filter(filter),
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_properties",
            wire_operation=ObjectOperation.GET_PROPERTIES,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                filter=request.filter,
                extension=encode_extension(extension),
            ),
            decode=decode_properties_response,
            metadata=error_metadata("get_properties", object_id=request.object_id),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def get_allowable_actions(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        extension: Extension | None = None,
    ) -> Envelope[AllowableActions]:
        request, errors = self._validate_request(
            meta=meta,
            operation="get_allowable_actions",
            model=ObjectRequest,
            payload={"repository_id": repository_id, "object_id": object_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_allowable_actions",
            wire_operation=ObjectOperation.GET_ALLOWABLE_ACTIONS,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                extension=encode_extension(extension),
            ),
            decode=decode_allowable_actions,
            metadata=error_metadata(
                "get_allowable_actions", object_id=request.object_id
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def get_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        content_range: ContentRange | None = None,
    ) -> Envelope[ContentStream]:
        """Read content; absent offset and length mean start and end."""
        resolved = content_range or ContentRange()
        request, errors = self._validate_request(
            meta=meta,
            operation="get_content_stream",
            model=ContentRangeRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "stream_id": resolved.stream_id,
                "offset": resolved.offset,
                "length": resolved.length,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_content_stream",
            wire_operation=ObjectOperation.GET_CONTENT_STREAM,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                streamId=request.stream_id,
                offset=request.offset,
                length=request.length,
                extension=encode_extension(resolved.extension),
            ),
            decode=decode_content_stream,
            metadata=error_metadata("get_content_stream", object_id=request.object_id),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def get_renditions(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        paging: RenditionPaging | None = None,
    ) -> Envelope[list[Rendition]]:
        resolved = paging or RenditionPaging()
        request, errors = self._validate_request(
            meta=meta,
            operation="get_renditions",
            model=RenditionsRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "rendition_filter": self._rendition_filter(resolved.rendition_filter),
                "max_items": resolved.max_items,
                "skip_count": resolved.skip_count,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="get_renditions",
            wire_operation=ObjectOperation.GET_RENDITIONS,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                renditionFilter=request.rendition_filter,
                maxItems=request.max_items,
                skipCount=request.skip_count,
                extension=encode_extension(resolved.extension),
            ),
            decode=decode_renditions,
            metadata=error_metadata("get_renditions", object_id=request.object_id),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
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
        """Update properties under the caller's last observed change token."""
        request, errors = self._validate_request(
            meta=meta,
            operation="update_properties",
            model=UpdatePropertiesRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "properties": properties,
                "change_token": change_token,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._mutate(
            meta=meta,
            operation="update_properties",
            wire_operation=ObjectOperation.UPDATE_PROPERTIES,
            request=request,
            extra={
                "properties": encode_properties(request.properties),
                "extension": encode_extension(extension),
            },
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id",),
    )
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
        """Update many objects; per-entry failures are reported in the payload."""
        request, errors = self._validate_request(
            meta=meta,
            operation="bulk_update_properties",
            model=BulkUpdateRequest,
            payload={
                "repository_id": repository_id,
                "entries": tuple(entries),
                "properties": properties,
                "add_secondary_type_ids": tuple(add_secondary_type_ids),
                "remove_secondary_type_ids": tuple(remove_secondary_type_ids),
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        if len(request.entries) > self._settings.max_bulk_entries:
            return failure(
                meta=meta,
                errors=[
                    invalid_argument(
                        "entries exceed max_bulk_entries",
                        metadata=error_metadata(
                            "bulk_update_properties",
                            field="entries",
                            limit=str(self._settings.max_bulk_entries),
                        ),
                    )
                ],
            )

        result = self._bulk.run(
            repository_id=request.repository_id,
            entries=request.entries,
            properties=request.properties,
            add_secondary_type_ids=request.add_secondary_type_ids,
            remove_secondary_type_ids=request.remove_secondary_type_ids,
            extension=extension,
        )
        return success(meta=meta, payload=result)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
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
        """Set content; with ``overwrite_flag`` false existing content is kept."""
        resolved = options or SetContentOptions()
        request, errors = self._validate_request(
            meta=meta,
            operation="set_content_stream",
            model=MutationRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "change_token": change_token,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        result = self._mutate(
            meta=meta,
            operation="set_content_stream",
            wire_operation=ObjectOperation.SET_CONTENT_STREAM,
            request=request,
            extra={
                "contentStream": encode_content_stream(content_stream),
                "overwriteFlag": resolved.overwrite_flag,
                "extension": encode_extension(resolved.extension),
            },
        )
        if result.ok:
            return result
        return self._explain_constraint(
            envelope=result,
            repository_id=request.repository_id,
            type_id=self._object_type_id(
                repository_id=request.repository_id, object_id=request.object_id
            )
            if _has_constraint_error(result)
            else None,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def open_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        change_token: str | None = None,
    ) -> Envelope[ContentStreamChannel]:
        """Return a new caller-owned channel in the open state."""
        request, errors = self._validate_request(
            meta=meta,
            operation="open_content_stream",
            model=MutationRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "change_token": change_token,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return success(
            meta=meta,
            payload=ContentStreamChannel(
                repository_id=request.repository_id,
                object_id=request.object_id,
                change_token=request.change_token,
            ),
        )

    @public_api_instrumented(logger=_LOGGER, component_id=SERVICE_COMPONENT_ID)
    def append_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        channel: ContentStreamChannel,
        content_stream: ContentStream,
        is_last_chunk: bool,
        extension: Extension | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Append one chunk; a closed channel fails without any transport call."""
        metadata = error_metadata("append_content_stream", object_id=channel.object_id)
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)
        if channel.is_closed:
            return failure(
                meta=meta,
                errors=[
                    stream_closed(
                        "content stream already received its final chunk",
                        metadata=metadata,
                    )
                ],
            )
        if len(content_stream.content) > self._settings.max_chunk_bytes:
            return failure(
                meta=meta,
                errors=[
                    invalid_argument(
                        "chunk exceeds max_chunk_bytes",
                        metadata={
                            **metadata,
                            "field": "content_stream",
                            "limit": str(self._settings.max_chunk_bytes),
                        },
                    )
                ],
            )

        guard = ChangeTokenGuard(
            object_id=channel.object_id, change_token=channel.change_token
        )
        try:
            response = self._transport.invoke(
                operation=ObjectOperation.APPEND_CONTENT_STREAM,
                parameters=parameters(
                    repositoryId=channel.repository_id,
                    **guard.parameters(),
                    contentStream=encode_content_stream(content_stream),
                    isLastChunk=is_last_chunk,
                    extension=encode_extension(extension),
                ),
            )
            successor = guard.successor(response)
        except Exception as exc:  # noqa: BLE001
            return failure(
                meta=meta,
                errors=[
                    self._map_exception(
                        exc, operation="append_content_stream", metadata=metadata
                    )
                ],
            )

        channel.record_chunk(
            successor=successor,
            chunk_bytes=len(content_stream.content),
            is_last_chunk=is_last_chunk,
        )
        return success(meta=meta, payload=successor)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def delete_content_stream(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        change_token: str | None = None,
        extension: Extension | None = None,
    ) -> Envelope[ObjectIdAndChangeToken]:
        request, errors = self._validate_request(
            meta=meta,
            operation="delete_content_stream",
            model=MutationRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "change_token": change_token,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._mutate(
            meta=meta,
            operation="delete_content_stream",
            wire_operation=ObjectOperation.DELETE_CONTENT_STREAM,
            request=request,
            extra={"extension": encode_extension(extension)},
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id", "target_folder_id"),
    )
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
        """Move one object; the returned id supersedes ``object_id``."""
        request, errors = self._validate_request(
            meta=meta,
            operation="move_object",
            model=MoveObjectRequest,
            payload={
                "repository_id": repository_id,
                "object_id": object_id,
                "target_folder_id": target_folder_id,
                "source_folder_id": source_folder_id,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        fallback = ObjectIdAndChangeToken(object_id=request.object_id)
        return self._dispatch(
            meta=meta,
            operation="move_object",
            wire_operation=ObjectOperation.MOVE_OBJECT,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                targetFolderId=request.target_folder_id,
                sourceFolderId=request.source_folder_id,
                extension=encode_extension(extension),
            ),
            decode=lambda raw: decode_id_and_token(raw, fallback=fallback).object_id,
            metadata=error_metadata(
                "move_object",
                object_id=request.object_id,
                folder_id=request.target_folder_id,
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "object_id"),
    )
    def delete_object(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        object_id: str,
        options: DeleteOptions | None = None,
    ) -> Envelope[bool]:
        """Delete one object; a missing object is reported, not ignored."""
        resolved = options or DeleteOptions()
        request, errors = self._validate_request(
            meta=meta,
            operation="delete_object",
            model=ObjectRequest,
            payload={"repository_id": repository_id, "object_id": object_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        return self._dispatch(
            meta=meta,
            operation="delete_object",
            wire_operation=ObjectOperation.DELETE_OBJECT,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.object_id,
                allVersions=resolved.all_versions,
                extension=encode_extension(resolved.extension),
            ),
            decode=lambda _raw: True,
            metadata=error_metadata("delete_object", object_id=request.object_id),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("repository_id", "folder_id"),
    )
    def delete_tree(
        self,
        *,
        meta: EnvelopeMeta,
        repository_id: str,
        folder_id: str,
        options: DeleteTreeOptions | None = None,
    ) -> Envelope[FailedToDelete]:
        """Delete a folder subtree; objects left behind are the payload."""
        resolved = options or DeleteTreeOptions()
        request, errors = self._validate_request(
            meta=meta,
            operation="delete_tree",
            model=DeleteTreeRequest,
            payload={"repository_id": repository_id, "folder_id": folder_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        metadata = error_metadata("delete_tree", folder_id=request.folder_id)
        folder = self._dispatch(
            meta=meta,
            operation="delete_tree",
            wire_operation=ObjectOperation.GET_OBJECT,
            params=parameters(
                repositoryId=request.repository_id,
                objectId=request.folder_id,
                filter=f"{PropertyIds.OBJECT_ID},{PropertyIds.BASE_TYPE_ID}",
            ),
            decode=decode_object,
            metadata=metadata,
            not_found_code=FOLDER_NOT_FOUND,
        )
        if not folder.ok:
            return failure(meta=meta, errors=folder.errors)
        assert folder.payload is not None
        if folder.payload.value.base_type_id != BaseTypeId.FOLDER:
            return failure(
                meta=meta,
                errors=[
                    constraint_violation(
                        "delete_tree target is not a folder", metadata=metadata
                    )
                ],
            )

        descendants = self._dispatch(
            meta=meta,
            operation="delete_tree",
            wire_operation=ObjectOperation.GET_DESCENDANTS,
            params=parameters(
                repositoryId=request.repository_id,
                folderId=request.folder_id,
                depth=-1,
            ),
            decode=decode_descendants,
            metadata=metadata,
            not_found_code=FOLDER_NOT_FOUND,
        )
        if not descendants.ok:
            return failure(meta=meta, errors=descendants.errors)
        assert descendants.payload is not None

        result = self._tree.run(
            repository_id=request.repository_id,
            folder=DescendantNode(
                object_id=request.folder_id,
                base_type_id=BaseTypeId.FOLDER.value,
                parent_count=1,
                children=descendants.payload.value,
            ),
            all_versions=resolved.all_versions,
            unfile_objects=resolved.unfile_objects,
            continue_on_failure=resolved.continue_on_failure,
            extension=resolved.extension,
        )
        return success(meta=meta, payload=result)

    def _create(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        wire_operation: ObjectOperation,
        model: type[CreateRequest],
        repository_id: str,
        properties: Properties,
        options: CreateOptions,
        extra: Mapping[str, Any] | None = None,
        request_fields: Mapping[str, Any] | None = None,
        not_found_code: str = FOLDER_NOT_FOUND,
    ) -> Envelope[str]:
        """Validate, dispatch and explain one create operation."""
        request, errors = self._validate_request(
            meta=meta,
            operation=operation,
            model=model,
            payload={
                "repository_id": repository_id,
                "properties": properties,
                "folder_id": options.folder_id,
                "policies": options.policies,
                **(request_fields or {}),
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert request is not None

        result = self._dispatch(
            meta=meta,
            operation=operation,
            wire_operation=wire_operation,
            params=parameters(
                repositoryId=request.repository_id,
                properties=encode_properties(request.properties),
                folderId=request.folder_id,
                policies=encode_id_list(request.policies),
                extension=encode_extension(options.extension),
                **encode_acl_delta(normalize_delta(options.acl)),
                **(extra or {}),
            ),
            decode=decode_created_id,
            metadata=error_metadata(operation, folder_id=request.folder_id),
            not_found_code=not_found_code,
        )
        if result.ok:
            return result
        return self._explain_constraint(
            envelope=result,
            repository_id=request.repository_id,
            type_id=request.properties.object_type_id,
        )

    def _mutate(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        wire_operation: ObjectOperation,
        request: MutationRequest,
        extra: Mapping[str, Any],
    ) -> Envelope[ObjectIdAndChangeToken]:
        """Dispatch one change-token guarded mutation."""
        guard = ChangeTokenGuard(
            object_id=request.object_id, change_token=request.change_token
        )
        return self._dispatch(
            meta=meta,
            operation=operation,
            wire_operation=wire_operation,
            params=parameters(
                repositoryId=request.repository_id, **guard.parameters(), **extra
            ),
            decode=guard.successor,
            metadata=error_metadata(operation, object_id=request.object_id),
        )

    def _dispatch(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        wire_operation: ObjectOperation,
        params: Mapping[str, Any],
        decode: Callable[[Mapping[str, Any]], T],
        metadata: Mapping[str, str],
        not_found_code: str = OBJECT_NOT_FOUND,
    ) -> Envelope[T]:
        """Invoke the transport once and decode its response."""
        try:
            raw = self._transport.invoke(operation=wire_operation, parameters=params)
            payload = decode(raw)
        except Exception as exc:  # noqa: BLE001
            return failure(
                meta=meta,
                errors=[
                    self._map_exception(
                        exc,
                        operation=operation,
                        metadata=metadata,
                        not_found_code=not_found_code,
                    )
                ],
            )
        return success(meta=meta, payload=payload)

    def _map_exception(
        self,
        exc: Exception,
        *,
        operation: str,
        metadata: Mapping[str, str],
        not_found_code: str = OBJECT_NOT_FOUND,
    ) -> ErrorDetail:
        """Map one transport or decode exception into an error detail."""
        if isinstance(exc, MalformedResponseError):
            _LOGGER.warning(
                "%s returned a malformed response: %s", operation, exc, exc_info=exc
            )
            return malformed_response(str(exc), metadata=metadata)
        mapped = transport_failure_to_error(
            exc,
            operation=operation,
            metadata=metadata,
            not_found_code=not_found_code,
        )
        if mapped is not None:
            return mapped
        _LOGGER.warning(
            "%s failed due to unexpected error: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        return unexpected_error(exc, operation=operation, metadata=metadata)

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        model: type[BaseModel],
        payload: dict[str, Any] | None,
    ) -> tuple[Any | None, list[ErrorDetail]]:
        """Validate envelope metadata and request payload model."""
        errors = validate_meta(meta)
        if errors:
            return None, errors

        data = payload or {}
        try:
            request = model.model_validate(data)
        except ValidationError as exc:
            return None, [
                invalid_argument(
                    f"request validation failed: {err['msg']}",
                    metadata=error_metadata(
                        operation,
                        field=".".join(str(p) for p in err["loc"]) or None,
                    ),
                )
                for err in exc.errors()
            ]

        return request, []

    def _property_filter(self, value: str | None) -> str:
        return self._settings.default_property_filter if value is None else value

    def _rendition_filter(self, value: str | None) -> str:
        return self._settings.default_rendition_filter if value is None else value

    def _explain_constraint(
        self,
        *,
        envelope: Envelope[T],
        repository_id: str,
        type_id: str | None,
    ) -> Envelope[T]:
        """Attach type constraints to constraint-violation errors when known."""
        if self._metadata is None or type_id is None:
            return envelope
        if not _has_constraint_error(envelope):
            return envelope
        try:
            constraints = self._metadata.type_constraints(
                repository_id=repository_id, type_id=type_id
            )
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "type constraint lookup failed: type_id=%s exception_type=%s",
                type_id,
                type(exc).__name__,
                exc_info=exc,
            )
            return envelope
        if constraints is None:
            return envelope

        details = {
            "type_id": constraints.type_id,
            "type_creatable": str(constraints.creatable).lower(),
            "type_fileable": str(constraints.fileable).lower(),
            "type_versionable": str(constraints.versionable).lower(),
            "content_stream_allowed": constraints.content_stream_allowed,
        }
        errors = [
            replace(error, metadata={**error.metadata, **details})
            if error.is_code(CONSTRAINT_VIOLATION)
            else error
            for error in envelope.errors
        ]
        return failure(meta=envelope.metadata, errors=errors)

    def _object_type_id(self, *, repository_id: str, object_id: str) -> str | None:
        """Look up an object's type id for error explanations only."""
        if self._metadata is None:
            return None
        try:
            raw = self._transport.invoke(
                operation=ObjectOperation.GET_PROPERTIES,
                parameters={
                    "repositoryId": repository_id,
                    "objectId": object_id,
                    "filter": PropertyIds.OBJECT_TYPE_ID,
                },
            )
            return decode_properties_response(raw).object_type_id
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "object type lookup failed: object_id=%s exception_type=%s",
                object_id,
                type(exc).__name__,
                exc_info=exc,
            )
            return None


def _read_parameters(
    filter: str, rendition_filter: str, options: ReadOptions
) -> dict[str, Any]:
    """Encode the shared optional inputs of object reads."""
    return {
        "filter": filter,
        "includeAllowableActions": options.include_allowable_actions,
        "includeRelationships": options.include_relationships.value,
        "renditionFilter": rendition_filter,
        "includePolicyIds": options.include_policy_ids,
        "includeAcl": options.include_acl,
        "extension": encode_extension(options.extension),
    }


def _has_constraint_error(envelope: Envelope[Any]) -> bool:
    return any(error.is_code(CONSTRAINT_VIOLATION) for error in envelope.errors)
