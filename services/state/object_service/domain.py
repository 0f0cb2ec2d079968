"""Domain value types exchanged with Object Service callers."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from packages.cmis_shared.errors import ErrorDetail

_READ_CHUNK_BYTES = 64 * 1024


class VersioningState(StrEnum):
    """Versioning state assigned to a newly created document."""

    NONE = "none"
    MAJOR = "major"
    MINOR = "minor"
    CHECKEDOUT = "checkedout"


class UnfileObject(StrEnum):
    """How tree deletion treats fileable children filed elsewhere."""

    UNFILE = "unfile"
    DELETE_SINGLE_FILED = "deletesinglefiled"
    DELETE = "delete"


class IncludeRelationships(StrEnum):
    """Which relationships a read returns alongside the object."""

    NONE = "none"
    SOURCE = "source"
    TARGET = "target"
    BOTH = "both"


DEFAULT_VERSIONING_STATE = VersioningState.MAJOR
DEFAULT_UNFILE_OBJECTS = UnfileObject.DELETE
DEFAULT_INCLUDE_RELATIONSHIPS = IncludeRelationships.NONE


class BaseTypeId(StrEnum):
    """Base object types defined by the repository model."""

    DOCUMENT = "cmis:document"
    FOLDER = "cmis:folder"
    RELATIONSHIP = "cmis:relationship"
    POLICY = "cmis:policy"
    ITEM = "cmis:item"
    SECONDARY = "cmis:secondary"


class Action(StrEnum):
    """Allowable actions a repository may grant on one object."""

    CAN_DELETE_OBJECT = "canDeleteObject"
    CAN_UPDATE_PROPERTIES = "canUpdateProperties"
    CAN_GET_FOLDER_TREE = "canGetFolderTree"
    CAN_GET_PROPERTIES = "canGetProperties"
    CAN_GET_OBJECT_RELATIONSHIPS = "canGetObjectRelationships"
    CAN_GET_OBJECT_PARENTS = "canGetObjectParents"
    CAN_GET_FOLDER_PARENT = "canGetFolderParent"
    CAN_GET_DESCENDANTS = "canGetDescendants"
    CAN_MOVE_OBJECT = "canMoveObject"
    CAN_DELETE_CONTENT_STREAM = "canDeleteContentStream"
    CAN_CHECK_OUT = "canCheckOut"
    CAN_CANCEL_CHECK_OUT = "canCancelCheckOut"
    CAN_CHECK_IN = "canCheckIn"
    CAN_SET_CONTENT_STREAM = "canSetContentStream"
    CAN_GET_ALL_VERSIONS = "canGetAllVersions"
    CAN_ADD_OBJECT_TO_FOLDER = "canAddObjectToFolder"
    CAN_REMOVE_OBJECT_FROM_FOLDER = "canRemoveObjectFromFolder"
    CAN_GET_CONTENT_STREAM = "canGetContentStream"
    CAN_APPLY_POLICY = "canApplyPolicy"
    CAN_GET_APPLIED_POLICIES = "canGetAppliedPolicies"
    CAN_REMOVE_POLICY = "canRemovePolicy"
    CAN_GET_CHILDREN = "canGetChildren"
    CAN_CREATE_DOCUMENT = "canCreateDocument"
    CAN_CREATE_FOLDER = "canCreateFolder"
    CAN_CREATE_RELATIONSHIP = "canCreateRelationship"
    CAN_CREATE_ITEM = "canCreateItem"
    CAN_DELETE_TREE = "canDeleteTree"
    CAN_GET_RENDITIONS = "canGetRenditions"
    CAN_GET_ACL = "canGetACL"
    CAN_APPLY_ACL = "canApplyACL"


class PropertyIds:
    """Well-known property ids."""

    NAME = "cmis:name"
    OBJECT_ID = "cmis:objectId"
    OBJECT_TYPE_ID = "cmis:objectTypeId"
    BASE_TYPE_ID = "cmis:baseTypeId"
    CHANGE_TOKEN = "cmis:changeToken"
    PATH = "cmis:path"
    PARENT_ID = "cmis:parentId"
    CONTENT_STREAM_LENGTH = "cmis:contentStreamLength"
    CONTENT_STREAM_MIME_TYPE = "cmis:contentStreamMimeType"
    CONTENT_STREAM_FILE_NAME = "cmis:contentStreamFileName"
    SOURCE_ID = "cmis:sourceId"
    TARGET_ID = "cmis:targetId"
    SECONDARY_OBJECT_TYPE_IDS = "cmis:secondaryObjectTypeIds"


class _DomainModel(BaseModel):
    """Base for immutable domain snapshots."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class Extension(_DomainModel):
    """Opaque vendor extension forwarded without interpretation."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    payload: Any = None


class Properties(_DomainModel):
    """Property values keyed by property id.

    Multi-valued properties are held as tuples; single values as scalars.
    """

    values: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("values")
    @classmethod
    def _normalize_values(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        """Reject blank ids and freeze the mapping and multi-valued entries."""
        normalized: dict[str, Any] = {}
        for property_id, item in value.items():
            key = str(property_id).strip()
            if key == "":
                raise ValueError("property ids must be non-empty")
            if isinstance(item, (list, set, frozenset)):
                item = tuple(item)
            normalized[key] = item
        return MappingProxyType(normalized)

    @field_serializer("values")
    def _serialize_values(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    def __getitem__(self, property_id: str) -> Any:
        return self.values[property_id]

    def __contains__(self, property_id: object) -> bool:
        return property_id in self.values

    def get(self, property_id: str, default: Any = None) -> Any:
        """Return one property value, or ``default`` when absent."""
        return self.values.get(property_id, default)

    @property
    def object_type_id(self) -> str | None:
        value = self.values.get(PropertyIds.OBJECT_TYPE_ID)
        return None if value is None else str(value)


class ContentStream(_DomainModel):
    """Binary content with its MIME type, file name and declared length."""

    content: bytes
    mime_type: str = "application/octet-stream"
    filename: str | None = None
    length: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _default_length(cls, data: Any) -> Any:
        """Coerce text content to UTF-8 bytes and default the declared length."""
        if not isinstance(data, dict) or "content" not in data:
            return data
        content = data["content"]
        if isinstance(content, str):
            content = content.encode("utf-8")
        elif isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        if not isinstance(content, bytes):
            return data
        data = {**data, "content": content}
        if data.get("length") is None:
            data["length"] = len(content)
        return data

    @model_validator(mode="after")
    def _check_length(self) -> ContentStream:
        if self.length != len(self.content):
            raise ValueError(
                f"declared length {self.length} does not match "
                f"{len(self.content)} content bytes"
            )
        return self

    @field_validator("mime_type")
    @classmethod
    def _validate_mime_type(cls, value: str) -> str:
        normalized = value.strip()
        if "/" not in normalized:
            raise ValueError("mime_type must look like 'type/subtype'")
        return normalized

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO,
        *,
        mime_type: str = "application/octet-stream",
        filename: str | None = None,
        length: int | None = None,
    ) -> ContentStream:
        """Read ``stream`` to its end without closing it."""
        chunks: list[bytes] = []
        while True:
            chunk = stream.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            chunks.append(chunk)
        return cls(
            content=b"".join(chunks),
            mime_type=mime_type,
            filename=filename,
            length=length,
        )


class Ace(_DomainModel):
    """One access control entry: a principal and its granted permissions."""

    principal_id: str
    permissions: frozenset[str]
    direct: bool = True

    @field_validator("principal_id")
    @classmethod
    def _validate_principal(cls, value: str) -> str:
        normalized = value.strip()
        if normalized == "":
            raise ValueError("principal_id is required")
        return normalized

    @field_validator("permissions")
    @classmethod
    def _validate_permissions(cls, value: frozenset[str]) -> frozenset[str]:
        normalized = frozenset(item.strip() for item in value if item.strip() != "")
        if len(normalized) == 0:
            raise ValueError("an ACE must grant at least one permission")
        return normalized


class Acl(_DomainModel):
    """Access control list snapshot."""

    aces: tuple[Ace, ...] = ()
    is_exact: bool | None = None


class AclDelta(_DomainModel):
    """Additive and subtractive ACE change set applied in one mutation."""

    to_add: tuple[Ace, ...] = ()
    to_remove: tuple[Ace, ...] = ()


class AllowableActions(_DomainModel):
    """Snapshot of actions the caller may currently perform."""

    actions: frozenset[Action] = frozenset()

    def allows(self, action: Action) -> bool:
        """Return whether ``action`` is currently allowed."""
        return action in self.actions


class Rendition(_DomainModel):
    """Read-only alternate representation of an object's content."""

    stream_id: str
    kind: str
    mime_type: str
    length: int | None = None
    title: str | None = None
    height: int | None = None
    width: int | None = None
    rendition_document_id: str | None = None


class ObjectData(_DomainModel):
    """Immutable snapshot of one repository object."""

    object_id: str
    base_type_id: BaseTypeId | None = None
    properties: Properties = Field(default_factory=Properties)
    change_token: str | None = None
    allowable_actions: AllowableActions | None = None
    policy_ids: tuple[str, ...] | None = None
    acl: Acl | None = None
    renditions: tuple[Rendition, ...] = ()
    relationships: tuple[ObjectData, ...] = ()
    extension: Extension | None = None


class ObjectIdAndChangeToken(_DomainModel):
    """Optimistic-concurrency pair threaded through mutating calls."""

    object_id: str
    change_token: str | None = None


class BulkUpdateEntry(_DomainModel):
    """One entry of a batch property update, before and after."""

    object_id: str
    change_token: str | None = None
    new_object_id: str | None = None
    new_change_token: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.new_object_id is not None

    @property
    def current_object_id(self) -> str:
        return self.new_object_id if self.new_object_id is not None else self.object_id

    @property
    def current_change_token(self) -> str | None:
        if self.succeeded:
            return self.new_change_token
        return self.change_token


class BulkUpdateResult(_DomainModel):
    """Per-entry outcome of a bulk property update."""

    entries: tuple[BulkUpdateEntry, ...] = ()
    failures: Mapping[str, ErrorDetail] = Field(default_factory=dict)

    @field_validator("failures")
    @classmethod
    def _freeze_failures(
        cls, value: Mapping[str, ErrorDetail]
    ) -> Mapping[str, ErrorDetail]:
        return MappingProxyType(dict(value))

    @field_serializer("failures")
    def _serialize_failures(
        self, value: Mapping[str, ErrorDetail]
    ) -> dict[str, ErrorDetail]:
        return dict(value)

    @property
    def succeeded(self) -> tuple[BulkUpdateEntry, ...]:
        return tuple(entry for entry in self.entries if entry.succeeded)


class FailedToDelete(_DomainModel):
    """Objects a tree deletion could not remove, in walk order."""

    object_ids: tuple[str, ...] = ()
    causes: Mapping[str, ErrorDetail] = Field(default_factory=dict)

    @field_validator("causes")
    @classmethod
    def _freeze_causes(
        cls, value: Mapping[str, ErrorDetail]
    ) -> Mapping[str, ErrorDetail]:
        return MappingProxyType(dict(value))

    @field_serializer("causes")
    def _serialize_causes(
        self, value: Mapping[str, ErrorDetail]
    ) -> dict[str, ErrorDetail]:
        return dict(value)

    @property
    def is_empty(self) -> bool:
        return len(self.object_ids) == 0
