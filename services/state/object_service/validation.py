"""Pydantic request-validation models for Object Service API."""

from __future__ import annotations

import re

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from services.state.object_service.domain import (
    BulkUpdateEntry,
    Properties,
    PropertyIds,
)

_QUERY_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_:.\-]*$")
_MIME_RE = re.compile(r"^[A-Za-z0-9!#$&^_.+\-]+/(\*|[A-Za-z0-9!#$&^_.+\-]+)$")

PROPERTY_FILTER_ALL = "*"
RENDITION_FILTER_NONE = "cmis:none"
RENDITION_FILTER_ALL = "*"


def normalize_property_filter(value: str) -> str:
    """Validate a property filter and return it without stray whitespace."""
    normalized = value.strip()
    if normalized == PROPERTY_FILTER_ALL:
        return normalized
    parts = [part.strip() for part in normalized.split(",")]
    for part in parts:
        if _QUERY_NAME_RE.match(part) is None:
            raise ValueError(
                "filter must be '*' or a comma-separated list of query names: "
                f"{value!r}"
            )
    return ",".join(parts)


def normalize_rendition_filter(value: str) -> str:
    """Validate a rendition filter and return it without stray whitespace."""
    normalized = value.strip()
    if normalized in (RENDITION_FILTER_NONE, RENDITION_FILTER_ALL):
        return normalized
    parts = [part.strip() for part in normalized.split(",")]
    for part in parts:
        if part == RENDITION_FILTER_NONE:
            raise ValueError("cmis:none cannot be combined with other rendition kinds")
        if _MIME_RE.match(part) is None and _QUERY_NAME_RE.match(part) is None:
            raise ValueError(
                "renditionFilter must be 'cmis:none', '*' or a comma-separated "
                f"list of kinds and MIME types: {value!r}"
            )
    return ",".join(parts)


def _required_id(value: str, info: ValidationInfo) -> str:
    normalized = value.strip()
    if normalized == "":
        raise ValueError(f"{info.field_name} is required")
    return normalized


def _optional_id(value: str | None, info: ValidationInfo) -> str | None:
    if value is None:
        return None
    return _required_id(value, info)


def _change_token(value: str | None, info: ValidationInfo) -> str | None:
    """``None`` skips the concurrency check; blank tokens are never valid."""
    if value is None:
        return None
    if value.strip() == "":
        raise ValueError(f"{info.field_name} must be non-empty when provided")
    return value


class _ValidationModel(BaseModel):
    """Base request model with strict shape semantics."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class RepositoryRequest(_ValidationModel):
    """Validated request shape scoped to one repository."""

    repository_id: str

    @field_validator("repository_id")
    @classmethod
    def _validate_repository_id(cls, value: str, info: ValidationInfo) -> str:
        return _required_id(value, info)


class ObjectRequest(RepositoryRequest):
    """Validated request shape for operations keyed by object id."""

    object_id: str

    @field_validator("object_id")
    @classmethod
    def _validate_object_id(cls, value: str, info: ValidationInfo) -> str:
        return _required_id(value, info)


class CreateRequest(RepositoryRequest):
    """Validated create request shape."""

    properties: Properties
    folder_id: str | None = None
    policies: tuple[str, ...] = ()

    @field_validator("properties")
    @classmethod
    def _require_type_id(cls, value: Properties) -> Properties:
        """Every create names the object type it instantiates."""
        type_id = value.object_type_id
        if type_id is None or type_id.strip() == "":
            raise ValueError(f"properties must include {PropertyIds.OBJECT_TYPE_ID}")
        return value

    @field_validator("folder_id")
    @classmethod
    def _validate_folder_id(cls, value: str | None, info: ValidationInfo) -> str | None:
        return _optional_id(value, info)

    @field_validator("policies")
    @classmethod
    def _validate_policies(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(item.strip() for item in value)
        if any(item == "" for item in normalized):
            raise ValueError("policy ids must be non-empty")
        return normalized


class CreateFolderRequest(CreateRequest):
    """Validated folder-create request; folders always have a parent."""

    @model_validator(mode="after")
    def _require_parent(self) -> CreateFolderRequest:
        if self.folder_id is None:
            raise ValueError("folder_id is required to create a folder")
        return self


class CreateRelationshipRequest(CreateRequest):
    """Validated relationship-create request; relationships are unfiled."""

    @model_validator(mode="after")
    def _reject_parent(self) -> CreateRelationshipRequest:
        if self.folder_id is not None:
            raise ValueError("relationships cannot be filed in a folder")
        return self


class CreateFromSourceRequest(CreateRequest):
    """Validated copy-document request shape."""

    source_id: str

    @field_validator("source_id")
    @classmethod
    def _validate_source_id(cls, value: str, info: ValidationInfo) -> str:
        return _required_id(value, info)


class ReadObjectRequest(ObjectRequest):
    """Validated get-object request shape."""

    filter: str
    rendition_filter: str

    @field_validator("filter")
    @classmethod
    def _validate_filter(cls, value: str) -> str:
        return normalize_property_filter(value)

    @field_validator("rendition_filter")
    @classmethod
    def _validate_rendition_filter(cls, value: str) -> str:
        return normalize_rendition_filter(value)


class ReadPathRequest(RepositoryRequest):
    """Validated get-object-by-path request shape."""

    path: str
    filter: str
    rendition_filter: str

    @field_validator("path")
    @classmethod
    def _validate_path(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("path must be absolute")
        return normalized

    @field_validator("filter")
    @classmethod
    def _validate_filter(cls, value: str) -> str:
        return normalize_property_filter(value)

    @field_validator("rendition_filter")
    @classmethod
    def _validate_rendition_filter(cls, value: str) -> str:
        return normalize_rendition_filter(value)


class PropertiesRequest(ObjectRequest):
    """Validated get-properties request shape."""

    filter: str

    @field_validator("filter")
    @classmethod
    def _validate_filter(cls, value: str) -> str:
        return normalize_property_filter(value)


class ContentRangeRequest(ObjectRequest):
    """Validated get-content-stream request shape."""

    stream_id: str | None = None
    offset: int | None = Field(default=None, ge=0)
    length: int | None = Field(default=None, gt=0)

    @field_validator("stream_id")
    @classmethod
    def _validate_stream_id(cls, value: str | None, info: ValidationInfo) -> str | None:
        return _optional_id(value, info)


class RenditionsRequest(ObjectRequest):
    """Validated get-renditions request shape."""

    rendition_filter: str
    max_items: int | None = Field(default=None, gt=0)
    skip_count: int = Field(default=0, ge=0)

    @field_validator("rendition_filter")
    @classmethod
    def _validate_rendition_filter(cls, value: str) -> str:
        return normalize_rendition_filter(value)


class MutationRequest(ObjectRequest):
    """Validated request shape for mutations guarded by a change token."""

    change_token: str | None = None

    @field_validator("change_token")
    @classmethod
    def _validate_change_token(
        cls, value: str | None, info: ValidationInfo
    ) -> str | None:
        return _change_token(value, info)


class UpdatePropertiesRequest(MutationRequest):
    """Validated update-properties request shape."""

    properties: Properties


class MoveObjectRequest(ObjectRequest):
    """Validated move-object request shape."""

    target_folder_id: str
    source_folder_id: str

    @field_validator("target_folder_id", "source_folder_id")
    @classmethod
    def _validate_folder_ids(cls, value: str, info: ValidationInfo) -> str:
        return _required_id(value, info)

    @model_validator(mode="after")
    def _require_distinct_folders(self) -> MoveObjectRequest:
        if self.target_folder_id == self.source_folder_id:
            raise ValueError("target_folder_id must differ from source_folder_id")
        return self


class DeleteTreeRequest(RepositoryRequest):
    """Validated delete-tree request shape."""

    folder_id: str

    @field_validator("folder_id")
    @classmethod
    def _validate_folder_id(cls, value: str, info: ValidationInfo) -> str:
        return _required_id(value, info)


class BulkUpdateRequest(RepositoryRequest):
    """Validated bulk-update request shape."""

    entries: tuple[BulkUpdateEntry, ...] = Field(min_length=1)
    properties: Properties
    add_secondary_type_ids: tuple[str, ...] = ()
    remove_secondary_type_ids: tuple[str, ...] = ()

    @field_validator("entries")
    @classmethod
    def _validate_entries(
        cls, value: tuple[BulkUpdateEntry, ...]
    ) -> tuple[BulkUpdateEntry, ...]:
        """Entries need distinct non-blank ids and usable change tokens."""
        seen: set[str] = set()
        for entry in value:
            if entry.object_id.strip() == "":
                raise ValueError("entry object ids must be non-empty")
            if entry.change_token is not None and entry.change_token.strip() == "":
                raise ValueError(
                    f"entry {entry.object_id} has an empty change token"
                )
            if entry.object_id in seen:
                raise ValueError(f"entry {entry.object_id} is listed more than once")
            seen.add(entry.object_id)
        return value

    @field_validator("add_secondary_type_ids", "remove_secondary_type_ids")
    @classmethod
    def _validate_type_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(item.strip() for item in value)
        if any(item == "" for item in normalized):
            raise ValueError("secondary type ids must be non-empty")
        return normalized

    @model_validator(mode="after")
    def _require_change(self) -> BulkUpdateRequest:
        """Something must change, and no type may be both added and removed."""
        if (
            len(self.properties.values) == 0
            and not self.add_secondary_type_ids
            and not self.remove_secondary_type_ids
        ):
            raise ValueError(
                "bulk update needs properties or secondary type changes"
            )
        overlap = set(self.add_secondary_type_ids) & set(
            self.remove_secondary_type_ids
        )
        if overlap:
            raise ValueError(
                f"secondary types both added and removed: {', '.join(sorted(overlap))}"
            )
        return self
