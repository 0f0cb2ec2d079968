"""Explicit option models carrying every optional operation parameter.

Each model's field defaults are the documented default table. Callers build
them explicitly; the service fills repository-dependent defaults (property and
rendition filters) from settings when a field is left as ``None``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from services.state.object_service.domain import (
    DEFAULT_INCLUDE_RELATIONSHIPS,
    DEFAULT_UNFILE_OBJECTS,
    DEFAULT_VERSIONING_STATE,
    AclDelta,
    ContentStream,
    Extension,
    IncludeRelationships,
    UnfileObject,
    VersioningState,
)


class _Options(BaseModel):
    """Base option model with strict shape semantics."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    extension: Extension | None = None


class CreateOptions(_Options):
    """Optional inputs shared by every create operation."""

    folder_id: str | None = None
    policies: tuple[str, ...] = ()
    acl: AclDelta = Field(default_factory=AclDelta)


class DocumentCreateOptions(CreateOptions):
    """Optional inputs for document creation, from scratch or from a source."""

    content_stream: ContentStream | None = None
    versioning_state: VersioningState = DEFAULT_VERSIONING_STATE


class ReadOptions(_Options):
    """Optional inputs for object reads."""

    filter: str | None = None
    include_allowable_actions: bool = False
    include_relationships: IncludeRelationships = DEFAULT_INCLUDE_RELATIONSHIPS
    rendition_filter: str | None = None
    include_policy_ids: bool = False
    include_acl: bool = False


class ContentRange(_Options):
    """Partial content retrieval window; ``None`` means start or end."""

    stream_id: str | None = None
    offset: int | None = None
    length: int | None = None


class RenditionPaging(_Options):
    """Rendition filter and paging inputs."""

    rendition_filter: str | None = None
    max_items: int | None = None
    skip_count: int = 0


class SetContentOptions(_Options):
    """Optional inputs for replacing a content stream."""

    overwrite_flag: bool = True


class DeleteOptions(_Options):
    """Optional inputs for single-object deletion."""

    all_versions: bool = True


class DeleteTreeOptions(DeleteOptions):
    """Optional inputs for recursive folder deletion."""

    unfile_objects: UnfileObject = DEFAULT_UNFILE_OBJECTS
    continue_on_failure: bool = False
