"""Transport-agnostic contracts for dispatching object operations to a repository.

The object service never speaks a wire protocol itself. It hands an
``ObjectOperation`` and a parameter mapping to a ``CmisTransport`` and gets a
decoded mapping back, or one of the typed failures below.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict


class TransportError(Exception):
    """Base exception for transport-level failures."""


class TransportConnectivityError(TransportError):
    """The repository could not be reached or did not answer in time."""


class TransportInternalError(TransportError):
    """The exchange completed but could not be encoded or decoded."""


class TransportInvalidArgumentError(TransportError):
    """The repository rejected one or more request parameters."""


class TransportNotFoundError(TransportError):
    """The referenced object, folder or path does not exist."""


class TransportPermissionError(TransportError):
    """The caller lacks the allowable action needed for the operation."""


class TransportConstraintError(TransportError):
    """The operation violates a repository or type constraint."""


class TransportContentAlreadyExistsError(TransportConstraintError):
    """Content exists and the overwrite flag was false."""


class TransportUpdateConflictError(TransportError):
    """The supplied change token no longer matches the object."""


class ObjectOperation(StrEnum):
    """Repository operations dispatched through a transport."""

    CREATE_DOCUMENT = "createDocument"
    CREATE_DOCUMENT_FROM_SOURCE = "createDocumentFromSource"
    CREATE_FOLDER = "createFolder"
    CREATE_ITEM = "createItem"
    CREATE_POLICY = "createPolicy"
    CREATE_RELATIONSHIP = "createRelationship"
    GET_OBJECT = "getObject"
    GET_OBJECT_BY_PATH = "getObjectByPath"
    GET_PROPERTIES = "getProperties"
    GET_ALLOWABLE_ACTIONS = "getAllowableActions"
    GET_CONTENT_STREAM = "getContentStream"
    GET_RENDITIONS = "getRenditions"
    UPDATE_PROPERTIES = "updateProperties"
    SET_CONTENT_STREAM = "setContentStream"
    APPEND_CONTENT_STREAM = "appendContentStream"
    DELETE_CONTENT_STREAM = "deleteContentStream"
    DELETE_OBJECT = "deleteObject"
    MOVE_OBJECT = "moveObject"
    # Navigation and multi-filing calls used by recursive deletion.
    GET_DESCENDANTS = "getDescendants"
    REMOVE_OBJECT_FROM_FOLDER = "removeObjectFromFolder"
    # Type metadata lookup used to explain constraint violations.
    GET_TYPE_DEFINITION = "getTypeDefinition"


class CmisTransport(Protocol):
    """Protocol for one synchronous request/response repository binding."""

    def invoke(
        self, *, operation: ObjectOperation, parameters: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        """Dispatch one operation and return the decoded response mapping."""


class TypeConstraints(BaseModel):
    """Subset of a type definition relevant to constraint violations."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type_id: str
    base_type_id: str = ""
    creatable: bool = True
    fileable: bool = True
    versionable: bool = False
    content_stream_allowed: str = "allowed"
    allowed_source_types: tuple[str, ...] = ()
    allowed_target_types: tuple[str, ...] = ()


class RepositoryMetadata(Protocol):
    """Protocol for read-only repository type metadata lookups."""

    def type_constraints(
        self, *, repository_id: str, type_id: str
    ) -> TypeConstraints | None:
        """Return constraints for one type id, or ``None`` when unknown."""
