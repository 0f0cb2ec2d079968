"""Object Service native package exports."""

from packages.cmis_shared.envelope import Envelope, EnvelopeKind, EnvelopeMeta
from packages.cmis_shared.errors import ErrorCategory, ErrorDetail
from services.state.object_service.component import SERVICE_COMPONENT_ID
from services.state.object_service.config import ObjectServiceSettings
from services.state.object_service.content_stream import (
    ChannelState,
    ContentStreamChannel,
)
from services.state.object_service.domain import (
    Ace,
    Acl,
    AclDelta,
    Action,
    AllowableActions,
    BaseTypeId,
    BulkUpdateEntry,
    BulkUpdateResult,
    ContentStream,
    Extension,
    FailedToDelete,
    IncludeRelationships,
    ObjectData,
    ObjectIdAndChangeToken,
    Properties,
    PropertyIds,
    Rendition,
    UnfileObject,
    VersioningState,
)
from services.state.object_service.implementation import DefaultObjectService
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
from services.state.object_service.service import ObjectService, build_object_service

__all__ = [
    "SERVICE_COMPONENT_ID",
    "ObjectService",
    "ObjectServiceSettings",
    "DefaultObjectService",
    "build_object_service",
    "ChannelState",
    "ContentStreamChannel",
    "Ace",
    "Acl",
    "AclDelta",
    "Action",
    "AllowableActions",
    "BaseTypeId",
    "BulkUpdateEntry",
    "BulkUpdateResult",
    "ContentStream",
    "Extension",
    "FailedToDelete",
    "IncludeRelationships",
    "ObjectData",
    "ObjectIdAndChangeToken",
    "Properties",
    "PropertyIds",
    "Rendition",
    "UnfileObject",
    "VersioningState",
    "ContentRange",
    "CreateOptions",
    "DeleteOptions",
    "DeleteTreeOptions",
    "DocumentCreateOptions",
    "ReadOptions",
    "RenditionPaging",
    "SetContentOptions",
    "Envelope",
    "EnvelopeKind",
    "EnvelopeMeta",
    "ErrorCategory",
    "ErrorDetail",
]
