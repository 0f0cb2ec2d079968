"""CMIS transport adapter resource exports."""

from resources.adapters.cmis_transport.adapter import (
    CmisTransport,
    ObjectOperation,
    RepositoryMetadata,
    TransportConnectivityError,
    TransportConstraintError,
    TransportContentAlreadyExistsError,
    TransportError,
    TransportInternalError,
    TransportInvalidArgumentError,
    TransportNotFoundError,
    TransportPermissionError,
    TransportUpdateConflictError,
    TypeConstraints,
)
from resources.adapters.cmis_transport.component import (
    RESOURCE_COMPONENT_ID,
    build_component,
)
from resources.adapters.cmis_transport.config import (
    CmisTransportSettings,
    resolve_cmis_transport_settings,
)
from resources.adapters.cmis_transport.http_transport import HttpJsonTransport

__all__ = [
    "CmisTransport",
    "CmisTransportSettings",
    "HttpJsonTransport",
    "ObjectOperation",
    "RESOURCE_COMPONENT_ID",
    "RepositoryMetadata",
    "TransportConnectivityError",
    "TransportConstraintError",
    "TransportContentAlreadyExistsError",
    "TransportError",
    "TransportInternalError",
    "TransportInvalidArgumentError",
    "TransportNotFoundError",
    "TransportPermissionError",
    "TransportUpdateConflictError",
    "TypeConstraints",
    "build_component",
    "resolve_cmis_transport_settings",
]
