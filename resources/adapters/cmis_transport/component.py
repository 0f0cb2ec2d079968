"""Component declaration for the CMIS HTTP transport adapter."""

from __future__ import annotations

from packages.cmis_shared.config import CmisSettings

RESOURCE_COMPONENT_ID = "adapter_cmis_transport"


def build_component(*, settings: CmisSettings) -> object:
    """Build the HTTP transport from resolved runtime settings."""
    from resources.adapters.cmis_transport.config import (
        resolve_cmis_transport_settings,
    )
    from resources.adapters.cmis_transport.http_transport import HttpJsonTransport

    return HttpJsonTransport(settings=resolve_cmis_transport_settings(settings))
