"""Component declaration for the Object Service."""

from __future__ import annotations

from packages.cmis_shared.config import CmisSettings

SERVICE_COMPONENT_ID = "service_object_service"


def build_component(
    *, settings: CmisSettings, transport: object | None = None
) -> object:
    """Build the Object Service, constructing the HTTP transport when absent."""
    from services.state.object_service.service import build_object_service

    return build_object_service(settings=settings, transport=transport)
