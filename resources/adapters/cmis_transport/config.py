"""Pydantic settings for the CMIS HTTP transport adapter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.cmis_shared.config import CmisSettings, resolve_component_settings
from resources.adapters.cmis_transport.component import RESOURCE_COMPONENT_ID


class CmisTransportSettings(BaseModel):
    """Runtime settings for reaching the repository endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = "http://127.0.0.1:8080/cmis/json"
    api_key: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        normalized = value.strip().rstrip("/")
        if not normalized.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return normalized


def resolve_cmis_transport_settings(settings: CmisSettings) -> CmisTransportSettings:
    """Resolve adapter settings from ``components.adapter.cmis_transport``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=CmisTransportSettings,
    )
