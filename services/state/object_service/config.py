"""Pydantic settings for Object Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.cmis_shared.config import CmisSettings, resolve_component_settings
from services.state.object_service.component import SERVICE_COMPONENT_ID
from services.state.object_service.validation import (
    normalize_property_filter,
    normalize_rendition_filter,
)


class ObjectServiceSettings(BaseModel):
    """Object Service defaults and request bounds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_property_filter: str = "*"
    default_rendition_filter: str = "cmis:none"
    max_bulk_entries: int = Field(default=1000, gt=0)
    max_chunk_bytes: int = Field(default=64 * 1024 * 1024, gt=0)

    @field_validator("default_property_filter")
    @classmethod
    def _validate_property_filter(cls, value: str) -> str:
        return normalize_property_filter(value)

    @field_validator("default_rendition_filter")
    @classmethod
    def _validate_rendition_filter(cls, value: str) -> str:
        return normalize_rendition_filter(value)


def resolve_object_service_settings(settings: CmisSettings) -> ObjectServiceSettings:
    """Resolve settings from ``components.service.object_service``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=ObjectServiceSettings,
    )
