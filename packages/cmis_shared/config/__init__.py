"""Public API for shared configuration utilities."""

from .models import (
    DEFAULT_CONFIG_PATH,
    CmisSettings,
    ComponentsSettings,
    LoggingSettings,
    ObservabilitySettings,
    PublicApiOtelSettings,
    load_settings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CmisSettings",
    "ComponentsSettings",
    "LoggingSettings",
    "ObservabilitySettings",
    "PublicApiOtelSettings",
    "load_settings",
    "resolve_component_settings",
]
