"""Tests for pydantic-settings-backed shared configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

from packages.cmis_shared.config import load_settings, resolve_component_settings
from resources.adapters.cmis_transport.component import RESOURCE_COMPONENT_ID
from resources.adapters.cmis_transport.config import CmisTransportSettings
from services.state.object_service.component import SERVICE_COMPONENT_ID
from services.state.object_service.config import ObjectServiceSettings


def test_load_settings_uses_cmis_precedence_cascade(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Init params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "cmis.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "  environment: staging",
                "components:",
                "  adapter:",
                "    cmis_transport:",
                "      base_url: https://repo.example.test/cmis/",
                "      timeout_seconds: 5",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("CMIS_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv(
        "CMIS_COMPONENTS__ADAPTER__CMIS_TRANSPORT__TIMEOUT_SECONDS", "12.5"
    )

    settings = load_settings(
        config_path=config_file, logging={"level": "DEBUG"}
    )

    transport = resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=CmisTransportSettings,
    )
    service = resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=ObjectServiceSettings,
    )

    assert settings.logging.level == "DEBUG"
    assert settings.logging.environment == "staging"
    assert transport.base_url == "https://repo.example.test/cmis"
    assert transport.timeout_seconds == 12.5
    assert service == ObjectServiceSettings()


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "missing.yaml")

    assert settings.logging.level == "INFO"
    assert settings.logging.json_output is True
    assert settings.observability.public_api.otel.meter_name == "cmis.public_api"
    assert (
        settings.observability.public_api.otel.metric_public_api_errors_total
        == "cmis_public_api_errors_total"
    )


def test_flat_component_keys_are_rejected(tmp_path: Path) -> None:
    """Component settings must live under their kind namespace."""
    config_file = tmp_path / "cmis.yaml"
    config_file.write_text(
        "components:\n  adapter_cmis_transport:\n    timeout_seconds: 5\n",
        encoding="utf-8",
    )

    with pytest.raises(ValidationError, match="components.adapter.cmis_transport"):
        load_settings(config_path=config_file)


def test_resolve_component_settings_rejects_unknown_kinds(tmp_path: Path) -> None:
    """Only service and adapter component ids are resolvable."""

    class _Settings(BaseModel):
        value: int = 1

    settings = load_settings(config_path=tmp_path / "missing.yaml")

    with pytest.raises(ValueError, match="unsupported component id"):
        resolve_component_settings(
            settings=settings, component_id="substrate_postgres", model=_Settings
        )
    with pytest.raises(ValueError, match="unsupported component id"):
        resolve_component_settings(
            settings=settings, component_id="transport", model=_Settings
        )
