"""Tests for envelope metadata, model and builder behavior."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from packages.cmis_shared.envelope import (
    Envelope,
    EnvelopeKind,
    EnvelopeMeta,
    empty,
    failure,
    new_meta,
    normalize_meta,
    success,
    validate_meta,
    with_error,
)
from packages.cmis_shared.errors import ErrorCategory, ErrorDetail, codes


def _meta() -> EnvelopeMeta:
    """Return deterministic metadata for envelope tests."""
    return new_meta(
        kind=EnvelopeKind.RESULT,
        source="service_object_service",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC),
        envelope_id="env-1",
        trace_id="trace-1",
    )


def _error(
    code: str = "VALIDATION_ERROR",
    category: ErrorCategory = ErrorCategory.VALIDATION,
) -> ErrorDetail:
    """Return a deterministic error detail for envelope tests."""
    return ErrorDetail(code=code, message="Invalid input", category=category)


def test_success_builder_returns_ok_envelope_with_payload() -> None:
    """success should build an ok envelope with payload and no errors."""
    envelope = success(meta=_meta(), payload={"object_id": "doc-1"})

    assert envelope.ok is True
    assert envelope.has_payload is True
    assert envelope.payload is not None
    assert envelope.payload.value == {"object_id": "doc-1"}
    assert envelope.errors == []
    assert envelope.first_error() is None


def test_failure_builder_returns_non_ok_envelope_with_errors() -> None:
    """failure should build a non-ok envelope containing provided errors."""
    envelope = failure(
        meta=_meta(),
        errors=[
            _error("CONNECTIVITY_FAILURE", ErrorCategory.DEPENDENCY),
            _error("INVALID_ARGUMENT"),
        ],
    )

    assert envelope.ok is False
    assert envelope.has_payload is False
    assert [item.code for item in envelope.errors] == [
        "CONNECTIVITY_FAILURE",
        "INVALID_ARGUMENT",
    ]
    first = envelope.first_error()
    assert first is not None
    assert first.is_code("CONNECTIVITY_FAILURE") is True
    assert envelope.has_error_category(ErrorCategory.DEPENDENCY) is True
    assert envelope.has_error_category(ErrorCategory.NOT_FOUND) is False


def test_empty_builder_returns_ok_envelope_without_payload() -> None:
    """empty should build an ok envelope without payload or errors."""
    envelope = empty(meta=_meta())

    assert envelope.ok is True
    assert envelope.payload is None


def test_with_error_appends_error_without_mutating_original_envelope() -> None:
    """with_error should append one error and keep original envelope unchanged."""
    original = success(meta=_meta(), payload={"object_id": "doc-1"})
    updated = with_error(envelope=original, error=_error("OBJECT_NOT_FOUND"))

    assert original.errors == []
    assert [item.code for item in updated.errors] == ["OBJECT_NOT_FOUND"]
    assert updated.payload == original.payload
    assert updated.metadata == original.metadata
    assert updated.ok is False


def test_envelope_model_validation_rejects_invalid_metadata_shape() -> None:
    """Envelope model validation should fail for malformed metadata."""
    with pytest.raises(ValidationError):
        Envelope[int].model_validate(
            {"metadata": {"kind": "result"}, "payload": {"value": 1}, "errors": []}
        )


def test_new_meta_generates_ids_and_normalizes_naive_timestamp() -> None:
    """new_meta should create ids and attach UTC to naive timestamps."""
    timestamp = datetime(2026, 1, 1, 12, 0, 0)

    meta = new_meta(
        kind=EnvelopeKind.QUERY,
        source="service_object_service",
        principal="operator",
        timestamp=timestamp,
    )

    assert meta.envelope_id
    assert meta.trace_id
    assert meta.envelope_id != meta.trace_id
    assert meta.parent_id == ""
    assert meta.timestamp == timestamp.replace(tzinfo=UTC)


def test_new_meta_normalizes_aware_timestamp_to_utc() -> None:
    """new_meta should convert aware timestamps into UTC."""
    timestamp = datetime(2026, 1, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

    meta = new_meta(
        kind=EnvelopeKind.COMMAND,
        source="cli",
        principal="operator",
        timestamp=timestamp,
    )

    assert meta.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


def test_normalize_meta_returns_same_object_for_already_utc_timestamp() -> None:
    """normalize_meta should return the same object when timestamp is UTC."""
    meta = _meta()

    assert normalize_meta(meta) is meta


def test_validate_meta_accepts_complete_metadata() -> None:
    """Complete metadata should produce no errors."""
    assert validate_meta(_meta()) == []


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"kind": EnvelopeKind.UNSPECIFIED}, "metadata.kind must be specified"),
        ({"source": ""}, "metadata.source is required"),
        ({"principal": ""}, "metadata.principal is required"),
    ],
)
def test_validate_meta_reports_invalid_fields(
    overrides: dict[str, object], message: str
) -> None:
    """validate_meta should return one stable validation error."""
    values = {
        "kind": EnvelopeKind.COMMAND,
        "source": "cli",
        "principal": "operator",
        **overrides,
    }
    meta = new_meta(**values)  # type: ignore[arg-type]

    errors = validate_meta(meta)

    assert len(errors) == 1
    assert errors[0].code == codes.INVALID_ARGUMENT
    assert errors[0].category == ErrorCategory.VALIDATION
    assert message in errors[0].message
