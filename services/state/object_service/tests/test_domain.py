"""Unit tests for the read-only mappings carried by domain values."""

from __future__ import annotations

import pytest

from packages.cmis_shared.errors import validation_error
from services.state.object_service.domain import (
    BulkUpdateResult,
    FailedToDelete,
    Properties,
)


def test_property_values_cannot_be_changed_after_construction() -> None:
    """Callers hold a view; the source dict and the view stay independent."""
    source = {"cmis:name": "a.txt"}
    properties = Properties(values=source)
    source["cmis:name"] = "b.txt"

    with pytest.raises(TypeError):
        properties.values["cmis:name"] = "c.txt"  # type: ignore[index]
    assert properties["cmis:name"] == "a.txt"
    assert properties.model_dump() == {"values": {"cmis:name": "a.txt"}}


def test_bulk_update_failures_are_read_only() -> None:
    """Per-entry failures of a bulk update cannot be added or removed."""
    error = validation_error("bad token")
    result = BulkUpdateResult(failures={"doc-1": error})

    with pytest.raises(TypeError):
        result.failures["doc-2"] = error  # type: ignore[index]
    with pytest.raises(TypeError):
        del result.failures["doc-1"]  # type: ignore[attr-defined]
    assert list(result.failures) == ["doc-1"]


def test_failed_to_delete_causes_are_read_only() -> None:
    """Recorded tree deletion causes cannot be rewritten by callers."""
    error = validation_error("locked")
    report = FailedToDelete(object_ids=("doc-1",), causes={"doc-1": error})

    with pytest.raises(TypeError):
        report.causes["doc-1"] = error  # type: ignore[index]
    assert report.causes["doc-1"].message == "locked"
