"""Unit tests for public API metrics concern behavior."""

from __future__ import annotations

from packages.cmis_shared.logging.public_api import (
    CompletionContext,
    InvocationContext,
    PublicApiMetricsConcern,
)


class _FakeCounter:
    """In-memory fake counter recording each add call."""

    def __init__(self) -> None:
        self.calls: list[tuple[int | float, dict[str, str]]] = []

    def add(self, amount: int | float, attributes: dict[str, str]) -> None:
        self.calls.append((amount, dict(attributes)))


class _FakeHistogram:
    """In-memory fake histogram recording each sample."""

    def __init__(self) -> None:
        self.samples: list[tuple[float, dict[str, str]]] = []

    def record(self, amount: float, attributes: dict[str, str]) -> None:
        self.samples.append((amount, dict(attributes)))


def _completion(*, success: bool, categories: list[str]) -> CompletionContext:
    return CompletionContext(
        invocation=InvocationContext(
            component_id="service_object_service",
            api_name="delete_tree",
            trace_id="t",
            envelope_id="e",
            principal="operator",
            references={"folder_id": "f"},
        ),
        success=success,
        duration_ms=12.5,
        errors=[] if success else ["FOLDER_NOT_FOUND: missing"],
        error_categories=categories,
    )


def test_metrics_concern_emits_calls_and_duration_for_success() -> None:
    """Successful completion should emit call and duration series only."""
    calls = _FakeCounter()
    durations = _FakeHistogram()
    errors = _FakeCounter()
    concern = PublicApiMetricsConcern(
        public_api_calls_total=calls,
        public_api_duration_ms=durations,
        public_api_errors_total=errors,
    )

    concern.on_completion(_completion(success=True, categories=[]))

    expected = {
        "component_id": "service_object_service",
        "api_name": "delete_tree",
        "outcome": "success",
    }
    assert calls.calls == [(1, expected)]
    assert durations.samples == [(12.5, expected)]
    assert errors.calls == []


def test_metrics_concern_emits_one_error_series_per_category() -> None:
    """Failures should count once per error category, or as unknown."""
    errors = _FakeCounter()
    concern = PublicApiMetricsConcern(
        public_api_calls_total=_FakeCounter(),
        public_api_duration_ms=_FakeHistogram(),
        public_api_errors_total=errors,
    )

    concern.on_completion(_completion(success=False, categories=["not_found"]))
    concern.on_completion(_completion(success=False, categories=[]))

    assert [attrs["error_category"] for _amount, attrs in errors.calls] == [
        "not_found",
        "unknown",
    ]
