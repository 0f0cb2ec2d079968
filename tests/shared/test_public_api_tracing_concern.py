"""Unit tests for public API tracing concern behavior."""

from __future__ import annotations

from packages.cmis_shared.logging.public_api import (
    CompletionContext,
    InvocationContext,
    PublicApiTracingConcern,
)


class _FakeSpan:
    """In-memory fake span capturing attributes and lifecycle updates."""

    def __init__(self) -> None:
        self.attributes: dict[str, object] = {}
        self.exceptions: list[Exception] = []
        self.statuses: list[object] = []

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value

    def record_exception(self, exception: Exception) -> None:
        self.exceptions.append(exception)

    def set_status(self, status: object) -> None:
        self.statuses.append(status)


class _FakeSpanManager:
    """Fake span context manager used by the fake tracer."""

    def __init__(self, span: _FakeSpan) -> None:
        self.span = span
        self.exited = False

    def __enter__(self) -> _FakeSpan:
        return self.span

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        del exc_type, exc, tb
        self.exited = True


class _FakeTracer:
    """Fake tracer returning tracked span context managers."""

    def __init__(self) -> None:
        self.names: list[str] = []
        self.managers: list[_FakeSpanManager] = []

    def start_as_current_span(self, name: str) -> _FakeSpanManager:
        self.names.append(name)
        manager = _FakeSpanManager(_FakeSpan())
        self.managers.append(manager)
        return manager


def _invocation(api_name: str) -> InvocationContext:
    return InvocationContext(
        component_id="service_object_service",
        api_name=api_name,
        trace_id="trace-1",
        envelope_id="env-1",
        principal="operator",
        references={"object_id": "doc-1"},
    )


def test_tracing_concern_starts_and_completes_span_with_attributes() -> None:
    """Completion should set standard attributes and close span context."""
    tracer = _FakeTracer()
    concern = PublicApiTracingConcern(tracer=tracer)
    invocation = _invocation("get_object")

    concern.on_invocation(invocation)
    concern.on_completion(
        CompletionContext(
            invocation=invocation,
            success=True,
            duration_ms=12.3,
            errors=[],
            error_categories=[],
        )
    )

    assert tracer.names == ["public_api.service_object_service.get_object"]
    span = tracer.managers[0].span
    assert tracer.managers[0].exited is True
    assert span.attributes["reference.object_id"] == "doc-1"
    assert span.attributes["outcome"] == "success"
    assert span.attributes["errors.count"] == 0
    assert span.exceptions == []


def test_tracing_concern_closes_nested_spans_innermost_first() -> None:
    """Nested invocations close in reverse order; failures record one exception."""
    tracer = _FakeTracer()
    concern = PublicApiTracingConcern(tracer=tracer)
    outer = _invocation("delete_tree")
    inner = _invocation("get_object")

    concern.on_invocation(outer)
    concern.on_invocation(inner)
    concern.on_completion(
        CompletionContext(
            invocation=inner,
            success=False,
            duration_ms=1.0,
            errors=["OBJECT_NOT_FOUND: missing"],
            error_categories=["not_found"],
        )
    )

    outer_manager, inner_manager = tracer.managers
    assert inner_manager.exited is True
    assert outer_manager.exited is False
    assert inner_manager.span.attributes["outcome"] == "failure"
    assert len(inner_manager.span.exceptions) == 1

    concern.on_completion(
        CompletionContext(
            invocation=outer,
            success=True,
            duration_ms=2.0,
            errors=[],
            error_categories=[],
        )
    )
    assert outer_manager.exited is True
