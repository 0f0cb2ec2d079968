"""Tests for the public API instrumentation decorator and its logging concern."""

from __future__ import annotations

import ast
import logging
from pathlib import Path

import pytest

from packages.cmis_shared.envelope import EnvelopeKind, failure, new_meta, success
from packages.cmis_shared.errors import ErrorCategory, ErrorDetail
from packages.cmis_shared.logging import (
    CompletionContext,
    InvocationContext,
    get_context,
    public_api_instrumented,
)

_REPO_ROOT = Path(__file__).resolve().parents[2]


class _RecordingConcern:
    """Concern fake capturing invocation and completion events."""

    def __init__(self) -> None:
        self.invocations: list[InvocationContext] = []
        self.completions: list[CompletionContext] = []

    def on_invocation(self, context: InvocationContext) -> None:
        self.invocations.append(context)

    def on_completion(self, context: CompletionContext) -> None:
        self.completions.append(context)


class _BrokenConcern:
    """Concern fake that always fails."""

    def on_invocation(self, context: InvocationContext) -> None:
        raise RuntimeError("broken")

    def on_completion(self, context: CompletionContext) -> None:
        raise RuntimeError("broken")


def _meta() -> object:
    return new_meta(kind=EnvelopeKind.QUERY, source="test", principal="operator")


def test_decorator_reports_references_and_success() -> None:
    """Invocation references come from the named keyword arguments."""
    concern = _RecordingConcern()

    @public_api_instrumented(
        component_id="service_object_service",
        id_fields=("object_id", "folder_id"),
        concerns=[concern],
    )
    def get_object(*, meta: object, object_id: str, folder_id: str | None = None):
        return success(meta=meta, payload=object_id)

    meta = _meta()
    result = get_object(meta=meta, object_id="doc-1")

    assert result.ok is True
    invocation = concern.invocations[0]
    assert invocation.api_name == "get_object"
    assert invocation.trace_id == meta.trace_id
    assert invocation.principal == "operator"
    assert invocation.references == {"object_id": "doc-1"}
    completion = concern.completions[0]
    assert completion.success is True
    assert completion.errors == []
    assert completion.duration_ms >= 0


def test_decorator_summarizes_envelope_errors() -> None:
    """Failed envelopes should report code-prefixed messages and categories."""
    concern = _RecordingConcern()

    @public_api_instrumented(component_id="service_object_service", concerns=[concern])
    def delete_object(*, meta: object):
        return failure(
            meta=meta,
            errors=[
                ErrorDetail(
                    code="OBJECT_NOT_FOUND",
                    message="missing",
                    category=ErrorCategory.NOT_FOUND,
                )
            ],
        )

    delete_object(meta=_meta())

    completion = concern.completions[0]
    assert completion.success is False
    assert completion.errors == ["OBJECT_NOT_FOUND: missing"]
    assert completion.error_categories == ["not_found"]


def test_decorator_reraises_exceptions_after_completion() -> None:
    """Exceptions propagate after an internal-category completion event."""
    concern = _RecordingConcern()

    @public_api_instrumented(component_id="adapter_cmis_transport", concerns=[concern])
    def invoke(*, operation: str):
        raise ValueError("bad operation")

    with pytest.raises(ValueError):
        invoke(operation="getObject")

    completion = concern.completions[0]
    assert completion.success is False
    assert completion.errors == ["ValueError: bad operation"]
    assert completion.error_categories == ["internal"]


def test_concern_failures_are_isolated_and_logged(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A failing concern must not break the decorated call."""
    logger = logging.getLogger("test.public_api.isolation")

    @public_api_instrumented(
        component_id="service_object_service",
        concerns=[_BrokenConcern()],
        logger=logger,
    )
    def get_properties(*, meta: object):
        return success(meta=meta, payload={})

    with caplog.at_level(logging.INFO, logger=logger.name):
        result = get_properties(meta=_meta())

    assert result.ok is True
    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("Public API instrumentation concern failed") == 2
    assert "Public API invocation" in messages
    assert "Public API completion" in messages


def test_logging_concern_binds_context_only_while_logging(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Structured fields are bound for the log call and then released."""
    logger = logging.getLogger("test.public_api.context")
    seen: list[dict[str, str]] = []

    class _Capture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            seen.append(get_context())

    handler = _Capture()
    logger.addHandler(handler)
    try:

        @public_api_instrumented(
            component_id="service_object_service",
            id_fields=("object_id",),
            logger=logger,
        )
        def update_properties(*, meta: object, object_id: str):
            return success(meta=meta, payload=object_id)

        with caplog.at_level(logging.INFO, logger=logger.name):
            update_properties(meta=_meta(), object_id="doc-1")
    finally:
        logger.removeHandler(handler)

    assert seen[0]["component_id"] == "service_object_service"
    assert seen[0]["object_id"] == "doc-1"
    assert seen[1]["event"] == "public_api_completion"
    assert get_context() == {}


def test_object_service_decorates_every_public_method() -> None:
    """Every abstract Object Service method must be instrumented."""
    contract = _public_methods(
        _REPO_ROOT / "services/state/object_service/service.py", "ObjectService"
    )
    decorated = _decorated_methods(
        _REPO_ROOT / "services/state/object_service/implementation.py",
        "DefaultObjectService",
    )

    assert contract
    assert sorted(contract - decorated) == []


def _class_node(file_path: Path, class_name: str) -> ast.ClassDef:
    """Load and return one named class node from a Python module."""
    module = ast.parse(file_path.read_text(encoding="utf-8"))
    for node in module.body:
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            return node
    raise AssertionError(f"Class not found: {class_name} in {file_path}")


def _public_methods(file_path: Path, class_name: str) -> set[str]:
    return {
        node.name
        for node in _class_node(file_path, class_name).body
        if isinstance(node, ast.FunctionDef) and not node.name.startswith("_")
    }


def _decorated_methods(file_path: Path, class_name: str) -> set[str]:
    names: set[str] = set()
    for node in _class_node(file_path, class_name).body:
        if not isinstance(node, ast.FunctionDef) or node.name.startswith("_"):
            continue
        for decorator in node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            if isinstance(target, ast.Name) and target.id == "public_api_instrumented":
                names.add(node.name)
    return names
