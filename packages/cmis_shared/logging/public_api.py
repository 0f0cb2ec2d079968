"""Instrumentation for public object-service and transport methods.

``public_api_instrumented`` wraps one method and reports an invocation event
before the call and a completion event after it. Each event is fanned out to
independent concerns (logging, tracing, metrics); a failing concern is logged
and never affects the wrapped call.

Results are read duck-typed: anything exposing ``ok`` and ``errors`` (an
``Envelope``) is summarized from its errors; a raised exception is reported as
an ``internal`` failure and re-raised.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from functools import lru_cache, wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from packages.cmis_shared.config import PublicApiOtelSettings, load_settings

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """What is known about a call before it runs."""

    component_id: str
    api_name: str
    trace_id: str | None
    envelope_id: str | None
    principal: str | None
    references: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CompletionContext:
    """Outcome of one call, with sanitized ``CODE: message`` error summaries."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]
    error_categories: list[str]

    @property
    def outcome(self) -> str:
        return "success" if self.success else "failure"


class PublicApiInstrumentationConcern(Protocol):
    """Hook pair implemented by every instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None: ...

    def on_completion(self, context: CompletionContext) -> None: ...


class PublicApiLoggingConcern:
    """Structured INFO log per invocation; completion logs WARNING on failure."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        with log_context(_base_fields(context)):
            self._logger.info("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        values = _base_fields(context.invocation)
        values[fields.EVENT] = fields.PUBLIC_API_COMPLETION_EVENT
        values[fields.SUCCESS] = context.success
        values[fields.DURATION_MS] = context.duration_ms
        values[fields.ERRORS] = context.errors
        with log_context(values):
            level = "info" if context.success else "warning"
            getattr(self._logger, level)("Public API completion")


@dataclass(frozen=True)
class _OpenSpan:
    manager: Any
    span: Any


class PublicApiTracingConcern:
    """One span per call, named ``public_api.<component>.<method>``.

    Spans are kept on a context-local stack so nested public calls (a tree
    deletion issuing deletes) close innermost first.
    """

    def __init__(self, *, tracer: Any) -> None:
        self._tracer = tracer
        self._stack: ContextVar[tuple[_OpenSpan, ...]] = ContextVar(
            "public_api_open_spans", default=()
        )

    def on_invocation(self, context: InvocationContext) -> None:
        manager = self._tracer.start_as_current_span(
            f"public_api.{context.component_id}.{context.api_name}"
        )
        span = manager.__enter__()
        attributes: dict[str, object] = {
            fields.COMPONENT_ID: context.component_id,
            fields.API_NAME: context.api_name,
            fields.TRACE_ID: context.trace_id,
            fields.ENVELOPE_ID: context.envelope_id,
            fields.PRINCIPAL: context.principal,
        }
        attributes.update(
            {f"reference.{key}": value for key, value in context.references.items()}
        )
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        self._stack.set((*self._stack.get(), _OpenSpan(manager=manager, span=span)))

    def on_completion(self, context: CompletionContext) -> None:
        stack = self._stack.get()
        if not stack:
            return
        *rest, current = stack
        self._stack.set(tuple(rest))

        span = current.span
        span.set_attribute(fields.SUCCESS, context.success)
        span.set_attribute(fields.DURATION_MS, context.duration_ms)
        span.set_attribute(fields.OUTCOME, context.outcome)
        span.set_attribute("errors.count", len(context.errors))
        if not context.success:
            _mark_span_failed(span)
            if context.errors:
                span.record_exception(RuntimeError("; ".join(context.errors[:3])))
        current.manager.__exit__(None, None, None)


class PublicApiMetricsConcern:
    """Call counter, latency histogram and per-category error counter."""

    def __init__(
        self,
        *,
        public_api_calls_total: Any,
        public_api_duration_ms: Any,
        public_api_errors_total: Any,
    ) -> None:
        self._calls = public_api_calls_total
        self._duration = public_api_duration_ms
        self._errors = public_api_errors_total

    def on_invocation(self, context: InvocationContext) -> None:
        del context

    def on_completion(self, context: CompletionContext) -> None:
        method = {
            fields.COMPONENT_ID: context.invocation.component_id,
            fields.API_NAME: context.invocation.api_name,
        }
        attrs = {**method, fields.OUTCOME: context.outcome}
        self._calls.add(1, attributes=attrs)
        self._duration.record(context.duration_ms, attributes=attrs)
        if context.success:
            return
        for category in context.error_categories or ["unknown"]:
            self._errors.add(1, attributes={**method, fields.ERROR_CATEGORY: category})


def public_api_instrumented(
    *,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Instrument one public method.

    ``id_fields`` names keyword arguments attached to every event as
    references (``object_id``, ``folder_id``, ...). Empty values are skipped.
    OpenTelemetry tracing and metrics concerns are appended when the
    ``opentelemetry`` package is importable.
    """
    resolved: list[PublicApiInstrumentationConcern] = []
    if logger is not None:
        resolved.append(PublicApiLoggingConcern(logger=logger))
    resolved.extend(concerns or ())
    resolved.extend(
        concern
        for concern in (_otel_tracing_concern(), _otel_metrics_concern())
        if concern is not None
    )
    if not resolved:
        raise ValueError("public_api_instrumented requires at least one concern")
    hooks = tuple(resolved)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            meta = kwargs.get("meta")
            invocation = InvocationContext(
                component_id=component_id,
                api_name=name,
                trace_id=_meta_value(meta, "trace_id"),
                envelope_id=_meta_value(meta, "envelope_id"),
                principal=_meta_value(meta, "principal"),
                references={
                    key: str(kwargs[key])
                    for key in id_fields
                    if kwargs.get(key) not in (None, "")
                },
            )
            _notify(hooks, "invocation", invocation, invocation, logger)

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                completion = CompletionContext(
                    invocation=invocation,
                    success=False,
                    duration_ms=_elapsed_ms(started),
                    errors=[f"{type(exc).__name__}: {exc}"],
                    error_categories=["internal"],
                )
                _notify(hooks, "completion", completion, invocation, logger)
                raise

            errors = _error_items(result)
            ok = getattr(result, "ok", None)
            completion = CompletionContext(
                invocation=invocation,
                success=ok if isinstance(ok, bool) else not errors,
                duration_ms=_elapsed_ms(started),
                errors=[summary for summary in map(_summary, errors) if summary],
                error_categories=[
                    category for category in map(_category, errors) if category
                ],
            )
            _notify(hooks, "completion", completion, invocation, logger)
            return result

        return wrapper

    return decorator


def _notify(
    hooks: Sequence[PublicApiInstrumentationConcern],
    stage: str,
    context: InvocationContext | CompletionContext,
    invocation: InvocationContext,
    logger: Any | None,
) -> None:
    """Deliver one event to every concern, logging concern failures."""
    for hook in hooks:
        try:
            getattr(hook, f"on_{stage}")(context)
        except Exception as exc:  # noqa: BLE001
            if logger is None:
                continue
            with log_context(
                {
                    fields.EVENT: fields.PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT,
                    fields.COMPONENT_ID: invocation.component_id,
                    fields.API_NAME: invocation.api_name,
                    fields.STAGE: stage,
                    fields.CONCERN: type(hook).__name__,
                    fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
                }
            ):
                logger.warning("Public API instrumentation concern failed")


def _base_fields(context: InvocationContext) -> dict[str, object]:
    return {
        fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        fields.TRACE_ID: context.trace_id,
        fields.ENVELOPE_ID: context.envelope_id,
        fields.PRINCIPAL: context.principal,
        **context.references,
    }


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)


def _meta_value(meta: object | None, name: str) -> str | None:
    value = getattr(meta, name, None)
    return None if value in (None, "") else str(value)


def _error_items(result: object) -> list[Any]:
    errors = getattr(result, "errors", None)
    return list(errors) if isinstance(errors, (list, tuple)) else []


def _summary(error: Any) -> str | None:
    """Render ``CODE: message`` for logs; errors without a message are dropped."""
    message = getattr(error, "message", None)
    if message in (None, ""):
        return None
    code = getattr(error, "code", None)
    return str(message) if code in (None, "") else f"{code}: {message}"


def _category(error: Any) -> str | None:
    raw = getattr(error, "category", None)
    value = getattr(raw, "value", raw)
    return None if value in (None, "") else str(value)


def _mark_span_failed(span: Any) -> None:
    try:
        from opentelemetry.trace import Status, StatusCode
    except ImportError:
        return
    span.set_status(Status(StatusCode.ERROR))


@lru_cache(maxsize=1)
def _otel_settings() -> PublicApiOtelSettings:
    return load_settings().observability.public_api.otel


@lru_cache(maxsize=1)
def _otel_tracing_concern() -> PublicApiTracingConcern | None:
    try:
        from opentelemetry import trace
    except ImportError:
        return None
    tracer = trace.get_tracer(_otel_settings().tracer_name)
    return PublicApiTracingConcern(tracer=tracer)


@lru_cache(maxsize=1)
def _otel_metrics_concern() -> PublicApiMetricsConcern | None:
    try:
        from opentelemetry import metrics
    except ImportError:
        return None

    names = _otel_settings()
    meter = metrics.get_meter(names.meter_name)
    return PublicApiMetricsConcern(
        public_api_calls_total=meter.create_counter(
            name=names.metric_public_api_calls_total,
            description="Public API calls by component, method and outcome.",
            unit="1",
        ),
        public_api_duration_ms=meter.create_histogram(
            name=names.metric_public_api_duration_ms,
            description="Public API call latency.",
            unit="ms",
        ),
        public_api_errors_total=meter.create_counter(
            name=names.metric_public_api_errors_total,
            description="Public API failures by error category.",
            unit="1",
        ),
    )
