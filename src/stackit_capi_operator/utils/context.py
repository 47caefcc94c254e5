"""Per-pass context carried into every log line of a reconcile."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace

correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

# "<Kind> <namespace>/<name>" of the object under reconciliation
current_resource: contextvars.ContextVar[str | None] = contextvars.ContextVar("current_resource", default=None)


def get_correlation_id() -> str | None:
    return correlation_id.get()


@contextmanager
def reconcile_context(corr_id: str, resource: str | None = None) -> Iterator[str]:
    """Bind a correlation ID, and optionally the resource, for the duration of a block.

    Args:
        corr_id: Correlation ID, usually the object's UID
        resource: Human-readable reference to the object

    Yields:
        The correlation ID
    """
    corr_token = correlation_id.set(corr_id)
    resource_token = current_resource.set(resource)
    try:
        yield corr_id
    finally:
        current_resource.reset(resource_token)
        correlation_id.reset(corr_token)


def trace_ids() -> dict[str, str]:
    """Return the IDs of the active OpenTelemetry span, or {} outside of one."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.

    Args:
        additional: Additional key-value pairs to include

    Returns:
        Dictionary with the correlation ID, resource and trace IDs that are set
    """
    ctx: dict[str, Any] = {}

    corr_id = get_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id
    resource = current_resource.get()
    if resource:
        ctx["resource_ref"] = resource
    ctx.update(trace_ids())

    if additional:
        ctx.update(additional)

    return ctx
