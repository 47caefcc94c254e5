"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_PAUSED,
    EVENT_REASON_RECONCILE_STARTED,
)
from .errors import sanitize_error_message

# The API server rejects event messages longer than this
MAX_EVENT_MESSAGE_LENGTH = 1024


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (must carry apiVersion, kind and metadata)
        reason: Event reason
        message: Event message, sanitized and truncated to what the API server accepts
        type_: Event type (Normal or Warning)
    """
    message = sanitize_error_message(message)
    if len(message) > MAX_EVENT_MESSAGE_LENGTH:
        message = message[: MAX_EVENT_MESSAGE_LENGTH - 3] + "..."
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_reconcile_paused(body: dict[str, Any]) -> None:
    """Emit reconcile paused event."""
    emit_event(body, EVENT_REASON_RECONCILE_PAUSED, "Linked Cluster is paused, reconciliation skipped")

