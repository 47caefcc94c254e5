"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

import kopf

from .. import metrics
from ..constants import COND_PAUSED, CONTROLLER_NAME
from ..controllers.base import ReconcileResult
from ..logging import log_resource_event
from ..utils.conditions import (
    is_true,
    set_credentials_ready_condition,
    set_paused_condition,
    set_ready_condition,
)
from ..utils.context import reconcile_context
from ..utils.errors import (
    ConfigurationError,
    ConflictError,
    ReconcileCancelledError,
    TransientError,
    sanitize_exception,
)
from ..utils.events import emit_reconcile_failed, emit_reconcile_paused, emit_reconcile_started

# Set when the operator shuts down; reconcilers stop at their next step
STOP_EVENT = threading.Event()

CONFIGURATION_ERROR_DELAY = 60.0
CONFLICT_DELAY = 1.0
TRANSIENT_ERROR_DELAY = 10.0


class BaseHandler:
    """Base class for all CRD handlers with common functionality."""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "STACKITCluster")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message."""
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def handle_reconciliation_error(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: Exception,
    ) -> None:
        """Record a failed pass on the object and hand the retry decision to kopf.

        The Ready condition goes False; configuration errors also mark the
        credentials invalid. kopf retries ConfigurationError and transient
        failures after a delay and any other error with its default backoff.

        Raises:
            kopf.TemporaryError: For configuration, conflict and transient errors
            Exception: Any other error, unchanged
        """
        meta = body.get("metadata", {})
        sanitized_error = sanitize_exception(error)
        error_type = type(error).__name__

        self.log_error(meta, "Reconciliation failed", error=error, reason="ReconciliationFailed")
        emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
        metrics.error_total.labels(kind=self.kind, error_type=error_type).inc()

        conditions = list(status.get("conditions", []))
        conditions = set_ready_condition(conditions, False, sanitized_error, reason=error_type)
        if isinstance(error, ConfigurationError):
            conditions = set_credentials_ready_condition(conditions, False, sanitized_error)
        patch.status["conditions"] = conditions

        if isinstance(error, ConfigurationError):
            raise kopf.TemporaryError(sanitized_error, delay=CONFIGURATION_ERROR_DELAY) from error
        if isinstance(error, ConflictError):
            raise kopf.TemporaryError(sanitized_error, delay=CONFLICT_DELAY) from error
        if isinstance(error, TransientError):
            raise kopf.TemporaryError(sanitized_error, delay=TRANSIENT_ERROR_DELAY) from error
        raise error

    def record_paused(self, body: dict[str, Any], status: dict[str, Any], patch: kopf.Patch) -> None:
        """Mark the object as paused; nothing else is written while its Cluster is paused.

        An object already marked paused gets neither a new patch nor a new event.
        """
        conditions = list(status.get("conditions", []))
        if is_true(conditions, COND_PAUSED):
            return
        conditions = set_paused_condition(conditions, True)
        patch.status["conditions"] = conditions
        emit_reconcile_paused(body)

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        reconcile_fn: Callable[[], ReconcileResult],
    ) -> ReconcileResult | None:
        """Execute one reconcile pass with metrics, logging and error handling.

        Args:
            body: Resource body as delivered by kopf
            status: Resource status
            patch: Kopf patch object
            reconcile_fn: Function running the pass

        Returns:
            The pass result, or None if the operator is shutting down
        """
        meta = body.get("metadata", {})
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()
        emit_reconcile_started(body)

        start_time = time.time()
        resource = f"{self.kind} {meta.get('namespace', 'default')}/{meta.get('name', 'unknown')}"
        with reconcile_context(meta.get("uid", "unknown"), resource):
            try:
                result = reconcile_fn()
            except ReconcileCancelledError as e:
                self.log_info(meta, str(e), event="cancelled", reason="Cancelled")
                metrics.reconcile_total.labels(kind=self.kind, result="cancelled").inc()
                return None
            except Exception as e:
                metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
                self.handle_reconciliation_error(body, status, patch, e)
            else:
                metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
                self.log_info(meta, f"Reconciliation finished: {result.outcome}", event="reconciled", reason=result.outcome)
                return result
            finally:
                duration = time.time() - start_time
                metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)
