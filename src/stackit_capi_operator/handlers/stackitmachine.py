"""Handler for STACKITMachine CRD."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, KIND_STACKIT_MACHINE
from ..controllers.base import OUTCOME_PAUSED
from ..controllers.stackitmachine import STACKITMachineReconciler
from ..utils.kube import ObjectIdentity, get_custom_objects_api
from ..utils.secrets import SecretIndex
from .base import STOP_EVENT, BaseHandler
from .shared import build_secret_manager
from .stackitcluster import RESYNC_INTERVAL


class STACKITMachineHandler(BaseHandler):
    """Handler for STACKITMachine resources."""

    def __init__(self):
        super().__init__(KIND_STACKIT_MACHINE)

    def build_reconciler(self, secret_index: SecretIndex | None) -> STACKITMachineReconciler:
        return STACKITMachineReconciler(
            get_custom_objects_api(),
            build_secret_manager(secret_index),
            stop_event=STOP_EVENT,
        )

    def reconcile(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        secret_index: SecretIndex | None,
    ) -> None:
        """Reconcile STACKITMachine resource."""
        meta = body.get("metadata", {})
        identity = ObjectIdentity(meta.get("namespace", "default"), meta.get("name", ""))
        reconciler = self.build_reconciler(secret_index)

        result = self.reconcile_with_metrics(body, status, patch, lambda: reconciler.reconcile(identity))
        if result is not None and result.outcome == OUTCOME_PAUSED:
            self.record_paused(body, status, patch)

    def delete(
        self,
        body: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        secret_index: SecretIndex | None,
    ) -> None:
        """Handle STACKITMachine resource deletion."""
        meta = body.get("metadata", {})
        identity = ObjectIdentity(meta.get("namespace", "default"), meta.get("name", ""))
        self.log_info(meta, "STACKITMachine is being deleted", event="deletion", reason="Deletion")
        reconciler = self.build_reconciler(secret_index)
        self.reconcile_with_metrics(body, status, patch, lambda: reconciler.reconcile_delete(identity))


# Global handler instance
_handler = STACKITMachineHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_STACKIT_MACHINE)
@kopf.on.update(API_GROUP_VERSION, KIND_STACKIT_MACHINE)
@kopf.on.resume(API_GROUP_VERSION, KIND_STACKIT_MACHINE)
@kopf.timer(API_GROUP_VERSION, KIND_STACKIT_MACHINE, interval=RESYNC_INTERVAL, initial_delay=RESYNC_INTERVAL)
def handle_stackit_machine(
    body: kopf.Body,
    status: kopf.Status,
    patch: kopf.Patch,
    claimed_secrets: kopf.Index,
    **kwargs: Any,
) -> None:
    """Handle STACKITMachine resource reconciliation."""
    _handler.reconcile(body, status, patch, claimed_secrets)


@kopf.on.delete(API_GROUP_VERSION, KIND_STACKIT_MACHINE)
def handle_stackit_machine_delete(
    body: kopf.Body,
    status: kopf.Status,
    patch: kopf.Patch,
    claimed_secrets: kopf.Index,
    **kwargs: Any,
) -> None:
    """Handle STACKITMachine resource deletion."""
    _handler.delete(body, status, patch, claimed_secrets)
