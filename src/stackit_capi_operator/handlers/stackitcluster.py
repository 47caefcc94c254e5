"""Handler for STACKITCluster CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..constants import API_GROUP_VERSION, KIND_STACKIT_CLUSTER
from ..controllers.base import OUTCOME_PAUSED
from ..controllers.stackitcluster import STACKITClusterReconciler
from ..utils.kube import ObjectIdentity, get_custom_objects_api
from ..utils.secrets import SecretIndex
from .base import STOP_EVENT, BaseHandler
from .shared import build_secret_manager

RESYNC_INTERVAL = float(os.getenv("RESYNC_INTERVAL_SECONDS", "600"))


class STACKITClusterHandler(BaseHandler):
    """Handler for STACKITCluster resources."""

    def __init__(self):
        super().__init__(KIND_STACKIT_CLUSTER)

    def build_reconciler(self, secret_index: SecretIndex | None) -> STACKITClusterReconciler:
        return STACKITClusterReconciler(
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
        """Reconcile STACKITCluster resource."""
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
        """Handle STACKITCluster resource deletion."""
        meta = body.get("metadata", {})
        identity = ObjectIdentity(meta.get("namespace", "default"), meta.get("name", ""))
        self.log_info(meta, "STACKITCluster is being deleted", event="deletion", reason="Deletion")
        reconciler = self.build_reconciler(secret_index)
        self.reconcile_with_metrics(body, status, patch, lambda: reconciler.reconcile_delete(identity))


# Global handler instance
_handler = STACKITClusterHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_STACKIT_CLUSTER)
@kopf.on.update(API_GROUP_VERSION, KIND_STACKIT_CLUSTER)
@kopf.on.resume(API_GROUP_VERSION, KIND_STACKIT_CLUSTER)
@kopf.timer(API_GROUP_VERSION, KIND_STACKIT_CLUSTER, interval=RESYNC_INTERVAL, initial_delay=RESYNC_INTERVAL)
def handle_stackit_cluster(
    body: kopf.Body,
    status: kopf.Status,
    patch: kopf.Patch,
    claimed_secrets: kopf.Index,
    **kwargs: Any,
) -> None:
    """Handle STACKITCluster resource reconciliation."""
    _handler.reconcile(body, status, patch, claimed_secrets)


@kopf.on.delete(API_GROUP_VERSION, KIND_STACKIT_CLUSTER)
def handle_stackit_cluster_delete(
    body: kopf.Body,
    status: kopf.Status,
    patch: kopf.Patch,
    claimed_secrets: kopf.Index,
    **kwargs: Any,
) -> None:
    """Handle STACKITCluster resource deletion."""
    _handler.delete(body, status, patch, claimed_secrets)
