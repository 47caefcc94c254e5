"""Reconcile guard chain for STACKITCluster objects."""

from __future__ import annotations

import logging

from ..constants import KIND_STACKIT_CLUSTER
from ..scope.cluster import ClusterScope
from ..tracing import trace_span
from ..utils.kube import STACKIT_CLUSTER, ObjectIdentity
from ..utils.owners import get_owner_cluster, is_paused
from .base import (
    OUTCOME_NOT_FOUND,
    OUTCOME_OWNER_NOT_SET,
    OUTCOME_PAUSED,
    BaseReconciler,
    ReconcileResult,
    is_deleting,
)

logger = logging.getLogger(__name__)


class STACKITClusterReconciler(BaseReconciler):
    """Drives one STACKITCluster towards its declared state.

    A pass walks a fixed chain of preconditions and stops, without error,
    at the first one that is not met yet:

    1. the STACKITCluster still exists;
    2. the Cluster controller has set the owner reference;
    3. the Cluster is not paused.

    It then claims the STACKIT token secret, builds the load balancer client
    and opens a ClusterScope; every change made to the STACKITCluster inside
    the scope is persisted as one patch when the scope closes.
    """

    kind = KIND_STACKIT_CLUSTER

    def reconcile(self, identity: ObjectIdentity) -> ReconcileResult:
        with trace_span("reconcile_stackitcluster", kind=self.kind, attributes={"identity": str(identity)}):
            stackit_cluster = self.fetch_primary(STACKIT_CLUSTER, identity)
            if stackit_cluster is None:
                return ReconcileResult(outcome=OUTCOME_NOT_FOUND)

            cluster = self.resolve(
                "owner cluster", identity, lambda: get_owner_cluster(self.api, stackit_cluster["metadata"])
            )
            if cluster is None:
                logger.info(f"Cluster Controller has not yet set OwnerRef on {self.kind} {identity}")
                return ReconcileResult(outcome=OUTCOME_OWNER_NOT_SET)

            if is_paused(cluster, stackit_cluster):
                logger.info(f"{self.kind} {identity} or linked Cluster is marked as paused, won't reconcile")
                return ReconcileResult(outcome=OUTCOME_PAUSED)

            token, _ = self.get_and_validate_token(
                stackit_cluster,
                owner=stackit_cluster,
                add_finalizer=not is_deleting(stackit_cluster),
            )

            loadbalancer_client = self.create_client(stackit_cluster.get("spec", {}), token, identity)
            try:
                with ClusterScope(self.api, stackit_cluster, cluster, loadbalancer_client) as scope:
                    scope.set_credentials_ready(True, "STACKIT token is available")
                    scope.set_paused(False)
                    logger.debug(f"Opened scope for {self.kind} {identity} in region {scope.region}")
                    scope.set_ready(True, f"{self.kind} is reconciled")
            finally:
                loadbalancer_client.close()

            return ReconcileResult()

    def reconcile_delete(self, identity: ObjectIdentity) -> ReconcileResult:
        """Release the STACKITCluster's claim on its token secret."""
        with trace_span("reconcile_delete_stackitcluster", kind=self.kind, attributes={"identity": str(identity)}):
            stackit_cluster = self.fetch_primary(STACKIT_CLUSTER, identity)
            if stackit_cluster is None:
                return ReconcileResult(outcome=OUTCOME_NOT_FOUND)

            self.release_token(stackit_cluster, stackit_cluster, identity)
            return ReconcileResult()
