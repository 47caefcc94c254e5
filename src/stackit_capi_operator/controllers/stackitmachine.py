"""Reconcile guard chain for STACKITMachine objects."""

from __future__ import annotations

import logging
from typing import Any

from ..constants import KIND_STACKIT_CLUSTER, KIND_STACKIT_MACHINE
from ..scope.machine import MachineScope
from ..tracing import trace_span
from ..utils.errors import NotFoundError
from ..utils.kube import STACKIT_CLUSTER, STACKIT_MACHINE, ObjectIdentity, get_object
from ..utils.owners import get_cluster_from_metadata, get_owner_machine, is_paused
from .base import (
    OUTCOME_NOT_FOUND,
    OUTCOME_OWNER_NOT_SET,
    OUTCOME_PAUSED,
    BaseReconciler,
    ReconcileResult,
    api_errors_as_transient,
)

logger = logging.getLogger(__name__)

OUTCOME_INFRASTRUCTURE_NOT_SET = "InfrastructureRefNotSet"


def stackit_cluster_identity(cluster: dict[str, Any], default_namespace: str) -> ObjectIdentity | None:
    """Identity of the STACKITCluster a Cluster's infrastructureRef points at, if any."""
    infra_ref = cluster.get("spec", {}).get("infrastructureRef") or {}
    if infra_ref.get("kind") != KIND_STACKIT_CLUSTER or not infra_ref.get("name"):
        return None
    return ObjectIdentity(infra_ref.get("namespace") or default_namespace, infra_ref["name"])


class STACKITMachineReconciler(BaseReconciler):
    """Drives one STACKITMachine towards its declared state.

    The chain mirrors the cluster one, with two more links: the owning
    Machine, and the STACKITCluster the Cluster points at through its
    infrastructureRef. The token secret is the one that STACKITCluster
    references; the STACKITMachine becomes one more co-owner of it and
    drops that reference again when it is deleted.
    """

    kind = KIND_STACKIT_MACHINE

    def reconcile(self, identity: ObjectIdentity) -> ReconcileResult:
        with trace_span("reconcile_stackitmachine", kind=self.kind, attributes={"identity": str(identity)}):
            stackit_machine = self.fetch_primary(STACKIT_MACHINE, identity)
            if stackit_machine is None:
                return ReconcileResult(outcome=OUTCOME_NOT_FOUND)

            machine = self.resolve(
                "owner machine", identity, lambda: get_owner_machine(self.api, stackit_machine["metadata"])
            )
            if machine is None:
                logger.info(f"Machine Controller has not yet set OwnerRef on {self.kind} {identity}")
                return ReconcileResult(outcome=OUTCOME_OWNER_NOT_SET)

            cluster = self.resolve(
                "cluster", identity, lambda: get_cluster_from_metadata(self.api, machine["metadata"])
            )
            if cluster is None:
                logger.info(f"Machine owning {self.kind} {identity} is missing the cluster-name label")
                return ReconcileResult(outcome=OUTCOME_OWNER_NOT_SET)

            if is_paused(cluster, stackit_machine):
                logger.info(f"{self.kind} {identity} or linked Cluster is marked as paused, won't reconcile")
                return ReconcileResult(outcome=OUTCOME_PAUSED)

            stackit_cluster_id = stackit_cluster_identity(cluster, identity.namespace)
            if stackit_cluster_id is None:
                logger.info(f"Cluster of {self.kind} {identity} has no STACKITCluster infrastructureRef yet")
                return ReconcileResult(outcome=OUTCOME_INFRASTRUCTURE_NOT_SET)

            stackit_cluster = self.resolve(
                "infrastructure cluster", identity, lambda: self.fetch(STACKIT_CLUSTER, stackit_cluster_id)
            )

            token, _ = self.get_and_validate_token(stackit_cluster, owner=stackit_machine, add_finalizer=False)

            loadbalancer_client = self.create_client(stackit_cluster.get("spec", {}), token, identity)
            try:
                with MachineScope(
                    self.api, stackit_machine, machine, cluster, stackit_cluster, loadbalancer_client
                ) as scope:
                    scope.set_credentials_ready(True, "STACKIT token is available")
                    scope.set_paused(False)
                    scope.set_ready(True, f"{self.kind} is reconciled")
            finally:
                loadbalancer_client.close()

            return ReconcileResult()

    def reconcile_delete(self, identity: ObjectIdentity) -> ReconcileResult:
        """Release the STACKITMachine's claim on its cluster's token secret.

        A broken chain to the STACKITCluster does not block deletion; the
        secret is then left as it is.
        """
        with trace_span("reconcile_delete_stackitmachine", kind=self.kind, attributes={"identity": str(identity)}):
            stackit_machine = self.fetch_primary(STACKIT_MACHINE, identity)
            if stackit_machine is None:
                return ReconcileResult(outcome=OUTCOME_NOT_FOUND)

            self.check_cancelled("find STACKITCluster", identity)
            stackit_cluster = self.find_stackit_cluster(stackit_machine, identity)
            if stackit_cluster is None:
                logger.warning(f"No STACKITCluster found for {self.kind} {identity}, leaving its secret claim")
                return ReconcileResult(outcome=OUTCOME_INFRASTRUCTURE_NOT_SET)

            self.release_token(stackit_cluster, stackit_machine, identity)
            return ReconcileResult()

    def find_stackit_cluster(self, stackit_machine: dict[str, Any], identity: ObjectIdentity) -> dict[str, Any] | None:
        """Follow Machine, Cluster and infrastructureRef to the STACKITCluster, or None where a link is missing."""
        with api_errors_as_transient(f"failed to get STACKITCluster of {self.kind} {identity}"):
            try:
                machine = get_owner_machine(self.api, stackit_machine["metadata"])
                if machine is None:
                    return None
                cluster = get_cluster_from_metadata(self.api, machine["metadata"])
                if cluster is None:
                    return None
                stackit_cluster_id = stackit_cluster_identity(cluster, identity.namespace)
                if stackit_cluster_id is None:
                    return None
                return get_object(self.api, STACKIT_CLUSTER, stackit_cluster_id)
            except NotFoundError as e:
                logger.debug(f"Chain of {self.kind} {identity} is broken: {e}")
                return None
