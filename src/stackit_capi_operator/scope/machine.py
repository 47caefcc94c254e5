"""Scope for reconciling a STACKITMachine."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..services.stackit.client import LoadBalancerClient
from ..utils.kube import STACKIT_MACHINE
from .base import ObjectScope


class MachineScope(ObjectScope):
    """Context for one reconcile pass over a STACKITMachine."""

    def __init__(
        self,
        api: client.CustomObjectsApi,
        stackit_machine: dict[str, Any] | None,
        machine: dict[str, Any] | None,
        cluster: dict[str, Any] | None,
        stackit_cluster: dict[str, Any] | None,
        loadbalancer_client: LoadBalancerClient | None = None,
    ):
        if stackit_machine is None:
            raise ValueError("failed to generate new scope from nil STACKITMachine")
        if machine is None:
            raise ValueError("failed to generate new scope from nil Machine")
        if cluster is None:
            raise ValueError("failed to generate new scope from nil Cluster")
        if stackit_cluster is None:
            raise ValueError("failed to generate new scope from nil STACKITCluster")

        super().__init__(api, STACKIT_MACHINE, stackit_machine)
        self.machine = machine
        self.cluster = cluster
        self.stackit_cluster = stackit_cluster
        self.loadbalancer_client = loadbalancer_client

    @property
    def stackit_machine(self) -> dict[str, Any]:
        return self.obj
