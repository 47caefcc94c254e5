"""Scope for reconciling a STACKITCluster."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..constants import DEFAULT_REGION
from ..services.stackit.client import LoadBalancerClient
from ..utils.kube import STACKIT_CLUSTER
from .base import ObjectScope


class ClusterScope(ObjectScope):
    """Context for one reconcile pass over a STACKITCluster and its Cluster."""

    def __init__(
        self,
        api: client.CustomObjectsApi,
        stackit_cluster: dict[str, Any] | None,
        cluster: dict[str, Any] | None,
        loadbalancer_client: LoadBalancerClient | None = None,
    ):
        if cluster is None:
            raise ValueError("failed to generate new scope from nil Cluster")
        if stackit_cluster is None:
            raise ValueError("failed to generate new scope from nil STACKITCluster")

        super().__init__(api, STACKIT_CLUSTER, stackit_cluster)
        self.cluster = cluster
        self.loadbalancer_client = loadbalancer_client

    @property
    def stackit_cluster(self) -> dict[str, Any]:
        return self.obj

    @property
    def spec(self) -> dict[str, Any]:
        return self.obj.setdefault("spec", {})

    @property
    def region(self) -> str:
        return self.spec.get("stackitRegion") or DEFAULT_REGION
