"""Kubernetes API access shared by the controllers."""

from __future__ import annotations

import os
import time
from typing import Any, NamedTuple

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..constants import (
    API_GROUP,
    API_VERSION,
    CAPI_GROUP,
    CAPI_VERSION,
    KIND_CLUSTER,
    KIND_MACHINE,
    KIND_STACKIT_CLUSTER,
    KIND_STACKIT_MACHINE,
    PLURAL_CLUSTERS,
    PLURAL_MACHINES,
    PLURAL_STACKIT_CLUSTERS,
    PLURAL_STACKIT_MACHINES,
)
from .errors import NotFoundError

REQUEST_TIMEOUT = float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30"))


class ObjectIdentity(NamedTuple):
    """Namespace-qualified name of one object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class CustomResource(NamedTuple):
    """Coordinates of a custom resource type on the API server."""

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"


STACKIT_CLUSTER = CustomResource(API_GROUP, API_VERSION, PLURAL_STACKIT_CLUSTERS, KIND_STACKIT_CLUSTER)
STACKIT_MACHINE = CustomResource(API_GROUP, API_VERSION, PLURAL_STACKIT_MACHINES, KIND_STACKIT_MACHINE)
CLUSTER = CustomResource(CAPI_GROUP, CAPI_VERSION, PLURAL_CLUSTERS, KIND_CLUSTER)
MACHINE = CustomResource(CAPI_GROUP, CAPI_VERSION, PLURAL_MACHINES, KIND_MACHINE)


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_custom_objects_api() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    return client.CustomObjectsApi()


def get_core_api() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client."""
    return client.CoreV1Api()


def identity_of(obj: dict[str, Any]) -> ObjectIdentity:
    """Return the identity of an object body."""
    meta = obj.get("metadata", {})
    return ObjectIdentity(meta.get("namespace", "default"), meta.get("name", ""))


def to_dict(obj: Any) -> dict[str, Any]:
    """Convert a kubernetes client model into its JSON dictionary form."""
    if isinstance(obj, dict):
        return obj
    return client.ApiClient().sanitize_for_serialization(obj)


def get_object(
    api: client.CustomObjectsApi,
    resource: CustomResource,
    identity: ObjectIdentity,
) -> dict[str, Any]:
    """Read a namespaced custom object.

    Args:
        api: Kubernetes CustomObjectsApi instance
        resource: Resource type to read
        identity: Namespace and name of the object

    Returns:
        The object body

    Raises:
        NotFoundError: If the object does not exist
        client.exceptions.ApiException: On any other API error
    """
    operation = f"get_{resource.kind.lower()}"
    start_time = time.time()
    try:
        obj = api.get_namespaced_custom_object(
            group=resource.group,
            version=resource.version,
            namespace=identity.namespace,
            plural=resource.plural,
            name=identity.name,
            _request_timeout=REQUEST_TIMEOUT,
        )
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
        return obj
    except ApiException as e:
        if e.status == 404:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="not_found").inc()
            raise NotFoundError(resource.kind, identity) from e
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)
