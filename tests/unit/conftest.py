"""Shared fixtures: in-memory stand-ins for the Kubernetes APIs."""

from __future__ import annotations

import base64
import copy
from typing import Any

import pytest
from kubernetes.client.exceptions import ApiException

from stackit_capi_operator.constants import (
    API_GROUP_VERSION,
    CAPI_GROUP_VERSION,
    KIND_CLUSTER,
    KIND_MACHINE,
    KIND_STACKIT_CLUSTER,
    KIND_STACKIT_MACHINE,
    LABEL_CLUSTER_NAME,
)

PLURALS = {
    KIND_STACKIT_CLUSTER: "stackitclusters",
    KIND_STACKIT_MACHINE: "stackitmachines",
    KIND_CLUSTER: "clusters",
    KIND_MACHINE: "machines",
}


def _bump(meta: dict[str, Any]) -> None:
    meta["resourceVersion"] = str(int(meta.get("resourceVersion", "0")) + 1)


class FakeCoreApi:
    """Secrets held in memory, with resourceVersion checks on replace."""

    def __init__(self, *secrets: dict[str, Any]):
        self.secrets = {}
        for secret in secrets:
            meta = secret["metadata"]
            self.secrets[(meta["namespace"], meta["name"])] = copy.deepcopy(secret)
        self.reads: list[tuple[str, str]] = []
        self.replaced: list[dict[str, Any]] = []

    def read_namespaced_secret(self, name: str, namespace: str, **_: Any) -> dict[str, Any]:
        self.reads.append((namespace, name))
        try:
            return copy.deepcopy(self.secrets[(namespace, name)])
        except KeyError:
            raise ApiException(status=404, reason="Not Found")

    def replace_namespaced_secret(self, name: str, namespace: str, body: dict[str, Any], **_: Any) -> dict[str, Any]:
        current = self.secrets.get((namespace, name))
        if current is None:
            raise ApiException(status=404, reason="Not Found")
        if body["metadata"].get("resourceVersion") != current["metadata"].get("resourceVersion"):
            raise ApiException(status=409, reason="Conflict")
        self.replaced.append(copy.deepcopy(body))
        stored = copy.deepcopy(body)
        _bump(stored["metadata"])
        self.secrets[(namespace, name)] = stored
        return copy.deepcopy(stored)


class FakeCustomObjectsApi:
    """Custom objects held in memory; patches are recorded, not applied."""

    def __init__(self, *objects: dict[str, Any]):
        self.objects = {}
        for obj in objects:
            self.add(obj)
        self.patches: list[tuple[str, str, dict[str, Any]]] = []
        self.errors: dict[str, Exception] = {}

    def add(self, obj: dict[str, Any]) -> None:
        meta = obj["metadata"]
        self.objects[(PLURALS[obj["kind"]], meta["namespace"], meta["name"])] = copy.deepcopy(obj)

    def get_namespaced_custom_object(self, group, version, namespace, plural, name, **_):
        if "get" in self.errors:
            raise self.errors["get"]
        try:
            return copy.deepcopy(self.objects[(plural, namespace, name)])
        except KeyError:
            raise ApiException(status=404, reason="Not Found")

    def _patch(self, part, plural, namespace, name, body):
        if part in self.errors:
            raise self.errors[part]
        obj = self.objects[(plural, namespace, name)]
        self.patches.append((part, plural, copy.deepcopy(body)))
        _bump(obj["metadata"])
        return copy.deepcopy(obj)

    def patch_namespaced_custom_object(self, group, version, namespace, plural, name, body, **_):
        return self._patch("main", plural, namespace, name, body)

    def patch_namespaced_custom_object_status(self, group, version, namespace, plural, name, body, **_):
        return self._patch("status", plural, namespace, name, body)


def make_secret(
    name: str = "stackit-token",
    namespace: str = "default",
    token: str | None = "s3cr3t-token",
    key: str = "token",
    **metadata: Any,
) -> dict[str, Any]:
    data = {}
    if token is not None:
        data[key] = base64.b64encode(token.encode("utf-8")).decode("utf-8")
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": "1", **metadata},
        "type": "Opaque",
        "data": data,
    }


def make_cluster(name: str = "my-cluster", namespace: str = "default", paused: bool = False) -> dict[str, Any]:
    return {
        "apiVersion": CAPI_GROUP_VERSION,
        "kind": KIND_CLUSTER,
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}", "resourceVersion": "1"},
        "spec": {
            "paused": paused,
            "infrastructureRef": {
                "apiVersion": API_GROUP_VERSION,
                "kind": KIND_STACKIT_CLUSTER,
                "name": name,
                "namespace": namespace,
            },
        },
    }


def make_stackit_cluster(
    name: str = "my-cluster",
    namespace: str = "default",
    owner: dict[str, Any] | None = None,
    secret_name: str = "stackit-token",
    secret_key: str = "token",
) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name, "namespace": namespace, "uid": f"uid-sc-{name}", "resourceVersion": "7"}
    if owner is not None:
        meta["ownerReferences"] = [
            {
                "apiVersion": owner["apiVersion"],
                "kind": owner["kind"],
                "name": owner["metadata"]["name"],
                "uid": owner["metadata"]["uid"],
                "controller": True,
            }
        ]
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_STACKIT_CLUSTER,
        "metadata": meta,
        "spec": {
            "stackitRegion": "eu01",
            "stackitToken": {"name": secret_name, "key": secret_key},
            "etcd": {"storage": {}, "backup": {}},
        },
        "status": {"ready": False},
    }


def make_machine(name: str = "my-machine", namespace: str = "default", cluster_name: str | None = "my-cluster"):
    labels = {LABEL_CLUSTER_NAME: cluster_name} if cluster_name else {}
    return {
        "apiVersion": CAPI_GROUP_VERSION,
        "kind": KIND_MACHINE,
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}", "labels": labels},
        "spec": {"clusterName": cluster_name},
    }


def make_stackit_machine(name: str = "my-machine", namespace: str = "default", owner: dict[str, Any] | None = None):
    meta: dict[str, Any] = {"name": name, "namespace": namespace, "uid": f"uid-sm-{name}", "resourceVersion": "3"}
    if owner is not None:
        meta["ownerReferences"] = [
            {
                "apiVersion": owner["apiVersion"],
                "kind": owner["kind"],
                "name": owner["metadata"]["name"],
                "uid": owner["metadata"]["uid"],
                "controller": True,
            }
        ]
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_STACKIT_MACHINE,
        "metadata": meta,
        "spec": {"floatingPoolName": "pool", "networks": {"worker": "10.0.0.0/24", "workers": "10.0.0.0/16"}},
        "status": {},
    }


@pytest.fixture
def fake_core_api():
    return FakeCoreApi


@pytest.fixture
def fake_custom_api():
    return FakeCustomObjectsApi


@pytest.fixture
def objects():
    """Builders for the objects the controllers read."""

    class Objects:
        secret = staticmethod(make_secret)
        cluster = staticmethod(make_cluster)
        stackit_cluster = staticmethod(make_stackit_cluster)
        machine = staticmethod(make_machine)
        stackit_machine = staticmethod(make_stackit_machine)

    return Objects
