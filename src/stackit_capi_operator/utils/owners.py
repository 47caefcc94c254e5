"""Owner-reference helpers and owner-relation resolution."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..constants import ANNOTATION_PAUSED, CAPI_GROUP, KIND_CLUSTER, KIND_MACHINE, LABEL_CLUSTER_NAME
from .kube import CLUSTER, MACHINE, ObjectIdentity, get_object


def api_group_of(api_version: str) -> str:
    """Return the group part of an apiVersion ("" for the core group)."""
    if "/" not in api_version:
        return ""
    return api_version.split("/", 1)[0]


def make_owner_reference(owner: dict[str, Any], controller: bool = False) -> dict[str, Any]:
    """Build an owner reference pointing at the given object.

    Controller references also block owner deletion, matching what the
    garbage collector expects from a managing controller.
    """
    meta = owner.get("metadata", {})
    ref = {
        "apiVersion": owner["apiVersion"],
        "kind": owner["kind"],
        "name": meta["name"],
        "uid": meta["uid"],
    }
    if controller:
        ref["controller"] = True
        ref["blockOwnerDeletion"] = True
    return ref


def owner_references(obj: dict[str, Any]) -> list[dict[str, Any]]:
    return obj.get("metadata", {}).get("ownerReferences") or []


def has_owner_reference(obj: dict[str, Any], uid: str) -> bool:
    """Check whether obj already references an owner with this UID."""
    return any(ref.get("uid") == uid for ref in owner_references(obj))


def get_controller_reference(obj: dict[str, Any]) -> dict[str, Any] | None:
    for ref in owner_references(obj):
        if ref.get("controller"):
            return ref
    return None


def is_controlled_by(obj: dict[str, Any], owner: dict[str, Any]) -> bool:
    """Check whether owner holds the controller reference on obj."""
    ref = get_controller_reference(obj)
    return ref is not None and ref.get("uid") == owner.get("metadata", {}).get("uid")


def find_owner_reference(meta: dict[str, Any], kind: str, group: str) -> dict[str, Any] | None:
    """Find the first owner reference of the given kind and API group."""
    for ref in meta.get("ownerReferences") or []:
        if ref.get("kind") == kind and api_group_of(ref.get("apiVersion", "")) == group:
            return ref
    return None


def get_owner_cluster(api: client.CustomObjectsApi, meta: dict[str, Any]) -> dict[str, Any] | None:
    """Resolve the Cluster that owns an object.

    Args:
        api: Kubernetes CustomObjectsApi instance
        meta: Metadata of the owned object

    Returns:
        The owning Cluster, or None when no owner reference is set yet

    Raises:
        NotFoundError: If the referenced Cluster does not exist
        client.exceptions.ApiException: On any other API error
    """
    ref = find_owner_reference(meta, KIND_CLUSTER, CAPI_GROUP)
    if ref is None:
        return None
    return get_object(api, CLUSTER, ObjectIdentity(meta.get("namespace", "default"), ref["name"]))


def get_owner_machine(api: client.CustomObjectsApi, meta: dict[str, Any]) -> dict[str, Any] | None:
    """Resolve the Machine that owns an object, or None if not set yet."""
    ref = find_owner_reference(meta, KIND_MACHINE, CAPI_GROUP)
    if ref is None:
        return None
    return get_object(api, MACHINE, ObjectIdentity(meta.get("namespace", "default"), ref["name"]))


def get_cluster_from_metadata(api: client.CustomObjectsApi, meta: dict[str, Any]) -> dict[str, Any] | None:
    """Resolve the Cluster named by the cluster-name label, or None if unlabelled."""
    cluster_name = (meta.get("labels") or {}).get(LABEL_CLUSTER_NAME)
    if not cluster_name:
        return None
    return get_object(api, CLUSTER, ObjectIdentity(meta.get("namespace", "default"), cluster_name))


def is_paused(cluster: dict[str, Any], obj: dict[str, Any]) -> bool:
    """Check whether reconciliation of obj is suspended.

    Either the Cluster is paused or obj carries the paused annotation.
    """
    if cluster.get("spec", {}).get("paused"):
        return True
    annotations = obj.get("metadata", {}).get("annotations") or {}
    return ANNOTATION_PAUSED in annotations
