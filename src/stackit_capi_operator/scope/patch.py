"""Diff-based patching of custom objects against a snapshot."""

from __future__ import annotations

import copy
import logging
import time
from typing import Any

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..constants import FIELD_MANAGER
from ..utils.errors import ConflictError, NotFoundError
from ..utils.kube import REQUEST_TIMEOUT, CustomResource, identity_of

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"

# Metadata the controller may change; everything else is owned by the API server
MUTABLE_METADATA = ("labels", "annotations", "finalizers", "ownerReferences")


def merge_patch(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """Compute the RFC 7386 merge patch that turns before into after."""
    patch: dict[str, Any] = {}
    for key in before.keys() - after.keys():
        patch[key] = None
    for key, value in after.items():
        if key not in before:
            patch[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(before[key], dict):
            nested = merge_patch(before[key], value)
            if nested:
                patch[key] = nested
        elif value != before[key]:
            patch[key] = copy.deepcopy(value)
    return patch


def _mutable_metadata(obj: dict[str, Any]) -> dict[str, Any]:
    meta = obj.get("metadata") or {}
    return {key: meta[key] for key in MUTABLE_METADATA if key in meta}


class PatchHelper:
    """Snapshots an object and later patches only what changed.

    Metadata and spec go through the main resource, status through the
    status subresource. Each patch carries the resourceVersion the object
    was read at, so a concurrent modification is rejected with a conflict
    instead of being overwritten.
    """

    def __init__(self, api: client.CustomObjectsApi, resource: CustomResource, obj: dict[str, Any]):
        self.api = api
        self.resource = resource
        self.before = copy.deepcopy(obj)

    def diff(self, obj: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return the (main, status) patch bodies, without preconditions."""
        main: dict[str, Any] = {}
        metadata = merge_patch(_mutable_metadata(self.before), _mutable_metadata(obj))
        if metadata:
            main["metadata"] = metadata
        spec = merge_patch(self.before.get("spec") or {}, obj.get("spec") or {})
        if spec:
            main["spec"] = spec

        status: dict[str, Any] = {}
        status_diff = merge_patch(self.before.get("status") or {}, obj.get("status") or {})
        if status_diff:
            status["status"] = status_diff
        return main, status

    def patch(self, obj: dict[str, Any]) -> int:
        """Patch the live object with the changes made to obj since the snapshot.

        Args:
            obj: The in-memory object, mutated since the snapshot was taken

        Returns:
            The number of patch requests issued

        Raises:
            ConflictError: If the object changed remotely since the snapshot
            NotFoundError: If the object no longer exists
            client.exceptions.ApiException: On any other API error
        """
        main, status = self.diff(obj)
        resource_version = (self.before.get("metadata") or {}).get("resourceVersion")
        issued = 0

        if main:
            result = self._send("main", self.api.patch_namespaced_custom_object, obj, main, resource_version)
            resource_version = result.get("metadata", {}).get("resourceVersion", resource_version)
            issued += 1
        if status:
            result = self._send(
                "status", self.api.patch_namespaced_custom_object_status, obj, status, resource_version
            )
            resource_version = result.get("metadata", {}).get("resourceVersion", resource_version)
            issued += 1

        if issued:
            self.before = copy.deepcopy(obj)
            self.before.setdefault("metadata", {})["resourceVersion"] = resource_version
            obj.setdefault("metadata", {})["resourceVersion"] = resource_version
        return issued

    def _send(
        self,
        part: str,
        call: Any,
        obj: dict[str, Any],
        body: dict[str, Any],
        resource_version: str | None,
    ) -> dict[str, Any]:
        identity = identity_of(obj)
        if resource_version:
            body.setdefault("metadata", {})["resourceVersion"] = resource_version

        start_time = time.time()
        try:
            result = call(
                group=self.resource.group,
                version=self.resource.version,
                namespace=identity.namespace,
                plural=self.resource.plural,
                name=identity.name,
                body=body,
                field_manager=FIELD_MANAGER,
                _content_type=MERGE_PATCH,
                _request_timeout=REQUEST_TIMEOUT,
            )
        except ApiException as e:
            metrics.scope_patches_total.labels(kind=self.resource.kind, part=part, result="error").inc()
            if e.status == 409:
                raise ConflictError(
                    f"failed to patch {self.resource.kind} {identity}: object was modified concurrently"
                ) from e
            if e.status == 404:
                raise NotFoundError(self.resource.kind, identity) from e
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=f"patch_{part}").observe(duration)

        metrics.scope_patches_total.labels(kind=self.resource.kind, part=part, result="success").inc()
        logger.debug(f"Patched {part} of {self.resource.kind} {identity}")
        return result or {}
