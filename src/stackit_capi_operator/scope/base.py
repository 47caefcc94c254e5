"""Common lifecycle of a reconcile scope."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from kubernetes import client

from ..constants import COND_PAUSED
from ..utils.conditions import (
    get_condition,
    set_credentials_ready_condition,
    set_paused_condition,
    set_ready_condition,
)
from ..utils.errors import NotFoundError, sanitize_exception
from ..utils.kube import CustomResource, identity_of
from .patch import PatchHelper

logger = logging.getLogger(__name__)


class ObjectScope:
    """Holds the object under reconciliation and flushes its changes on exit.

    Use as a context manager. The flush runs on every exit path; when the
    body raised, a failing flush is logged and the original error wins.
    """

    def __init__(self, api: client.CustomObjectsApi, resource: CustomResource, obj: dict[str, Any]):
        self.resource = resource
        self.obj = obj
        self.patch_helper = PatchHelper(api, resource, obj)

    @property
    def name(self) -> str:
        return self.obj["metadata"]["name"]

    @property
    def namespace(self) -> str:
        return self.obj["metadata"].get("namespace", "default")

    @property
    def status(self) -> dict[str, Any]:
        return self.obj.setdefault("status", {})

    def set_ready(self, ready: bool, message: str) -> None:
        self.status["ready"] = ready
        self.status["conditions"] = set_ready_condition(self.status.get("conditions", []), ready, message)

    def set_credentials_ready(self, ready: bool, message: str) -> None:
        self.status["conditions"] = set_credentials_ready_condition(
            self.status.get("conditions", []), ready, message
        )

    def set_paused(self, paused: bool) -> None:
        conditions = self.status.get("conditions", [])
        # Only objects that were ever paused carry the condition
        if not paused and get_condition(conditions, COND_PAUSED) is None:
            return
        self.status["conditions"] = set_paused_condition(conditions, paused)

    def close(self) -> None:
        """Persist every change made to the object since the scope was opened.

        Raises:
            ConflictError: If the object changed remotely in the meantime
        """
        try:
            self.patch_helper.patch(self.obj)
        except NotFoundError:
            logger.info(f"{self.resource.kind} {identity_of(self.obj)} is gone, dropping pending changes")

    def __enter__(self) -> ObjectScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        try:
            self.close()
        except Exception as close_error:
            if exc is None:
                raise
            logger.error(
                f"Failed to persist {self.resource.kind} {identity_of(self.obj)} after an error: "
                f"{sanitize_exception(close_error)}"
            )
        return False
