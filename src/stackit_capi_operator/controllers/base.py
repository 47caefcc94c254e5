"""Shared steps of the reconcile guard chains."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from ..builders.loadbalancer import create_loadbalancer_client_from_spec
from ..services.stackit.client import LoadBalancerClient
from ..utils.errors import (
    ConfigurationError,
    InvalidTokenError,
    NotFoundError,
    ReconcileCancelledError,
    SecretNotFoundError,
    TransientError,
)
from ..utils.kube import CustomResource, ObjectIdentity, get_object, identity_of
from ..utils.secret_manager import SecretManager
from ..utils.secrets import decode_secret_value

logger = logging.getLogger(__name__)

ClientFactory = Callable[[dict[str, Any], str], LoadBalancerClient]

# Outcomes of a pass that ended early without error
OUTCOME_RECONCILED = "Reconciled"
OUTCOME_NOT_FOUND = "NotFound"
OUTCOME_OWNER_NOT_SET = "OwnerRefNotSet"
OUTCOME_PAUSED = "Paused"


@dataclass(frozen=True)
class ReconcileResult:
    """What one reconcile pass reports back to the dispatcher."""

    outcome: str = OUTCOME_RECONCILED
    requeue: bool = False
    requeue_after: float | None = None


@contextmanager
def api_errors_as_transient(operation: str) -> Iterator[None]:
    """Re-raise API server and network failures as TransientError naming the operation."""
    try:
        yield
    except ApiException as e:
        raise TransientError(f"{operation}: {e.status} {e.reason}") from e
    except urllib3.exceptions.HTTPError as e:
        raise TransientError(f"{operation}: {e}") from e


class BaseReconciler:
    """Guard-chain steps common to every STACKIT reconciler."""

    kind = ""

    def __init__(
        self,
        api: client.CustomObjectsApi,
        secret_manager: SecretManager,
        client_factory: ClientFactory = create_loadbalancer_client_from_spec,
        stop_event: threading.Event | None = None,
    ):
        self.api = api
        self.secret_manager = secret_manager
        self.client_factory = client_factory
        self.stop_event = stop_event or threading.Event()

    def check_cancelled(self, step: str, identity: ObjectIdentity) -> None:
        if self.stop_event.is_set():
            raise ReconcileCancelledError(f"reconcile of {self.kind} {identity} cancelled before {step}")

    def fetch(self, resource: CustomResource, identity: ObjectIdentity) -> dict[str, Any]:
        """Read an object, failing with TransientError on anything but a miss."""
        with api_errors_as_transient(f"failed to get {resource.kind} {identity}"):
            return get_object(self.api, resource, identity)

    def fetch_primary(self, resource: CustomResource, identity: ObjectIdentity) -> dict[str, Any] | None:
        """Read the object under reconciliation, or None if it is gone."""
        self.check_cancelled(f"get {resource.kind}", identity)
        try:
            return self.fetch(resource, identity)
        except NotFoundError:
            logger.debug(f"{resource.kind} {identity} not found, nothing to do")
            return None

    def resolve(self, what: str, identity: ObjectIdentity, resolver: Callable[[], dict[str, Any] | None]):
        """Run an owner-relation lookup; any failure, a missing target included, is transient."""
        self.check_cancelled(f"get {what}", identity)
        try:
            with api_errors_as_transient(f"failed to get {what} of {self.kind} {identity}"):
                return resolver()
        except NotFoundError as e:
            raise TransientError(f"failed to get {what} of {self.kind} {identity}: {e}") from e

    def get_and_validate_token(
        self,
        token_holder: dict[str, Any],
        owner: dict[str, Any],
        add_finalizer: bool,
    ) -> tuple[str, dict[str, Any]]:
        """Claim the secret referenced by token_holder for owner and return its token.

        Args:
            token_holder: STACKITCluster whose spec.stackitToken names the secret
            owner: Object recorded as a co-owner of the secret
            add_finalizer: Ensure the secret finalizer is present

        Returns:
            The decoded token and the claimed secret

        Raises:
            ConfigurationError: If the reference is missing, the secret does not exist or the token is empty
            TransientError: If the API server could not be reached
        """
        holder_identity = identity_of(token_holder)
        self.check_cancelled("acquire STACKIT token", identity_of(owner))

        ref = token_holder.get("spec", {}).get("stackitToken") or {}
        if not ref.get("name") or not ref.get("key"):
            raise ConfigurationError(
                f"{token_holder.get('kind')} {holder_identity} does not reference a STACKIT token secret"
            )

        secret_identity = ObjectIdentity(holder_identity.namespace, ref["name"])
        try:
            with api_errors_as_transient(f"failed to get STACKIT token {secret_identity}"):
                secret = self.secret_manager.acquire_secret(
                    secret_identity,
                    owner,
                    owner_is_controller=False,
                    add_finalizer=add_finalizer,
                )
        except NotFoundError as e:
            raise SecretNotFoundError(secret_identity) from e

        token = decode_secret_value(secret, ref["key"])
        if not token:
            raise InvalidTokenError(f"invalid token: empty (key '{ref['key']}' of secret {secret_identity})")
        return token, secret

    def release_token(self, token_holder: dict[str, Any], owner: dict[str, Any], identity: ObjectIdentity) -> None:
        """Drop owner's claim on the secret named by token_holder's spec.stackitToken."""
        ref = token_holder.get("spec", {}).get("stackitToken") or {}
        if not ref.get("name"):
            return

        self.check_cancelled("release STACKIT token", identity)
        secret_identity = ObjectIdentity(identity_of(token_holder).namespace, ref["name"])
        with api_errors_as_transient(f"failed to release STACKIT token {secret_identity}"):
            self.secret_manager.release_secret(secret_identity, owner)

    def create_client(self, spec: dict[str, Any], token: str, identity: ObjectIdentity) -> LoadBalancerClient:
        self.check_cancelled("create loadbalancer client", identity)
        return self.client_factory(spec, token)


def is_deleting(obj: dict[str, Any]) -> bool:
    return bool(obj.get("metadata", {}).get("deletionTimestamp"))
