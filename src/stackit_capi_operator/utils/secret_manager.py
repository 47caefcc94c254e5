"""Claiming shared credential secrets for the objects that consume them.

A claimed secret carries the environment label (which admits it to the
operator's watch-backed index), an owner reference back to each consumer
and, while a consumer is live, the secret finalizer. Claims are computed as
a diff against the secret's current state and written with at most one
update, so repeated reconciles of an already-claimed secret write nothing.
Concurrent claims converge; a lost optimistic-concurrency race surfaces as
ConflictError and is resolved by re-running the whole reconcile pass.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import metrics
from ..constants import (
    DEPRECATED_SECRET_FINALIZER,
    KIND_STACKIT_CLUSTER,
    KIND_STACKIT_MACHINE,
    LABEL_ENVIRONMENT_NAME,
    LABEL_ENVIRONMENT_VALUE,
    SECRET_FINALIZER,
)
from .errors import AlreadyOwnedError, NotFoundError
from .kube import ObjectIdentity
from .owners import get_controller_reference, has_owner_reference, is_controlled_by, make_owner_reference
from .secrets import SecretStore

logger = logging.getLogger(__name__)

# Kinds whose owner references keep a claimed secret finalized
CONSUMER_KINDS = (KIND_STACKIT_CLUSTER, KIND_STACKIT_MACHINE)


class SecretManager:
    """Fetches secrets whether or not they are cached and claims them for an owner."""

    def __init__(self, store: SecretStore):
        self.store = store

    def acquire_secret(
        self,
        identity: ObjectIdentity,
        owner: dict[str, Any],
        owner_is_controller: bool,
        add_finalizer: bool,
    ) -> dict[str, Any]:
        """Find a secret and make sure it is claimed by owner.

        Args:
            identity: Namespace and name of the secret
            owner: Object body that consumes the secret; must not be None
            owner_is_controller: Set a controller reference instead of a plain owner reference
            add_finalizer: Ensure the secret finalizer is present

        Returns:
            The secret as stored after the claim

        Raises:
            TypeError: If owner is None
            NotFoundError: If the secret exists in neither store
            AlreadyOwnedError: If another controller already controls the secret
            ConflictError: If the secret changed between read and write
        """
        if owner is None:
            raise TypeError("acquire_secret called with no owner")

        secret = self.store.find(identity)
        if not self._claim(secret, owner, owner_is_controller, add_finalizer):
            return secret

        logger.info(f"Claiming secret {identity} for {owner['kind']} {owner['metadata'].get('name')}")
        try:
            updated = self.store.update(secret)
        except Exception:
            metrics.secret_writes_total.labels(operation="claim", result="error").inc()
            raise
        metrics.secret_writes_total.labels(operation="claim", result="success").inc()
        return updated

    def release_secret(self, identity: ObjectIdentity, owner: dict[str, Any]) -> dict[str, Any] | None:
        """Drop owner's claim on a secret.

        The finalizer is removed once no STACKIT consumer references the secret
        any more. A secret that no longer exists needs no release.

        Returns:
            The secret as stored after the release, or None if it is gone
        """
        if owner is None:
            raise TypeError("release_secret called with no owner")

        try:
            secret = self.store.find(identity)
        except NotFoundError:
            return None

        meta = secret.setdefault("metadata", {})
        owner_uid = owner["metadata"]["uid"]
        refs = meta.get("ownerReferences") or []
        remaining = [ref for ref in refs if ref.get("uid") != owner_uid]
        needs_update = len(remaining) != len(refs)
        if needs_update:
            meta["ownerReferences"] = remaining

        if not any(ref.get("kind") in CONSUMER_KINDS for ref in remaining):
            finalizers = meta.get("finalizers") or []
            kept = [f for f in finalizers if f not in (SECRET_FINALIZER, DEPRECATED_SECRET_FINALIZER)]
            if len(kept) != len(finalizers):
                meta["finalizers"] = kept
                needs_update = True

        if not needs_update:
            return secret

        logger.info(f"Releasing secret {identity} from {owner['kind']} {owner['metadata'].get('name')}")
        try:
            updated = self.store.update(secret)
        except Exception:
            metrics.secret_writes_total.labels(operation="release", result="error").inc()
            raise
        metrics.secret_writes_total.labels(operation="release", result="success").inc()
        return updated

    def _claim(
        self,
        secret: dict[str, Any],
        owner: dict[str, Any],
        owner_is_controller: bool,
        add_finalizer: bool,
    ) -> bool:
        """Apply the claim to secret in memory. Returns whether anything changed."""
        meta = secret.setdefault("metadata", {})
        needs_update = False

        labels = meta.get("labels") or {}
        if LABEL_ENVIRONMENT_NAME not in labels:
            labels[LABEL_ENVIRONMENT_NAME] = LABEL_ENVIRONMENT_VALUE
            meta["labels"] = labels
            needs_update = True

        owner_uid = owner["metadata"]["uid"]
        refs = list(meta.get("ownerReferences") or [])
        if owner_is_controller:
            if not is_controlled_by(secret, owner):
                current = get_controller_reference(secret)
                if current is not None:
                    raise AlreadyOwnedError(
                        f"secret {meta.get('namespace')}/{meta.get('name')} is already controlled by "
                        f"{current.get('kind')} {current.get('name')}"
                    )
                # An existing plain reference to the same owner is upgraded in place
                refs = [ref for ref in refs if ref.get("uid") != owner_uid]
                refs.append(make_owner_reference(owner, controller=True))
                meta["ownerReferences"] = refs
                needs_update = True
        elif not has_owner_reference(secret, owner_uid):
            refs.append(make_owner_reference(owner))
            meta["ownerReferences"] = refs
            needs_update = True

        if add_finalizer:
            finalizers = list(meta.get("finalizers") or [])
            changed = False
            if SECRET_FINALIZER not in finalizers:
                finalizers.append(SECRET_FINALIZER)
                changed = True
            if DEPRECATED_SECRET_FINALIZER in finalizers:
                finalizers = [f for f in finalizers if f != DEPRECATED_SECRET_FINALIZER]
                changed = True
            if changed:
                meta["finalizers"] = finalizers
                needs_update = True

        return needs_update
