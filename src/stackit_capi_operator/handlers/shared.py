"""Shared utilities for handlers."""

from __future__ import annotations

import copy
from typing import Any

import kopf

from ..constants import LABEL_ENVIRONMENT_NAME, LABEL_ENVIRONMENT_VALUE
from ..utils.kube import get_core_api
from ..utils.secret_manager import SecretManager
from ..utils.secrets import IndexSecretReader, SecretIndex, SecretStore


@kopf.index("v1", "secrets", labels={LABEL_ENVIRONMENT_NAME: LABEL_ENVIRONMENT_VALUE})
def claimed_secrets(namespace: str, name: str, body: kopf.Body, **_: Any) -> dict[tuple[str, str], dict[str, Any]]:
    """Index claimed secrets by (namespace, name).

    Only labelled secrets are watched; unlabelled ones are read from the
    API server until their first claim labels them.
    """
    return {(namespace, name): copy.deepcopy(dict(body))}


def build_secret_manager(secret_index: SecretIndex | None) -> SecretManager:
    """Build a SecretManager reading through the claimed-secrets index first."""
    core_api = get_core_api()
    return SecretManager(SecretStore(core_api, cache_reader=IndexSecretReader(secret_index)))
