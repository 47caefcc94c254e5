"""Credential secret lookup through the cached index and the API server."""

from __future__ import annotations

import base64
import binascii
import copy
import logging
import time
from typing import Any, Iterable, Mapping

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..constants import FIELD_MANAGER, KIND_SECRET
from .errors import ConflictError, InvalidTokenError, NotFoundError
from .kube import REQUEST_TIMEOUT, ObjectIdentity, to_dict

logger = logging.getLogger(__name__)

SecretIndex = Mapping[tuple[str, str], Iterable[dict[str, Any]]]


class IndexSecretReader:
    """Reads secrets from the watch-backed index of claimed secrets.

    Only secrets carrying the claim label are admitted to the index, so a
    miss here does not mean the secret does not exist.
    """

    source = "cache"

    def __init__(self, index: SecretIndex | None):
        self.index = index

    def get(self, identity: ObjectIdentity) -> dict[str, Any]:
        if self.index is None:
            raise NotFoundError(KIND_SECRET, identity)
        store = self.index.get((identity.namespace, identity.name))
        for body in store or ():
            # Callers mutate what they get back; never hand out the cached copy
            return copy.deepcopy(dict(body))
        raise NotFoundError(KIND_SECRET, identity)


class ApiSecretReader:
    """Reads secrets straight from the API server."""

    source = "api"

    def __init__(self, core_api: client.CoreV1Api):
        self.core_api = core_api

    def get(self, identity: ObjectIdentity) -> dict[str, Any]:
        try:
            secret = self.core_api.read_namespaced_secret(
                name=identity.name,
                namespace=identity.namespace,
                _request_timeout=REQUEST_TIMEOUT,
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(KIND_SECRET, identity) from e
            raise
        return to_dict(secret)


class SecretStore:
    """Single lookup and update path over the cached and direct secret readers."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        cache_reader: IndexSecretReader | None = None,
        api_reader: ApiSecretReader | None = None,
    ):
        self.core_api = core_api
        self.cache_reader = cache_reader or IndexSecretReader(None)
        self.api_reader = api_reader or ApiSecretReader(core_api)

    def find(self, identity: ObjectIdentity) -> dict[str, Any]:
        """Find a secret, preferring the cache and falling back to the API.

        Args:
            identity: Namespace and name of the secret

        Returns:
            The secret body

        Raises:
            NotFoundError: If neither store has the secret
            client.exceptions.ApiException: On any other API error
        """
        try:
            secret = self.cache_reader.get(identity)
            metrics.secret_lookup_total.labels(source=self.cache_reader.source, result="hit").inc()
            return secret
        except NotFoundError:
            metrics.secret_lookup_total.labels(source=self.cache_reader.source, result="miss").inc()

        logger.debug(f"Secret {identity} not in cache, reading from API server")
        try:
            secret = self.api_reader.get(identity)
        except NotFoundError:
            metrics.secret_lookup_total.labels(source=self.api_reader.source, result="miss").inc()
            raise
        metrics.secret_lookup_total.labels(source=self.api_reader.source, result="hit").inc()
        return secret

    def update(self, secret: dict[str, Any]) -> dict[str, Any]:
        """Replace a secret, guarded by its resourceVersion.

        Raises:
            ConflictError: If the secret changed since it was read
            client.exceptions.ApiException: On any other API error
        """
        meta = secret["metadata"]
        start_time = time.time()
        try:
            updated = self.core_api.replace_namespaced_secret(
                name=meta["name"],
                namespace=meta["namespace"],
                body=secret,
                field_manager=FIELD_MANAGER,
                _request_timeout=REQUEST_TIMEOUT,
            )
            metrics.api_call_total.labels(api_type="k8s", operation="update_secret", result="success").inc()
        except ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation="update_secret", result="error").inc()
            if e.status == 409:
                raise ConflictError(
                    f"secret {meta['namespace']}/{meta['name']} was modified concurrently"
                ) from e
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="update_secret").observe(duration)
        return to_dict(updated)


def decode_secret_value(secret: dict[str, Any], key: str) -> str:
    """Decode one entry of a secret's data.

    Args:
        secret: Secret body as served by the API server
        key: Key in the secret's data

    Returns:
        The decoded value, or "" when the key is absent

    Raises:
        InvalidTokenError: If the value is not valid base64-encoded UTF-8
    """
    value = (secret.get("data") or {}).get(key)
    if not value:
        return ""
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidTokenError(f"invalid token: key '{key}' does not hold base64-encoded text") from e
