"""Builder for STACKIT load balancer clients."""

from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_LOADBALANCER_ENDPOINT, DEFAULT_REGION
from ..services.stackit.client import LoadBalancerClient
from ..utils.errors import ProviderClientError


def create_loadbalancer_client_from_spec(spec: dict[str, Any], token: str) -> LoadBalancerClient:
    """Create a load balancer client from a STACKITCluster spec.

    Args:
        spec: STACKITCluster spec
        token: Decoded STACKIT token

    Returns:
        Configured load balancer client

    Raises:
        ProviderClientError: If the client cannot be configured
    """
    endpoints = spec.get("stackitAPIEndpoints") or {}
    endpoint = endpoints.get("loadbalancer") or DEFAULT_LOADBALANCER_ENDPOINT
    region = spec.get("stackitRegion") or DEFAULT_REGION

    try:
        return LoadBalancerClient(token=token, endpoint=endpoint, region=region)
    except ValueError as e:
        raise ProviderClientError(f"failed to create loadbalancer client: {e}") from e
