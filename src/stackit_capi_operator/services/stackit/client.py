"""STACKIT load balancer API client."""

from __future__ import annotations

import logging
import os
from urllib.parse import urlparse

import requests

from ... import __version__
from ...constants import DEFAULT_LOADBALANCER_ENDPOINT, DEFAULT_REGION

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = float(os.getenv("STACKIT_REQUEST_TIMEOUT_SECONDS", "30"))


class LoadBalancerClient:
    """Authenticated session against the STACKIT load balancer API."""

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_LOADBALANCER_ENDPOINT,
        region: str = DEFAULT_REGION,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the load balancer client.

        Args:
            token: STACKIT service account token
            endpoint: Base URL of the load balancer API
            region: STACKIT region the cluster lives in
            timeout: Timeout in seconds for each request

        Raises:
            ValueError: If the token is empty or the endpoint is not an http(s) URL
        """
        if not token:
            raise ValueError("a token is required")
        parsed = urlparse(endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"invalid load balancer endpoint {endpoint!r}")

        self.endpoint = endpoint.rstrip("/")
        self.region = region
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "User-Agent": f"stackit-capi-operator/{__version__}",
            }
        )

    def close(self) -> None:
        self.session.close()
