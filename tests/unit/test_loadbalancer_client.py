"""Tests for the STACKIT load balancer client and its builder."""

from __future__ import annotations

import pytest

from stackit_capi_operator.builders import create_loadbalancer_client_from_spec
from stackit_capi_operator.services.stackit.client import LoadBalancerClient
from stackit_capi_operator.utils.errors import ProviderClientError


class TestLoadBalancerClient:
    """Test cases for LoadBalancerClient."""

    def test_session_is_authenticated(self):
        """Test that requests carry the bearer token."""
        lb_client = LoadBalancerClient(token="s3cr3t-token")

        assert lb_client.session.headers["Authorization"] == "Bearer s3cr3t-token"
        assert lb_client.endpoint == "https://load-balancer.api.stackit.cloud"
        assert lb_client.region == "eu01"
        lb_client.close()

    def test_trailing_slash_is_stripped(self):
        """Test that the endpoint is normalized."""
        lb_client = LoadBalancerClient(token="t", endpoint="https://lb.example.com/")

        assert lb_client.endpoint == "https://lb.example.com"

    def test_empty_token_rejected(self):
        """Test that a client cannot be built without a token."""
        with pytest.raises(ValueError):
            LoadBalancerClient(token="")

    @pytest.mark.parametrize("endpoint", ["lb.example.com", "ftp://lb.example.com", "https://"])
    def test_invalid_endpoint_rejected(self, endpoint):
        """Test that the endpoint must be an http(s) URL."""
        with pytest.raises(ValueError):
            LoadBalancerClient(token="t", endpoint=endpoint)


class TestCreateLoadBalancerClientFromSpec:
    """Test cases for create_loadbalancer_client_from_spec."""

    def test_defaults(self):
        """Test that an empty spec uses the public endpoint and default region."""
        lb_client = create_loadbalancer_client_from_spec({}, "t")

        assert lb_client.endpoint == "https://load-balancer.api.stackit.cloud"
        assert lb_client.region == "eu01"

    def test_spec_overrides(self):
        """Test that the endpoint and region come from the STACKITCluster spec."""
        spec = {
            "stackitRegion": "eu02",
            "stackitAPIEndpoints": {"loadbalancer": "https://lb.internal.example.com"},
        }

        lb_client = create_loadbalancer_client_from_spec(spec, "t")

        assert lb_client.endpoint == "https://lb.internal.example.com"
        assert lb_client.region == "eu02"

    def test_invalid_configuration(self):
        """Test that configuration errors are reported as ProviderClientError."""
        spec = {"stackitAPIEndpoints": {"loadbalancer": "not a url"}}

        with pytest.raises(ProviderClientError, match="failed to create loadbalancer client"):
            create_loadbalancer_client_from_spec(spec, "t")
