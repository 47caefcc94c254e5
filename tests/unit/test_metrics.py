"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from stackit_capi_operator.metrics import (
    reconcile_total,
    scope_patches_total,
    secret_lookup_total,
    secret_writes_total,
)
from stackit_capi_operator.scope import PatchHelper
from stackit_capi_operator.utils.kube import STACKIT_CLUSTER, ObjectIdentity
from stackit_capi_operator.utils.secret_manager import SecretManager
from stackit_capi_operator.utils.secrets import SecretStore


def sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_names(self):
        """Test metric names are prefixed with the operator name."""
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "stackit_capi_operator_reconcile"
        assert secret_lookup_total._name == "stackit_capi_operator_secret_lookup"
        assert secret_writes_total._name == "stackit_capi_operator_secret_writes"
        assert scope_patches_total._name == "stackit_capi_operator_scope_patches"


class TestRecordedMetrics:
    """Test that operations record what they did."""

    def test_secret_lookup_fallback(self, objects, fake_core_api):
        """Test that a cache miss and an API hit are both counted."""
        cache_miss = sample("stackit_capi_operator_secret_lookup_total", source="cache", result="miss")
        api_hit = sample("stackit_capi_operator_secret_lookup_total", source="api", result="hit")

        SecretStore(fake_core_api(objects.secret())).find(ObjectIdentity("default", "stackit-token"))

        assert sample("stackit_capi_operator_secret_lookup_total", source="cache", result="miss") == cache_miss + 1
        assert sample("stackit_capi_operator_secret_lookup_total", source="api", result="hit") == api_hit + 1

    def test_claim_write_counted(self, objects, fake_core_api):
        """Test that a claim write is counted once."""
        before = sample("stackit_capi_operator_secret_writes_total", operation="claim", result="success")
        manager = SecretManager(SecretStore(fake_core_api(objects.secret())))

        manager.acquire_secret(
            ObjectIdentity("default", "stackit-token"),
            objects.stackit_cluster(),
            owner_is_controller=False,
            add_finalizer=True,
        )

        assert sample("stackit_capi_operator_secret_writes_total", operation="claim", result="success") == before + 1

    def test_scope_patch_counted(self, objects, fake_custom_api):
        """Test that status patches are counted per part."""
        before = sample(
            "stackit_capi_operator_scope_patches_total", kind="STACKITCluster", part="status", result="success"
        )
        obj = objects.stackit_cluster()
        helper = PatchHelper(fake_custom_api(obj), STACKIT_CLUSTER, obj)
        obj["status"]["ready"] = True

        helper.patch(obj)

        after = sample(
            "stackit_capi_operator_scope_patches_total", kind="STACKITCluster", part="status", result="success"
        )
        assert after == before + 1
