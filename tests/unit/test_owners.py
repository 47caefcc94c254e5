"""Tests for owner-reference helpers and owner resolution."""

from __future__ import annotations

import pytest

from stackit_capi_operator.constants import ANNOTATION_PAUSED
from stackit_capi_operator.utils.errors import NotFoundError
from stackit_capi_operator.utils.owners import (
    api_group_of,
    find_owner_reference,
    get_cluster_from_metadata,
    get_owner_cluster,
    get_owner_machine,
    is_controlled_by,
    is_paused,
    make_owner_reference,
)


class TestOwnerReferences:
    """Test cases for owner-reference helpers."""

    def test_api_group_of(self):
        """Test splitting the group from an apiVersion."""
        assert api_group_of("cluster.x-k8s.io/v1beta1") == "cluster.x-k8s.io"
        assert api_group_of("v1") == ""

    def test_make_owner_reference(self, objects):
        """Test that a plain reference carries no controller flag."""
        ref = make_owner_reference(objects.stackit_cluster())

        assert ref == {
            "apiVersion": "infrastructure.cluster.x-k8s.io/v1alpha1",
            "kind": "STACKITCluster",
            "name": "my-cluster",
            "uid": "uid-sc-my-cluster",
        }

    def test_is_controlled_by(self, objects):
        """Test controller detection by UID."""
        owner = objects.stackit_cluster()
        secret = objects.secret(ownerReferences=[make_owner_reference(owner, controller=True)])

        assert is_controlled_by(secret, owner)
        assert not is_controlled_by(secret, objects.stackit_cluster(name="other"))

    def test_find_owner_reference_matches_group(self, objects):
        """Test that a Cluster reference from another API group is ignored."""
        meta = {"ownerReferences": [{"apiVersion": "example.com/v1", "kind": "Cluster", "name": "x"}]}

        assert find_owner_reference(meta, "Cluster", "cluster.x-k8s.io") is None


class TestOwnerResolution:
    """Test cases for resolving owner objects."""

    def test_get_owner_cluster(self, objects, fake_custom_api):
        """Test resolving the owning Cluster."""
        cluster = objects.cluster()
        stackit_cluster = objects.stackit_cluster(owner=cluster)
        api = fake_custom_api(cluster)

        assert get_owner_cluster(api, stackit_cluster["metadata"])["metadata"]["uid"] == "uid-my-cluster"

    def test_get_owner_cluster_without_reference(self, objects, fake_custom_api):
        """Test that a missing owner reference is not an error."""
        assert get_owner_cluster(fake_custom_api(), objects.stackit_cluster()["metadata"]) is None

    def test_get_owner_cluster_missing(self, objects, fake_custom_api):
        """Test that a reference to a missing Cluster raises."""
        stackit_cluster = objects.stackit_cluster(owner=objects.cluster())

        with pytest.raises(NotFoundError):
            get_owner_cluster(fake_custom_api(), stackit_cluster["metadata"])

    def test_get_owner_machine(self, objects, fake_custom_api):
        """Test resolving the owning Machine."""
        machine = objects.machine()
        stackit_machine = objects.stackit_machine(owner=machine)

        result = get_owner_machine(fake_custom_api(machine), stackit_machine["metadata"])

        assert result["metadata"]["name"] == "my-machine"

    def test_get_cluster_from_metadata(self, objects, fake_custom_api):
        """Test resolving a Cluster through the cluster-name label."""
        api = fake_custom_api(objects.cluster())

        assert get_cluster_from_metadata(api, objects.machine()["metadata"])["kind"] == "Cluster"
        assert get_cluster_from_metadata(api, objects.machine(cluster_name=None)["metadata"]) is None


class TestIsPaused:
    """Test cases for is_paused."""

    def test_not_paused(self, objects):
        assert not is_paused(objects.cluster(), objects.stackit_cluster())

    def test_cluster_paused(self, objects):
        assert is_paused(objects.cluster(paused=True), objects.stackit_cluster())

    def test_object_annotated(self, objects):
        stackit_cluster = objects.stackit_cluster()
        stackit_cluster["metadata"]["annotations"] = {ANNOTATION_PAUSED: "true"}

        assert is_paused(objects.cluster(), stackit_cluster)
