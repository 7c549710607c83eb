"""Tests for the custom object store."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from kubernetes import client

from atlas_operator.services.kube.store import ObjectStore
from atlas_operator.utils.errors import ConflictError, ObjectNotFoundError

BODY = {
    "metadata": {"name": "office", "namespace": "default", "resourceVersion": "42"},
    "spec": {},
}


@pytest.fixture
def api() -> Mock:
    return Mock()


@pytest.fixture
def store(api) -> ObjectStore:
    return ObjectStore(api, "atlasipaccesslists")


class TestObjectStore:
    """Test cases for ObjectStore."""

    def test_get(self, store, api):
        """Test fetching an object."""
        api.get_namespaced_custom_object.return_value = BODY

        assert store.get("default", "office") == BODY
        api.get_namespaced_custom_object.assert_called_once_with(
            group="atlas.mongodb.com",
            version="v1",
            plural="atlasipaccesslists",
            namespace="default",
            name="office",
        )

    def test_get_not_found(self, store, api):
        """Test a missing object raises ObjectNotFoundError."""
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(ObjectNotFoundError):
            store.get("default", "office")

    def test_set_finalizers_sends_resource_version(self, store, api):
        """Test finalizer writes are guarded by the resourceVersion."""
        store.set_finalizers(BODY, ["mongodb.com/finalizer"])

        body = api.patch_namespaced_custom_object.call_args[1]["body"]
        assert body == {"metadata": {"finalizers": ["mongodb.com/finalizer"], "resourceVersion": "42"}}

    def test_patch_status(self, store, api):
        """Test status writes go to the status subresource."""
        store.patch_status(BODY, {"observedGeneration": 3})

        call = api.patch_namespaced_custom_object_status.call_args[1]
        assert call["body"]["status"] == {"observedGeneration": 3}
        assert call["body"]["metadata"]["resourceVersion"] == "42"
        assert call["name"] == "office"

    def test_conflict(self, store, api):
        """Test a stale write raises ConflictError."""
        api.patch_namespaced_custom_object_status.side_effect = client.exceptions.ApiException(status=409)

        with pytest.raises(ConflictError):
            store.patch_status(BODY, {})

    def test_rate_limited_call_is_retried(self, store, api):
        """Test a throttled call is retried after backing off."""
        api.get_namespaced_custom_object.side_effect = [client.exceptions.ApiException(status=429), BODY]

        with patch("atlas_operator.utils.rate_limit.time.sleep"):
            assert store.get("default", "office") == BODY

        assert api.get_namespaced_custom_object.call_count == 2

    def test_other_errors_propagate(self, store, api):
        """Test unexpected API errors are raised unchanged."""
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=500)

        with pytest.raises(client.exceptions.ApiException):
            store.get("default", "office")

    def test_patch_annotations(self, store, api):
        """Test annotation writes are merged and guarded by the resourceVersion."""
        store.patch_annotations(BODY, {"mongodb.com/reapply-timestamp": "1717243200000"})

        body = api.patch_namespaced_custom_object.call_args[1]["body"]
        assert body == {
            "metadata": {
                "annotations": {"mongodb.com/reapply-timestamp": "1717243200000"},
                "resourceVersion": "42",
            }
        }
