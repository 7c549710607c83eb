"""Tests for finalizer and deletion protection helpers."""

from __future__ import annotations

from atlas_operator.constants import FINALIZER
from atlas_operator.utils.finalizers import (
    get_finalizers,
    has_finalizer,
    is_being_deleted,
    with_finalizer,
    without_finalizer,
)
from atlas_operator.utils.protection import is_resource_policy_keep, is_resource_policy_keep_or_default


def _body(annotations=None, finalizers=None, deletion_timestamp=None):
    meta = {"name": "office", "namespace": "default"}
    if annotations is not None:
        meta["annotations"] = annotations
    if finalizers is not None:
        meta["finalizers"] = finalizers
    if deletion_timestamp is not None:
        meta["deletionTimestamp"] = deletion_timestamp
    return {"metadata": meta}


class TestFinalizers:
    """Test cases for finalizer helpers."""

    def test_with_finalizer_adds_once(self):
        """Test the finalizer is appended only once."""
        assert with_finalizer([]) == [FINALIZER]
        assert with_finalizer(["other", FINALIZER]) == ["other", FINALIZER]

    def test_without_finalizer_keeps_others(self):
        """Test removing the finalizer leaves other finalizers alone."""
        assert without_finalizer(["other", FINALIZER]) == ["other"]
        assert without_finalizer([]) == []

    def test_has_finalizer(self):
        """Test finalizer detection."""
        assert has_finalizer(_body(finalizers=[FINALIZER]))
        assert not has_finalizer(_body(finalizers=["other"]))
        assert not has_finalizer(_body())

    def test_get_finalizers_returns_copy(self):
        """Test the returned list can be modified freely."""
        body = _body(finalizers=[FINALIZER])
        finalizers = get_finalizers(body)
        finalizers.clear()
        assert body["metadata"]["finalizers"] == [FINALIZER]

    def test_is_being_deleted(self):
        """Test deletion timestamp detection."""
        assert is_being_deleted(_body(deletion_timestamp="2024-01-01T00:00:00Z"))
        assert not is_being_deleted(_body())


class TestResourcePolicy:
    """Test cases for deletion protection."""

    def test_keep_annotation(self):
        """Test an explicit keep policy protects the Atlas resource."""
        body = _body(annotations={"mongodb.com/atlas-resource-policy": "keep"})
        assert is_resource_policy_keep(body)
        assert is_resource_policy_keep_or_default(body, deletion_protection=False)

    def test_delete_annotation_overrides_protection(self):
        """Test an explicit delete policy wins over deletion protection."""
        body = _body(annotations={"mongodb.com/atlas-resource-policy": "delete"})
        assert not is_resource_policy_keep(body)
        assert not is_resource_policy_keep_or_default(body, deletion_protection=True)

    def test_default_follows_protection_flag(self):
        """Test objects without a policy follow the operator-wide flag."""
        body = _body()
        assert is_resource_policy_keep_or_default(body, deletion_protection=True)
        assert not is_resource_policy_keep_or_default(body, deletion_protection=False)
