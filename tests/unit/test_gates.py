"""Tests for the reconcile gates."""

from __future__ import annotations

from atlas_operator.state.gates import ObjectPolicy, ReconciliationPolicy, check_resource_version


def _body(annotations=None, labels=None):
    return {"metadata": {"name": "office", "annotations": annotations or {}, "labels": labels or {}}}


class TestObjectPolicy:
    """Test cases for ObjectPolicy decoding."""

    def test_defaults(self):
        """Test an unannotated object."""
        policy = ObjectPolicy.from_body({"metadata": {}})
        assert policy.reconciliation is ReconciliationPolicy.DEFAULT
        assert not policy.skip
        assert policy.resource_version is None
        assert not policy.allow_newer_version

    def test_skip_annotation(self):
        """Test the skip reconciliation policy."""
        policy = ObjectPolicy.from_body(_body(annotations={"mongodb.com/atlas-reconciliation-policy": "skip"}))
        assert policy.skip

    def test_other_policy_value_does_not_skip(self):
        """Test unknown policy values reconcile normally."""
        policy = ObjectPolicy.from_body(_body(annotations={"mongodb.com/atlas-reconciliation-policy": "Skip!"}))
        assert not policy.skip

    def test_version_label_and_override(self):
        """Test the resource version label and override annotation."""
        policy = ObjectPolicy.from_body(
            _body(
                annotations={"mongodb.com/atlas-resource-version-policy": "allow"},
                labels={"mongodb.com/atlas-resource-version": "2.3.0"},
            )
        )
        assert policy.resource_version == "2.3.0"
        assert policy.allow_newer_version


class TestCheckResourceVersion:
    """Test cases for check_resource_version."""

    def test_no_label_passes(self):
        """Test objects without the label are accepted."""
        assert check_resource_version(ObjectPolicy(), "2.1.0") is None

    def test_older_or_equal_passes(self):
        """Test labels up to the operator version are accepted."""
        assert check_resource_version(ObjectPolicy(resource_version="2.1.0"), "2.1.0") is None
        assert check_resource_version(ObjectPolicy(resource_version="1.9.3"), "2.1.0") is None

    def test_prerelease_of_current_passes(self):
        """Test prerelease and build suffixes are ignored."""
        assert check_resource_version(ObjectPolicy(resource_version="2.1.0-rc.1"), "2.1.0") is None
        assert check_resource_version(ObjectPolicy(resource_version="2.1.0"), "2.1.0-rc.1") is None

    def test_newer_is_rejected(self):
        """Test a label newer than the operator is rejected."""
        message = check_resource_version(ObjectPolicy(resource_version="2.2.0"), "2.1.0")
        assert message is not None
        assert "2.2.0" in message
        assert "mongodb.com/atlas-resource-version-policy=allow" in message

    def test_newer_is_allowed_with_override(self):
        """Test the override annotation accepts newer labels."""
        policy = ObjectPolicy(resource_version="2.2.0", allow_newer_version=True)
        assert check_resource_version(policy, "2.1.0") is None

    def test_invalid_label_is_rejected(self):
        """Test unparseable labels are rejected even with the override."""
        policy = ObjectPolicy(resource_version="latest", allow_newer_version=True)
        message = check_resource_version(policy, "2.1.0")
        assert message is not None
        assert "not a valid semantic version" in message

    def test_development_operator_version_skips_check(self):
        """Test an operator without a release version accepts any label."""
        assert check_resource_version(ObjectPolicy(resource_version="9.0.0"), "dev") is None
