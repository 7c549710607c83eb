"""Unit tests for condition utilities."""

from __future__ import annotations

from atlas_operator.utils.conditions import (
    find_condition,
    set_ready_condition,
    set_ready_error_condition,
    set_resource_version_condition,
    update_condition,
)


class TestConditions:
    """Test condition utilities."""

    def test_update_condition_new(self) -> None:
        """Test adding a new condition."""
        conditions = []
        result = update_condition(
            conditions, "TestCondition", "True", "TestReason", "Test message", observed_generation=1
        )

        assert len(result) == 1
        assert result[0]["type"] == "TestCondition"
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "TestReason"
        assert result[0]["message"] == "Test message"
        assert result[0]["observedGeneration"] == 1

    def test_update_condition_existing(self) -> None:
        """Test updating an existing condition."""
        conditions = [
            {
                "type": "TestCondition",
                "status": "False",
                "reason": "OldReason",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        result = update_condition(
            conditions, "TestCondition", "True", "NewReason", "New message", observed_generation=2
        )

        assert len(result) == 1
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "NewReason"
        assert result[0]["message"] == "New message"
        assert result[0]["observedGeneration"] == 2
        assert result[0]["lastTransitionTime"] != "2023-01-01T00:00:00Z"

    def test_update_condition_keeps_transition_time_for_same_status(self) -> None:
        """Test lastTransitionTime survives an update that keeps the status."""
        conditions = [
            {
                "type": "Ready",
                "status": "True",
                "reason": "Settled",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        result = update_condition(conditions, "Ready", "True", "Settled", "New message")

        assert result[0]["lastTransitionTime"] == "2023-01-01T00:00:00Z"
        assert result[0]["message"] == "New message"

    def test_update_condition_leaves_other_types(self) -> None:
        """Test that only the matching condition type is replaced."""
        conditions = [
            {"type": "State", "status": "True", "reason": "Updated", "message": ""},
        ]

        result = update_condition(conditions, "Ready", "False", "Error", "boom")

        assert len(result) == 2
        assert find_condition(result, "State")["reason"] == "Updated"

    def test_set_ready_condition(self) -> None:
        """Test setting ready condition."""
        conditions = []
        result = set_ready_condition(conditions, True, "Settled", "ok", observed_generation=1)

        assert len(result) == 1
        assert result[0]["type"] == "Ready"
        assert result[0]["status"] == "True"

    def test_set_ready_error_condition(self) -> None:
        """Test setting Ready=False with the Error reason."""
        result = set_ready_error_condition([], "connection refused")

        assert result[0]["status"] == "False"
        assert result[0]["reason"] == "Error"
        assert result[0]["message"] == "connection refused"

    def test_set_resource_version_condition(self) -> None:
        """Test resource version condition reasons follow validity."""
        valid = set_resource_version_condition([], True, "ok")
        invalid = set_resource_version_condition([], False, "too new")

        assert valid[0]["type"] == "ResourceVersionStatus"
        assert valid[0]["reason"] == "ResourceVersionValid"
        assert invalid[0]["status"] == "False"
        assert invalid[0]["reason"] == "ResourceVersionInvalid"

    def test_find_condition_missing(self) -> None:
        """Test absent conditions are not found."""
        assert find_condition([], "Ready") is None
