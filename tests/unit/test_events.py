"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

from atlas_operator.utils.events import (
    emit_event,
    emit_finalizer_removed,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_resource_version_invalid,
    emit_token_failed,
    emit_token_refreshed,
    emit_unsupported,
)

BODY = {
    "apiVersion": "atlas.mongodb.com/v1",
    "kind": "AtlasIPAccessList",
    "metadata": {"name": "office", "namespace": "default"},
}


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting normal event."""
        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once_with(
            BODY,
            reason="TestReason",
            message="Test message",
            type="Normal",
        )

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting warning event."""
        emit_event(BODY, "ErrorReason", "Error occurred", type_="Warning")

        assert mock_event.call_args[1]["type"] == "Warning"


class TestReconcileEvents:
    """Test cases for engine events."""

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_reconcile_started(self, mock_event):
        """Test emitting reconcile started event."""
        emit_reconcile_started(BODY)

        assert mock_event.call_args[1]["reason"] == "ReconcileStarted"
        assert mock_event.call_args[1]["type"] == "Normal"

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_reconcile_failed(self, mock_event):
        """Test emitting reconcile failed event."""
        emit_reconcile_failed(BODY, "Atlas API error 500")

        call_args = mock_event.call_args
        assert call_args[1]["reason"] == "ReconcileFailed"
        assert "Atlas API error 500" in call_args[1]["message"]
        assert call_args[1]["type"] == "Warning"

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_gate_events(self, mock_event):
        """Test version and environment gate events are warnings."""
        emit_resource_version_invalid(BODY, "too new")
        emit_unsupported(BODY, "not supported")

        reasons = [c[1]["reason"] for c in mock_event.call_args_list]
        assert reasons == ["ResourceVersionInvalid", "Unsupported"]
        assert all(c[1]["type"] == "Warning" for c in mock_event.call_args_list)

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_finalizer_removed(self, mock_event):
        """Test emitting finalizer removed event."""
        emit_finalizer_removed(BODY)

        assert mock_event.call_args[1]["reason"] == "FinalizerRemoved"
        assert mock_event.call_args[1]["type"] == "Normal"


class TestTokenEvents:
    """Test cases for service account token events."""

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_token_refreshed(self, mock_event):
        """Test emitting token refreshed event."""
        emit_token_refreshed(BODY, "creds-token-abc")

        assert "creds-token-abc" in mock_event.call_args[1]["message"]
        assert mock_event.call_args[1]["reason"] == "TokenRefreshed"

    @patch("atlas_operator.utils.events.kopf.event")
    def test_emit_token_failed(self, mock_event):
        """Test emitting token failure event."""
        emit_token_failed(BODY, "token endpoint returned 401")

        assert mock_event.call_args[1]["type"] == "Warning"
        assert mock_event.call_args[1]["reason"] == "TokenRefreshFailed"
