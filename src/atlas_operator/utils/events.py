"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_FINALIZER_REMOVED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RESOURCE_VERSION_INVALID,
    EVENT_REASON_TOKEN_FAILED,
    EVENT_REASON_TOKEN_REFRESHED,
    EVENT_REASON_UNSUPPORTED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (must carry apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_resource_version_invalid(body: dict[str, Any], message: str) -> None:
    """Emit resource version invalid event."""
    emit_event(body, EVENT_REASON_RESOURCE_VERSION_INVALID, message, type_="Warning")


def emit_unsupported(body: dict[str, Any], message: str) -> None:
    """Emit unsupported environment event."""
    emit_event(body, EVENT_REASON_UNSUPPORTED, message, type_="Warning")


def emit_finalizer_removed(body: dict[str, Any]) -> None:
    """Emit finalizer removed event."""
    emit_event(body, EVENT_REASON_FINALIZER_REMOVED, "Finalizer removed, object released")


def emit_token_refreshed(body: dict[str, Any], token_secret: str) -> None:
    """Emit access token refreshed event."""
    emit_event(body, EVENT_REASON_TOKEN_REFRESHED, f"Access token stored in secret {token_secret}")


def emit_token_failed(body: dict[str, Any], message: str) -> None:
    """Emit access token refresh failure event."""
    emit_event(body, EVENT_REASON_TOKEN_FAILED, message, type_="Warning")
