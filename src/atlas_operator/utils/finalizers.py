"""Finalizer helpers.

The operator's finalizer is set after the first successful non-deletion
reconcile and removed only once the deletion handler has reported the
Deleted state. While present it keeps the object in the store after a
user requests deletion, so Atlas-side cleanup can complete first.
"""

from __future__ import annotations

from typing import Any

from ..constants import FINALIZER


def get_finalizers(body: dict[str, Any]) -> list[str]:
    """Return a copy of the object's finalizer list."""
    return list(body.get("metadata", {}).get("finalizers") or [])


def has_finalizer(body: dict[str, Any], finalizer: str = FINALIZER) -> bool:
    """Whether the object carries the given finalizer."""
    return finalizer in get_finalizers(body)


def with_finalizer(finalizers: list[str], finalizer: str = FINALIZER) -> list[str]:
    """Return the finalizer list with the given finalizer appended once."""
    if finalizer in finalizers:
        return list(finalizers)
    return [*finalizers, finalizer]


def without_finalizer(finalizers: list[str], finalizer: str = FINALIZER) -> list[str]:
    """Return the finalizer list with every occurrence of the finalizer removed."""
    return [f for f in finalizers if f != finalizer]


def is_being_deleted(body: dict[str, Any]) -> bool:
    """Whether the object has a deletion timestamp."""
    return bool(body.get("metadata", {}).get("deletionTimestamp"))
