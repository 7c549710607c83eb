"""Deletion protection policy."""

from __future__ import annotations

from typing import Any

from ..constants import ANNOTATION_RESOURCE_POLICY, RESOURCE_POLICY_DELETE, RESOURCE_POLICY_KEEP


def _annotations(body: dict[str, Any]) -> dict[str, str]:
    return body.get("metadata", {}).get("annotations") or {}


def is_resource_policy_keep(body: dict[str, Any]) -> bool:
    """Whether the object explicitly asks to keep the Atlas resource on deletion."""
    return _annotations(body).get(ANNOTATION_RESOURCE_POLICY) == RESOURCE_POLICY_KEEP


def is_resource_policy_keep_or_default(body: dict[str, Any], deletion_protection: bool) -> bool:
    """Whether deleting the object must leave the Atlas resource intact.

    An explicit ``keep`` or ``delete`` resource policy wins; any other value
    falls back to the operator-wide deletion protection flag.
    """
    if is_resource_policy_keep(body):
        return True
    if _annotations(body).get(ANNOTATION_RESOURCE_POLICY) == RESOURCE_POLICY_DELETE:
        return False
    return deletion_protection
