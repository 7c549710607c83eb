"""Checks run before a resource is dispatched to its handler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import semver

from ..constants import (
    ANNOTATION_RECONCILIATION_POLICY,
    ANNOTATION_RESOURCE_VERSION_OVERRIDE,
    LABEL_RESOURCE_VERSION,
    RECONCILIATION_POLICY_SKIP,
    RESOURCE_VERSION_ALLOW,
)


class ReconciliationPolicy(Enum):
    DEFAULT = "default"
    SKIP = "skip"


@dataclass(frozen=True)
class ObjectPolicy:
    """Annotation and label driven settings, decoded once per reconcile."""

    reconciliation: ReconciliationPolicy = ReconciliationPolicy.DEFAULT
    resource_version: str | None = None
    allow_newer_version: bool = False

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> ObjectPolicy:
        meta = body.get("metadata", {})
        annotations = meta.get("annotations") or {}
        labels = meta.get("labels") or {}

        reconciliation = ReconciliationPolicy.DEFAULT
        if annotations.get(ANNOTATION_RECONCILIATION_POLICY) == RECONCILIATION_POLICY_SKIP:
            reconciliation = ReconciliationPolicy.SKIP

        return cls(
            reconciliation=reconciliation,
            resource_version=labels.get(LABEL_RESOURCE_VERSION) or None,
            allow_newer_version=annotations.get(ANNOTATION_RESOURCE_VERSION_OVERRIDE) == RESOURCE_VERSION_ALLOW,
        )

    @property
    def skip(self) -> bool:
        return self.reconciliation is ReconciliationPolicy.SKIP


def check_resource_version(policy: ObjectPolicy, operator_version: str) -> str | None:
    """Validate the resource version label against the operator version.

    Returns:
        None when the label is absent or acceptable, otherwise the reason it
        was rejected
    """
    if policy.resource_version is None:
        return None

    try:
        resource_version = semver.Version.parse(policy.resource_version)
    except ValueError:
        return f"{LABEL_RESOURCE_VERSION}={policy.resource_version} is not a valid semantic version"

    try:
        current = semver.Version.parse(operator_version).finalize_version()
    except ValueError:
        # Development builds carry no comparable version
        return None

    if resource_version.finalize_version() > current and not policy.allow_newer_version:
        return (
            f"{LABEL_RESOURCE_VERSION}={policy.resource_version} is newer than the operator version "
            f"{operator_version}; set {ANNOTATION_RESOURCE_VERSION_OVERRIDE}={RESOURCE_VERSION_ALLOW} to override"
        )
    return None
