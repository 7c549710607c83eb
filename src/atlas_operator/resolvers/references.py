"""Project references carried in resource specs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResourceRef:
    """A name plus optional namespace pointing at a Kubernetes object."""

    name: str
    namespace: str | None = None

    @classmethod
    def from_spec(cls, value: dict[str, Any] | None) -> ResourceRef | None:
        if not value or not value.get("name"):
            return None
        return cls(name=value["name"], namespace=value.get("namespace") or None)


@dataclass(frozen=True)
class ProjectDualReference:
    """Names the owning project via a local AtlasProject or a bare Atlas ID.

    ``connection_secret`` is a secret in the referrer's own namespace and is
    mandatory with ``external_project_id``, since there is no local project
    to inherit credentials from.
    """

    project_ref: ResourceRef | None = None
    external_project_id: str | None = None
    connection_secret: str | None = None

    @classmethod
    def from_spec(cls, spec: dict[str, Any] | None) -> ProjectDualReference:
        spec = spec or {}
        external = spec.get("externalProjectRef") or {}
        secret = spec.get("connectionSecret") or {}
        return cls(
            project_ref=ResourceRef.from_spec(spec.get("projectRef")),
            external_project_id=external.get("id") or None,
            connection_secret=secret.get("name") or None,
        )

    @property
    def is_independent(self) -> bool:
        """Whether the referrer has no local AtlasProject to watch."""
        return self.project_ref is None and self.external_project_id is not None
