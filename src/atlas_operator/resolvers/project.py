"""Resolution of the Atlas project a resource belongs to."""

from __future__ import annotations

from typing import Any

from ..services.atlas.base import AtlasService
from ..services.atlas.models import Project
from ..utils.errors import ResolutionError
from .connection import ConnectionResolver
from .references import ProjectDualReference


def resolve_project(
    atlas: AtlasService,
    resolver: ConnectionResolver,
    referrer: dict[str, Any],
) -> Project:
    """Fetch the Atlas project named by the referrer's dual reference.

    A projectRef is followed to the local AtlasProject and the project is
    looked up in Atlas by that object's ``spec.name``. An externalProjectRef
    is looked up by ID without consulting any local object. projectRef wins
    if both are set.

    Raises:
        MissingKubeProjectError: If the AtlasProject does not exist
        ResolutionError: If neither reference is set
        AtlasAPIError: If the Atlas lookup fails
    """
    ref = ProjectDualReference.from_spec(referrer.get("spec"))

    if ref.project_ref is not None:
        project_obj = resolver.get_project(referrer, ref.project_ref)
        project_name = project_obj.get("spec", {}).get("name")
        if not project_name:
            meta = project_obj.get("metadata", {})
            raise ResolutionError(f"AtlasProject {meta.get('namespace')}/{meta.get('name')} has no spec.name")
        return atlas.get_project_by_name(project_name)

    if ref.external_project_id is not None:
        return atlas.get_project_by_id(ref.external_project_id)

    raise ResolutionError("either projectRef or externalProjectRef must be set")
