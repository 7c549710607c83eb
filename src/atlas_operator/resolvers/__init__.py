"""Resolvers for credentials and project references."""

from .connection import ConnectionResolver, compute_secret, get_connection_config, validate
from .project import resolve_project
from .references import ProjectDualReference, ResourceRef

__all__ = [
    "ConnectionResolver",
    "ProjectDualReference",
    "ResourceRef",
    "compute_secret",
    "get_connection_config",
    "resolve_project",
    "validate",
]
