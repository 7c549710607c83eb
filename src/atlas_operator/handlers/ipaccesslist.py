"""Handlers for AtlasIPAccessList resources."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable

from ..builders.ipaccesslist import compute_diff, entries_from_spec
from ..config import OperatorConfig
from ..constants import KIND_IP_ACCESS_LIST, PLURAL_IP_ACCESS_LIST
from ..resolvers.connection import ConnectionResolver
from ..resolvers.project import resolve_project
from ..services.atlas.base import AtlasService
from ..services.atlas.client import AtlasClient
from ..services.atlas.models import ConnectionConfig, Project, canonical_key
from ..state.handler import StateHandler
from ..state.reconciler import StateReconciler
from ..state.states import LifecycleState, Result
from ..utils.errors import AtlasNotFoundError, MissingKubeProjectError
from ..utils.protection import is_resource_policy_keep_or_default
from .base import register_state_reconciler
from .shared import get_config, get_connection_resolver, get_store

Logger = logging.Logger | logging.LoggerAdapter
AtlasFactory = Callable[[str, ConnectionConfig], AtlasService]


class IPAccessListHandler(StateHandler):
    """Keeps a project's IP access list equal to the entries in the spec."""

    kind = KIND_IP_ACCESS_LIST
    plural = PLURAL_IP_ACCESS_LIST

    def __init__(
        self,
        resolver: ConnectionResolver,
        config: OperatorConfig,
        atlas_factory: AtlasFactory = AtlasClient.from_connection,
    ):
        self.resolver = resolver
        self.config = config
        self.atlas_factory = atlas_factory

    def _connect(self, body: dict[str, Any], log: Logger) -> tuple[AtlasService, Project]:
        connection = self.resolver.resolve_connection_config(body, log)
        atlas = self.atlas_factory(self.config.atlas_domain, connection)
        return atlas, resolve_project(atlas, self.resolver, body)

    def handle_updated(self, body: dict[str, Any], log: Logger) -> Result:
        desired = entries_from_spec(body.get("spec") or {})
        atlas, project = self._connect(body, log)

        current = atlas.list_ip_access_entries(project.id)
        diff = compute_diff(desired, current)
        if diff.empty:
            log.debug(f"IP access list of project {project.id} is up to date")
        else:
            for entry in diff.to_remove:
                atlas.delete_ip_access_entry(project.id, entry)
            if diff.to_add:
                atlas.add_ip_access_entries(project.id, diff.to_add)
            log.info(
                f"Updated IP access list of project {project.id}: "
                f"{len(diff.to_add)} added, {len(diff.to_remove)} removed"
            )

        def apply_status(status: dict[str, Any]) -> None:
            status["projectId"] = project.id
            status["entries"] = [entry.key for entry in desired]

        return Result(
            next_state=LifecycleState.UPDATED,
            state_msg=f"IP access list in sync with project {project.id}.",
            apply_status=apply_status,
        )

    def handle_deletion_requested(self, body: dict[str, Any], log: Logger) -> Result:
        if is_resource_policy_keep_or_default(body, self.config.object_deletion_protection):
            log.info("Keeping IP access list entries in Atlas, releasing object")
            return Result(next_state=LifecycleState.DELETED, state_msg="Unmanaged.")

        try:
            atlas, project = self._connect(body, log)
        except MissingKubeProjectError as e:
            log.warning(f"Releasing object without cleanup: {e}")
            return Result(next_state=LifecycleState.DELETED, state_msg="Project gone.")
        except AtlasNotFoundError:
            log.info("Atlas project no longer exists, nothing to clean up")
            return Result(next_state=LifecycleState.DELETED, state_msg="Project gone.")

        managed = _managed_keys(body)
        for entry in atlas.list_ip_access_entries(project.id):
            if entry.key not in managed:
                continue
            try:
                atlas.delete_ip_access_entry(project.id, entry)
            except AtlasNotFoundError:
                # already removed
                pass
        log.info(f"Removed {len(managed)} IP access list entries from project {project.id}")

        return Result(next_state=LifecycleState.DELETED, state_msg="Deleted.")


def _managed_keys(body: dict[str, Any]) -> set[str]:
    """Entries the object put into Atlas: the spec, plus those last recorded in status."""
    keys = {entry.key for entry in entries_from_spec(body.get("spec") or {})}
    keys.update(canonical_key(key) for key in (body.get("status") or {}).get("entries") or [])
    return keys


@lru_cache(maxsize=1)
def get_reconciler() -> StateReconciler:
    """Get the reconciler for AtlasIPAccessList objects."""
    config = get_config()
    handler = IPAccessListHandler(get_connection_resolver(), config)
    return StateReconciler(handler, get_store(PLURAL_IP_ACCESS_LIST), config, reapply=True)


register_state_reconciler(KIND_IP_ACCESS_LIST, get_reconciler)
