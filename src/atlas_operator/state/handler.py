"""Contract implemented once per resource kind."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..utils.errors import OperatorError
from .states import LifecycleState, Result

Logger = logging.Logger | logging.LoggerAdapter


class StateHandler(ABC):
    """Lifecycle callbacks the state reconciler dispatches to.

    Callbacks return a Result on success and raise on failure; the
    reconciler records either outcome in status. Kinds whose Atlas
    operations complete synchronously only implement ``handle_updated``
    and ``handle_deletion_requested``; the polling states fall through to
    their settled counterparts.
    """

    #: Resource kind, e.g. "AtlasIPAccessList"
    kind: str = ""
    #: Plural used to address the custom objects
    plural: str = ""
    #: Whether the kind is available on Atlas for government
    supported_in_gov: bool = True

    def handle_initial(self, body: dict[str, Any], log: Logger) -> Result:
        """Move a fresh object into the convergence path without touching Atlas."""
        return Result(next_state=LifecycleState.UPDATED, state_msg="Resource accepted.")

    def handle_import_requested(self, body: dict[str, Any], log: Logger) -> Result:
        """Adopt an existing Atlas resource named by ``mongodb.com/external-*`` annotations."""
        raise OperatorError(f"{self.kind} does not support importing existing Atlas resources")

    def handle_imported(self, body: dict[str, Any], log: Logger) -> Result:
        return self.handle_updated(body, log)

    def handle_creating(self, body: dict[str, Any], log: Logger) -> Result:
        return self.handle_created(body, log)

    def handle_created(self, body: dict[str, Any], log: Logger) -> Result:
        return self.handle_updated(body, log)

    def handle_updating(self, body: dict[str, Any], log: Logger) -> Result:
        return self.handle_updated(body, log)

    @abstractmethod
    def handle_updated(self, body: dict[str, Any], log: Logger) -> Result:
        """Converge Atlas to the spec, updating only when they differ."""

    @abstractmethod
    def handle_deletion_requested(self, body: dict[str, Any], log: Logger) -> Result:
        """Clean up or unmanage the Atlas resource and return Deleted."""

    def handle_deleting(self, body: dict[str, Any], log: Logger) -> Result:
        return self.handle_deletion_requested(body, log)
