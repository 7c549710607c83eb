"""Lifecycle states and handler results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..constants import COND_STATE, REASON_ERROR, REASON_PENDING, REASON_SETTLED
from ..utils.conditions import find_condition
from ..utils.errors import OperatorError


class LifecycleState(str, Enum):
    """Coarse lifecycle tag driving handler dispatch.

    ``Creating``, ``Updating`` and ``Deleting`` are polling states for
    operations Atlas completes asynchronously. ``DeletionRequested`` is
    entered whenever the object has a deletion timestamp; ``Deleted`` is
    terminal.
    """

    INITIAL = "Initial"
    IMPORT_REQUESTED = "ImportRequested"
    IMPORTED = "Imported"
    CREATING = "Creating"
    CREATED = "Created"
    UPDATING = "Updating"
    UPDATED = "Updated"
    DELETION_REQUESTED = "DeletionRequested"
    DELETING = "Deleting"
    DELETED = "Deleted"


SETTLED_STATES = frozenset({LifecycleState.IMPORTED, LifecycleState.CREATED, LifecycleState.UPDATED})

# Transitions that keep the previously observed generation: polling an
# operation in flight, or finishing it
POLLING_TRANSITIONS = frozenset(
    {
        (LifecycleState.CREATING, LifecycleState.CREATING),
        (LifecycleState.CREATING, LifecycleState.CREATED),
        (LifecycleState.UPDATING, LifecycleState.UPDATING),
        (LifecycleState.UPDATING, LifecycleState.UPDATED),
        (LifecycleState.DELETION_REQUESTED, LifecycleState.DELETING),
        (LifecycleState.DELETING, LifecycleState.DELETING),
        (LifecycleState.DELETING, LifecycleState.DELETED),
    }
)

StatusUpdate = Callable[[dict[str, Any]], None]


@dataclass
class Result:
    """Outcome of a successful handler call.

    Attributes:
        next_state: State to record in status
        state_msg: Message recorded on the State condition
        requeue_after: Seconds until the next reconcile, None to wait for events
        apply_status: Kind-specific status writer, called with the status dict
            before it is persisted
    """

    next_state: LifecycleState
    state_msg: str = ""
    requeue_after: float | None = None
    apply_status: StatusUpdate | None = None


@dataclass
class ReconcileResult:
    """Outcome of one reconcile, consumed by the work queue.

    ``resync`` marks a ``requeue_after`` that is only the periodic
    re-verification of an object without a local project.
    """

    requeue_after: float | None = None
    error: Exception | None = None
    resync: bool = False


def get_state(conditions: list[dict[str, Any]]) -> LifecycleState:
    """Read the lifecycle state recorded in the State condition.

    An object without a State condition is Initial.

    Raises:
        OperatorError: If the recorded state is unknown
    """
    cond = find_condition(conditions, COND_STATE)
    if cond is None or not cond.get("reason"):
        return LifecycleState.INITIAL
    try:
        return LifecycleState(cond["reason"])
    except ValueError as e:
        raise OperatorError(f"unsupported state {cond['reason']!r}") from e


def observed_generation(
    generation: int | None,
    conditions: list[dict[str, Any]],
    next_state: LifecycleState,
) -> int | None:
    """Generation to record for a move into ``next_state``.

    While an operation is polled, and on the call that finishes it, the
    generation that started the operation is kept.
    """
    prev = find_condition(conditions, COND_STATE)
    if prev is None:
        return generation
    if (get_state(conditions), next_state) in POLLING_TRANSITIONS:
        return prev.get("observedGeneration", generation)
    return generation


def ready_for_state(state: LifecycleState) -> tuple[bool, str, str]:
    """Ready condition (status, reason, message) implied by a settled handler call."""
    if state == LifecycleState.IMPORTED:
        return True, REASON_SETTLED, "Resource is imported."
    if state in SETTLED_STATES:
        return True, REASON_SETTLED, "Resource is settled."
    if state == LifecycleState.INITIAL:
        return False, REASON_PENDING, "Resource is in initial state."
    if state == LifecycleState.IMPORT_REQUESTED:
        return False, REASON_PENDING, "Resource is being imported."
    if state in (
        LifecycleState.CREATING,
        LifecycleState.UPDATING,
        LifecycleState.DELETING,
        LifecycleState.DELETION_REQUESTED,
    ):
        return False, REASON_PENDING, "Resource is pending."
    return False, REASON_ERROR, f"unknown state: {state.value}"
