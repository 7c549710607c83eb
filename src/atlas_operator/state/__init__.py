"""Generic lifecycle state machine."""

from .handler import StateHandler
from .reconciler import StateReconciler
from .states import LifecycleState, ReconcileResult, Result, get_state

__all__ = [
    "LifecycleState",
    "ReconcileResult",
    "Result",
    "StateHandler",
    "StateReconciler",
    "get_state",
]
