"""Utility functions for the Atlas Operator."""

from .conditions import (
    set_ready_condition,
    set_ready_error_condition,
    update_condition,
)
from .events import emit_event
from .finalizers import has_finalizer, is_being_deleted
from .protection import is_resource_policy_keep_or_default
from .rate_limit import handle_rate_limit_error, rate_limit_atlas, rate_limit_k8s
from .secrets import read_secret_data

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_ready_error_condition",
    "emit_event",
    "has_finalizer",
    "is_being_deleted",
    "is_resource_policy_keep_or_default",
    "read_secret_data",
    "rate_limit_k8s",
    "rate_limit_atlas",
    "handle_rate_limit_error",
]
