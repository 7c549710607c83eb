"""Prometheus metrics for the Atlas Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "atlas_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "atlas_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

state_transitions_total = Counter(
    "atlas_operator_state_transitions_total",
    "Lifecycle state transitions recorded in status",
    ["kind", "from_state", "to_state"],
)

error_total = Counter(
    "atlas_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

finalizer_operations_total = Counter(
    "atlas_operator_finalizer_operations_total",
    "Finalizer set/unset operations",
    ["kind", "operation"],
)

# Credential metrics
token_refresh_total = Counter(
    "atlas_operator_token_refresh_total",
    "Service account access token refreshes",
    ["result"],
)

# API call metrics
api_call_total = Counter(
    "atlas_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "atlas_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "atlas_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
