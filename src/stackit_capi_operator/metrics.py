"""Prometheus metrics for the STACKIT Cluster API Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "stackit_capi_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "stackit_capi_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "stackit_capi_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# API call metrics
api_call_total = Counter(
    "stackit_capi_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "stackit_capi_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Secret claim metrics
secret_lookup_total = Counter(
    "stackit_capi_operator_secret_lookup_total",
    "Secret lookups by the store that answered",
    ["source", "result"],
)

secret_writes_total = Counter(
    "stackit_capi_operator_secret_writes_total",
    "Writes issued against shared credential secrets",
    ["operation", "result"],
)

# Scope metrics
scope_patches_total = Counter(
    "stackit_capi_operator_scope_patches_total",
    "Patches issued when closing a reconcile scope",
    ["kind", "part", "result"],
)
