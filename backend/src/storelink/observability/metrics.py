"""Prometheus metrics for StoreLink.

Defines operational metrics for provider connections and catalog sync.
"""

from prometheus_client import Counter, Histogram

# Provider probe metrics
provider_probes_total = Counter(
    "storelink_provider_probes_total",
    "Total provider reachability probes",
    ["provider_type", "status"]  # status: success|failed
)

# Connection lifecycle metrics
connection_transitions_total = Counter(
    "storelink_connection_transitions_total",
    "Connection state transitions",
    ["provider_kind", "state"]  # state: ConnectionState value
)

connect_failures_total = Counter(
    "storelink_connect_failures_total",
    "Connect attempts that ended without a stored credential",
    ["provider_kind", "reason"]  # reason: invalid_credential|unreachable|initial_sync_failed|interrupted|busy
)

# Catalog sync metrics
catalog_sync_items_total = Counter(
    "storelink_catalog_sync_items_total",
    "Remote catalog items processed by reconciliation",
    ["outcome"]  # outcome: imported|updated|errored
)

catalog_sync_duration_seconds = Histogram(
    "storelink_catalog_sync_duration_seconds",
    "Duration of one catalog reconciliation pass in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0]
)

catalog_sync_incomplete_total = Counter(
    "storelink_catalog_sync_incomplete_total",
    "Reconciliation passes cut short by a provider error after at least one item",
)

# Disconnect metrics
disconnect_demotion_failures_total = Counter(
    "storelink_disconnect_demotion_failures_total",
    "Disconnects where imported items could not be marked unavailable",
)
