"""
Prometheus metrics for historian monitoring.

Counts records appended per kind and failed appends, and tracks when the
last record reached disk.
"""

from prometheus_client import Counter, Gauge

# Log writer metrics
RECORDS_WRITTEN = Counter(
    "historian_records_written_total",
    "Records appended to channel logs",
    labelnames=["kind"],
)

WRITE_FAILURES = Counter(
    "historian_write_failures_total", "Appends that failed with an I/O error"
)

LAST_APPEND_TIME = Gauge(
    "historian_last_append_timestamp_seconds",
    "Unix time of the most recently appended record",
)

# Connection lifecycle metrics
CONNECTIONS = Counter("historian_connections_total", "Successful connections")

DISCONNECTIONS = Counter("historian_disconnections_total", "Observed disconnections")
