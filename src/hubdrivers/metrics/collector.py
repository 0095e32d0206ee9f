"""Prometheus metrics definitions for hub storage drivers.

Driver metrics track backend operations:
- write: object uploads (duration, bytes)
- list: paginated listings
- provision: bucket existence check and creation
"""

from prometheus_client import Counter, Histogram

# Uploads are dominated by transfer time; listings and provisioning are quick.
_BUCKETS = (
    0.01, 0.025, 0.05, 0.1, 0.25,
    0.5, 1, 2.5, 5, 10,
    30, 60,
)

BACKENDS = ("gcs", "aws", "disk")
OPERATIONS = ("write", "list", "provision")

HUB_DRIVER_DURATION = Histogram(
    "hub_driver_duration_seconds",
    "Duration of storage driver operations",
    ["backend", "operation"],
    buckets=_BUCKETS,
)

HUB_DRIVER_ERRORS = Counter(
    "hub_driver_errors_total",
    "Total storage driver operation errors",
    ["backend", "operation", "error_type"],  # error_type: invalid_path, backend
)

HUB_DRIVER_BYTES = Counter(
    "hub_driver_bytes_total",
    "Total bytes written through storage drivers",
    ["backend"],
)


def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    for backend in BACKENDS:
        HUB_DRIVER_BYTES.labels(backend=backend)
        for op in OPERATIONS:
            HUB_DRIVER_DURATION.labels(backend=backend, operation=op)
            HUB_DRIVER_ERRORS.labels(backend=backend, operation=op, error_type="backend")
        HUB_DRIVER_ERRORS.labels(backend=backend, operation="write", error_type="invalid_path")


_init_metrics()
