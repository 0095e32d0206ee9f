"""Prometheus metrics for storage drivers."""

from hubdrivers.metrics.collector import (
    HUB_DRIVER_BYTES,
    HUB_DRIVER_DURATION,
    HUB_DRIVER_ERRORS,
)

__all__ = [
    "HUB_DRIVER_BYTES",
    "HUB_DRIVER_DURATION",
    "HUB_DRIVER_ERRORS",
]
