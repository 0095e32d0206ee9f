"""Logging setup for hub storage drivers.

Drivers log with ``extra={"event": LogEvent.X, "bucket": ..., ...}``. The
JSON format emits those extras as top-level fields; the text format is for
local development.
"""

import logging
import sys
import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from hubdrivers.config import LoggingConfig

# SDK loggers that log every request at INFO/DEBUG.
_SDK_LOGGERS = ("aiobotocore", "botocore", "google.auth", "google.resumable_media", "urllib3")


class RateLimitFilter(logging.Filter):
    """Drop repeats of the same driver event within a time window.

    A failing backend can otherwise log the same listing warning on every
    request. Records are keyed by event, bucket and message, so the same
    event for two buckets is not merged. ERROR and above always pass.

    Args:
        rate_limit_seconds: Minimum seconds between identical records
        max_keys: Number of distinct records remembered (oldest evicted)
    """

    def __init__(self, rate_limit_seconds: float = 5.0, max_keys: int = 1000) -> None:
        super().__init__()
        self._window = rate_limit_seconds
        self._max_keys = max_keys
        self._last_seen: OrderedDict[tuple[str, str, str], float] = OrderedDict()

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = (
            str(getattr(record, "event", record.name)),
            str(getattr(record, "bucket", "")),
            record.getMessage(),
        )
        now = time.monotonic()
        last = self._last_seen.get(key)
        if last is not None and now - last < self._window:
            return False

        self._last_seen[key] = now
        self._last_seen.move_to_end(key)
        while len(self._last_seen) > self._max_keys:
            self._last_seen.popitem(last=False)
        return True


class HubJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with level, logger, service and a UTC ISO timestamp."""

    def __init__(self, config: LoggingConfig) -> None:
        super().__init__(
            "%(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": config.service_name},
        )

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()


def setup_logging(config: LoggingConfig) -> None:
    """Install one stderr handler on the root logger."""
    if config.format == "json":
        formatter: logging.Formatter = HubJsonFormatter(config)
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(RateLimitFilter(rate_limit_seconds=config.rate_limit_seconds))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
