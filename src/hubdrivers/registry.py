"""Driver registry: construct the configured driver and hold the process instance.

Request handlers receive the driver through get_driver() (dependency
injection) and depend only on StorageDriver. Tests inject fakes with
set_driver() / reset_driver().

Provisioning failure policy lives here, not in the drivers: a process whose
backing container cannot be ensured must not serve requests, so
init_driver() and start_provisioning() terminate the process by default.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from hubdrivers.config import HubConfig, get_hub_config
from hubdrivers.drivers import DiskDriver, GcsDriver, S3Driver, StorageDriver
from hubdrivers.errors import ProvisioningError
from hubdrivers.logging_schema import LogEvent

logger = logging.getLogger(__name__)

DRIVERS: dict[str, type[StorageDriver]] = {
    "gcs": GcsDriver,
    "aws": S3Driver,
    "disk": DiskDriver,
}

# Singleton driver instance
_driver: StorageDriver | None = None


def create_driver(config: HubConfig) -> StorageDriver:
    """Construct (without provisioning) the driver named by config.driver.

    Raises:
        ValueError: If the driver name is not registered.
    """
    try:
        driver_cls = DRIVERS[config.driver]
    except KeyError:
        raise ValueError(f"Unknown storage driver: {config.driver!r}") from None

    driver = driver_cls(config.driver_config())  # type: ignore[call-arg]
    logger.info(
        "Storage driver created",
        extra={
            "event": LogEvent.DRIVER_CREATED,
            "backend": driver.backend_name,
            "bucket": driver.bucket,
            "read_url_prefix": driver.get_read_url_prefix(),
        },
    )
    return driver


def _exit_process(exc: BaseException) -> None:
    logger.critical(
        "Storage backend unusable, terminating",
        extra={"event": LogEvent.PROVISION_FAILED, "error": str(exc)},
    )
    raise SystemExit(1) from exc


async def init_driver(
    config: HubConfig | None = None,
    *,
    exit_on_failure: bool = True,
) -> StorageDriver:
    """Initialize the driver singleton and provision its backing container.

    Must be called during process startup.

    Raises:
        SystemExit: If provisioning fails and exit_on_failure is set.
        ProvisioningError: If provisioning fails and exit_on_failure is not set.
    """
    global _driver
    driver = create_driver(config or get_hub_config())
    try:
        await driver.provision()
    except ProvisioningError as exc:
        await driver.close()
        if exit_on_failure:
            logger.critical(
                "Storage backend unusable, terminating",
                extra={"event": LogEvent.PROVISION_FAILED, "bucket": exc.bucket},
            )
            raise SystemExit(1) from exc
        raise
    _driver = driver
    return driver


def start_provisioning(
    driver: StorageDriver,
    on_failure: Callable[[BaseException], None] = _exit_process,
) -> asyncio.Task:
    """Provision in the background (fire-and-forget).

    The driver's ``ready`` event is set on success. On failure on_failure is
    called with the error; the default terminates the process, because every
    subsequent write would fail anyway.
    """

    def _done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            on_failure(exc)

    task = asyncio.create_task(driver.provision(), name=f"provision-{driver.bucket}")
    task.add_done_callback(_done)
    return task


async def close_driver() -> None:
    """Close the driver and release resources."""
    global _driver
    if _driver:
        await _driver.close()
        logger.info(
            "Storage driver closed",
            extra={"event": LogEvent.DRIVER_CLOSED, "backend": _driver.backend_name},
        )
        _driver = None


def get_driver() -> StorageDriver:
    """Get driver singleton.

    Raises:
        RuntimeError: If called before init_driver().
    """
    if _driver is None:
        raise RuntimeError("Storage driver not initialized. Call init_driver() first.")
    return _driver


def set_driver(driver: StorageDriver) -> None:
    """Install a driver instance (for testing or custom bootstrap)."""
    global _driver
    _driver = driver


def reset_driver() -> None:
    """Reset driver singleton (for testing)."""
    global _driver
    _driver = None


__all__ = [
    "DRIVERS",
    "create_driver",
    "init_driver",
    "start_provisioning",
    "close_driver",
    "get_driver",
    "set_driver",
    "reset_driver",
]
