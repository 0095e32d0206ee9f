"""Bucket provisioning: ensure the backing container exists.

Idempotent check-then-create, run once per process before a driver serves
requests. Two processes provisioning concurrently rely on the backend's own
create semantics; there is no cross-process lock.

The provisioner only raises ProvisioningError. Whether that terminates the
process is decided by the caller (see hubdrivers.registry).
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from hubdrivers.errors import ProvisioningError
from hubdrivers.logging_schema import LogEvent
from hubdrivers.metrics import HUB_DRIVER_DURATION, HUB_DRIVER_ERRORS

if TYPE_CHECKING:
    from hubdrivers.drivers.interface import StorageDriver

logger = logging.getLogger(__name__)


class ProvisionStatus(str, Enum):
    """Provisioning outcome."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class ProvisionResult(BaseModel):
    """Result of ensuring a backing container."""

    status: ProvisionStatus
    bucket: str

    @property
    def created(self) -> bool:
        return self.status == ProvisionStatus.CREATED


class BucketProvisioner:
    """Confirms or creates a driver's backing container."""

    def __init__(self, driver: StorageDriver) -> None:
        self._driver = driver

    async def ensure(self) -> ProvisionResult:
        """Check existence, create when absent.

        Raises:
            ProvisioningError: If existence cannot be confirmed or creation fails
        """
        bucket = self._driver.bucket
        start = time.monotonic()
        try:
            try:
                exists = await self._driver.bucket_exists()
            except Exception as exc:
                raise self._failed("failed to connect to storage bucket", exc) from exc

            if exists:
                logger.info(
                    "Storage bucket exists",
                    extra={"event": LogEvent.BUCKET_READY, "bucket": bucket, "created": False},
                )
                return ProvisionResult(status=ProvisionStatus.ALREADY_EXISTS, bucket=bucket)

            try:
                await self._driver.create_bucket()
            except Exception as exc:
                raise self._failed("failed to initialize storage bucket", exc) from exc

            logger.info(
                "Storage bucket created",
                extra={"event": LogEvent.BUCKET_CREATED, "bucket": bucket, "created": True},
            )
            return ProvisionResult(status=ProvisionStatus.CREATED, bucket=bucket)
        finally:
            HUB_DRIVER_DURATION.labels(
                backend=self._driver.backend_name, operation="provision"
            ).observe(time.monotonic() - start)

    def _failed(self, reason: str, exc: Exception) -> ProvisioningError:
        bucket = self._driver.bucket
        HUB_DRIVER_ERRORS.labels(
            backend=self._driver.backend_name, operation="provision", error_type="backend"
        ).inc()
        logger.error(
            "Storage provisioning failed",
            extra={
                "event": LogEvent.PROVISION_FAILED,
                "backend": self._driver.backend_name,
                "bucket": bucket,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return ProvisioningError(f"{reason} {bucket}: {exc}", bucket=bucket)
