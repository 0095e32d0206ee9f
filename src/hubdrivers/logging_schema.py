"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for storage drivers.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.FILE_WRITTEN, ...})
    """

    # Driver lifecycle
    DRIVER_CREATED = "driver_created"
    DRIVER_CLOSED = "driver_closed"

    # Provisioning events
    BUCKET_READY = "bucket_ready"
    BUCKET_CREATED = "bucket_created"
    PROVISION_FAILED = "provision_failed"

    # Write events
    FILE_WRITTEN = "file_written"
    WRITE_FAILED = "write_failed"
    WRITE_REJECTED = "write_rejected"

    # Listing events
    FILES_LISTED = "files_listed"
    LIST_FAILED = "list_failed"
