"""Storage driver interface shared by every backend.

The hub core depends only on StorageDriver; concrete drivers translate the
contract into one backend's listing and upload primitives.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import IO

from pydantic import BaseModel

from hubdrivers.drivers.paths import is_path_valid, object_key, strip_prefix
from hubdrivers.drivers.provisioning import BucketProvisioner, ProvisionResult
from hubdrivers.errors import InvalidPathError, StorageFailureError
from hubdrivers.logging_schema import LogEvent
from hubdrivers.metrics import HUB_DRIVER_BYTES, HUB_DRIVER_DURATION, HUB_DRIVER_ERRORS

logger = logging.getLogger(__name__)

ByteStream = AsyncIterator[bytes]

# Uploads are buffered in memory up to this size, then on disk.
SPOOL_MAX_BYTES = 8 * 1024 * 1024
STREAM_CHUNK_SIZE = 64 * 1024


def check_content_length(content_length: int | None, size: int) -> None:
    """Raise ValueError if a declared content length differs from the bytes received."""
    if content_length is not None and size != content_length:
        raise ValueError(f"declared content length {content_length} but received {size} bytes")


async def spool_stream(
    stream: ByteStream,
    fileobj: IO[bytes],
    content_length: int | None = None,
) -> int:
    """Drain stream into fileobj and return the byte count.

    Writes run on the calling thread, so fileobj should be a memory-backed
    spool (SpooledTemporaryFile) rather than a destination file.

    Raises:
        ValueError: If content_length is declared and differs from the bytes received
    """
    size = 0
    async for chunk in stream:
        fileobj.write(chunk)
        size += len(chunk)
    check_content_length(content_length, size)
    return size


async def stream_bytes(data: bytes, chunk_size: int = STREAM_CHUNK_SIZE) -> ByteStream:
    for offset in range(0, len(data), chunk_size):
        yield data[offset : offset + chunk_size]


async def stream_file(fileobj: IO[bytes], chunk_size: int = STREAM_CHUNK_SIZE) -> ByteStream:
    while chunk := fileobj.read(chunk_size):
        yield chunk


@dataclass
class FileWriteRequest:
    """One file upload, scoped to a tenant by storage_top_level."""

    path: str
    storage_top_level: str
    stream: ByteStream
    content_type: str
    content_length: int | None = None  # None when the length is unknown


class ListFilesResult(BaseModel):
    """One page of a prefix listing.

    entries are relative to the queried prefix; page is the token for the
    next call, or None when the listing is exhausted.
    """

    entries: list[str]
    page: str | None = None


class StorageDriver(ABC):
    """Uniform contract implemented by every storage backend.

    Subclasses provide the backend primitives (_list_page, _upload,
    bucket_exists, create_bucket); this class owns path validation, key and
    URL construction, error wrapping, logging and metrics.
    """

    #: Identifier used in config, logs and metric labels.
    backend_name: str = ""
    #: Human-readable backend label used in failure messages.
    display_name: str = "Storage"

    def __init__(self, bucket: str, page_size: int, cache_control: str | None = None) -> None:
        self._bucket = bucket
        self._page_size = page_size
        self._cache_control = cache_control
        # Set once the backing container is confirmed or created.
        self.ready = asyncio.Event()

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def cache_control(self) -> str | None:
        return self._cache_control

    @staticmethod
    def is_path_valid(path: str) -> bool:
        return is_path_valid(path)

    @abstractmethod
    def get_read_url_prefix(self) -> str:
        """Return the public base URL, ending in ``/``, for written objects."""
        ...

    @abstractmethod
    async def bucket_exists(self) -> bool:
        """Check whether the backing container exists."""
        ...

    @abstractmethod
    async def create_bucket(self) -> None:
        """Create the backing container."""
        ...

    @abstractmethod
    async def _list_page(self, prefix: str, page: str | None) -> tuple[list[str], str | None]:
        """Fetch one backend page.

        Returns:
            (full object names in backend order, next continuation token or None)
        """
        ...

    @abstractmethod
    async def _upload(self, key: str, request: FileWriteRequest) -> int:
        """Store the request's stream under key, non-resumably.

        Returns:
            Number of bytes written
        """
        ...

    async def provision(self) -> ProvisionResult:
        """Ensure the backing container exists (idempotent).

        Raises:
            ProvisioningError: If existence cannot be confirmed or creation fails
        """
        result = await BucketProvisioner(self).ensure()
        self.ready.set()
        return result

    async def list_files(self, prefix: str, page: str | None = None) -> ListFilesResult:
        """List up to page_size file names under prefix.

        Args:
            prefix: Tenant/namespace prefix; stripped from returned names
            page: Token returned by the previous call with the same prefix

        Raises:
            StorageFailureError: On any backend error
        """
        start = time.monotonic()
        try:
            names, next_page = await self._list_page(prefix, page or None)
        except StorageFailureError as exc:
            self._record_failure("list", exc, prefix=prefix)
            raise
        except Exception as exc:
            self._record_failure("list", exc, prefix=prefix)
            raise StorageFailureError(
                f"{self.display_name} failure: failed to list files under {prefix}"
                f" in bucket {self._bucket}: {exc}",
                bucket=self._bucket,
                key=prefix,
            ) from exc
        finally:
            HUB_DRIVER_DURATION.labels(backend=self.backend_name, operation="list").observe(
                time.monotonic() - start
            )

        entries = [strip_prefix(name, prefix) for name in names]
        logger.debug(
            "Listed files",
            extra={
                "event": LogEvent.FILES_LISTED,
                "bucket": self._bucket,
                "prefix": prefix,
                "count": len(entries),
                "has_more": next_page is not None,
            },
        )
        return ListFilesResult(entries=entries, page=next_page or None)

    async def perform_write(self, request: FileWriteRequest) -> str:
        """Store a file and return its public read URL.

        Raises:
            InvalidPathError: If request.path fails validation (no backend call)
            StorageFailureError: On any backend error
        """
        if not self.is_path_valid(request.path):
            HUB_DRIVER_ERRORS.labels(
                backend=self.backend_name, operation="write", error_type="invalid_path"
            ).inc()
            logger.warning(
                "Rejected write with invalid path",
                extra={
                    "event": LogEvent.WRITE_REJECTED,
                    "bucket": self._bucket,
                    "storage_top_level": request.storage_top_level,
                    "path": request.path,
                },
            )
            raise InvalidPathError()

        key = object_key(request.storage_top_level, request.path)
        public_url = f"{self.get_read_url_prefix()}{key}"

        start = time.monotonic()
        try:
            written = await self._upload(key, request)
        except StorageFailureError as exc:
            self._record_failure("write", exc, key=key)
            raise
        except Exception as exc:
            self._record_failure("write", exc, key=key)
            raise StorageFailureError(
                f"{self.display_name} failure: failed to store {key}"
                f" in bucket {self._bucket}: {exc}",
                bucket=self._bucket,
                key=key,
            ) from exc
        finally:
            HUB_DRIVER_DURATION.labels(backend=self.backend_name, operation="write").observe(
                time.monotonic() - start
            )

        HUB_DRIVER_BYTES.labels(backend=self.backend_name).inc(written)
        logger.debug(
            "Stored object",
            extra={
                "event": LogEvent.FILE_WRITTEN,
                "bucket": self._bucket,
                "key": key,
                "bytes": written,
                "content_type": request.content_type,
            },
        )
        return public_url

    async def close(self) -> None:
        """Release backend clients. No-op by default."""
        pass

    def _record_failure(
        self,
        operation: str,
        exc: BaseException,
        key: str | None = None,
        prefix: str | None = None,
    ) -> None:
        HUB_DRIVER_ERRORS.labels(
            backend=self.backend_name, operation=operation, error_type="backend"
        ).inc()
        event = LogEvent.WRITE_FAILED if operation == "write" else LogEvent.LIST_FAILED
        logger.error(
            "Storage %s failed",
            operation,
            extra={
                "event": event,
                "backend": self.backend_name,
                "bucket": self._bucket,
                "key": key,
                "prefix": prefix,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
