"""S3/MinIO storage driver."""

from __future__ import annotations

import tempfile
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncGenerator

from aiobotocore.session import AioSession, get_session
from botocore.exceptions import ClientError

from hubdrivers.config import S3Config
from hubdrivers.drivers.interface import (
    SPOOL_MAX_BYTES,
    FileWriteRequest,
    StorageDriver,
    spool_stream,
)

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

AWS_PUBLIC_HOST = "https://s3.amazonaws.com"

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
# Another process won the create race; the bucket is ours either way.
_BUCKET_OWNED_CODES = {"BucketAlreadyOwnedByYou"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3Driver(StorageDriver):
    """Storage driver backed by one S3 bucket, with session reuse."""

    backend_name = "aws"
    display_name = "S3 storage"

    def __init__(self, config: S3Config, session: AioSession | None = None) -> None:
        super().__init__(config.bucket, config.page_size, config.cache_control)
        self._config = config
        # Reuse session for connection pooling via aiohttp connector
        self._session = session or get_session()

    @asynccontextmanager
    async def client(self) -> AsyncGenerator[S3Client, None]:
        config = self._config
        async with self._session.create_client(
            "s3",
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key.get_secret_value() if config.access_key else None,
            aws_secret_access_key=config.secret_key.get_secret_value() if config.secret_key else None,
            region_name=config.region,
        ) as client:
            yield client

    def get_read_url_prefix(self) -> str:
        base = self._config.public_endpoint or self._config.endpoint or AWS_PUBLIC_HOST
        return f"{base.rstrip('/')}/{self._bucket}/"

    async def bucket_exists(self) -> bool:
        async with self.client() as s3:
            try:
                await s3.head_bucket(Bucket=self._bucket)
                return True
            except ClientError as e:
                if _error_code(e) in _MISSING_BUCKET_CODES:
                    return False
                raise

    async def create_bucket(self) -> None:
        params: dict[str, Any] = {"Bucket": self._bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self._config.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self._config.region}
        async with self.client() as s3:
            try:
                await s3.create_bucket(**params)
            except ClientError as e:
                if _error_code(e) not in _BUCKET_OWNED_CODES:
                    raise

    async def _list_page(self, prefix: str, page: str | None) -> tuple[list[str], str | None]:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Prefix": prefix,
            "MaxKeys": self._page_size,
        }
        if page:
            params["ContinuationToken"] = page

        async with self.client() as s3:
            response = await s3.list_objects_v2(**params)

        names = [obj["Key"] for obj in response.get("Contents", [])]
        next_page = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return names, next_page

    async def _upload(self, key: str, request: FileWriteRequest) -> int:
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES) as body:
            size = await spool_stream(request.stream, body, request.content_length)
            body.seek(0)

            params: dict[str, Any] = {
                "Bucket": self._bucket,
                "Key": key,
                "Body": body,
                "ContentLength": size,
                "ContentType": request.content_type,
            }
            if self._cache_control:
                params["CacheControl"] = self._cache_control
            if self._config.public_read:
                params["ACL"] = "public-read"

            # put_object is all-or-nothing: readers never see a partial object
            async with self.client() as s3:
                await s3.put_object(**params)
        return size
