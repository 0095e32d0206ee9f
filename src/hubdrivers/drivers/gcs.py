"""Google Cloud Storage driver.

The google-cloud-storage SDK is synchronous; every SDK call runs in a worker
thread so the event loop only suspends on network I/O.
"""

from __future__ import annotations

import asyncio
import tempfile
import threading
from typing import IO

from google.cloud import storage
from google.oauth2 import service_account

from hubdrivers.config import GcsConfig, GcsCredentials
from hubdrivers.drivers.interface import (
    SPOOL_MAX_BYTES,
    FileWriteRequest,
    StorageDriver,
    spool_stream,
)

GCS_PUBLIC_HOST = "https://storage.googleapis.com"
_TOKEN_URI = "https://oauth2.googleapis.com/token"


def build_client(credentials: GcsCredentials) -> storage.Client:
    """Create a storage client from configured credential material.

    Order: key file, inline service account, application default credentials.
    """
    project = credentials.project_id
    if credentials.key_filename:
        return storage.Client.from_service_account_json(credentials.key_filename, project=project)

    client_email = credentials.client_email or credentials.email
    if client_email and credentials.client_private_key:
        info = {
            "type": "service_account",
            "client_email": client_email,
            "private_key": credentials.client_private_key.get_secret_value(),
            "token_uri": _TOKEN_URI,
        }
        if project:
            info["project_id"] = project
        creds = service_account.Credentials.from_service_account_info(info)
        return storage.Client(project=project, credentials=creds)

    return storage.Client(project=project)


class GcsDriver(StorageDriver):
    """Storage driver backed by one Google Cloud Storage bucket."""

    backend_name = "gcs"
    display_name = "Google cloud storage"

    def __init__(self, config: GcsConfig, client: storage.Client | None = None) -> None:
        super().__init__(config.bucket, config.page_size, config.cache_control)
        self._config = config
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> storage.Client:
        """Lazy-load the GCS client.

        Building may discover application default credentials over the
        network, so it is only reached from worker threads; the lock keeps
        concurrent first calls to a single client.
        """
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = build_client(self._config.credentials)
        return self._client

    def get_read_url_prefix(self) -> str:
        return f"{GCS_PUBLIC_HOST}/{self._bucket}/"

    async def bucket_exists(self) -> bool:
        return await asyncio.to_thread(self._bucket_exists_sync)

    def _bucket_exists_sync(self) -> bool:
        return self.client.bucket(self._bucket).exists()

    async def create_bucket(self) -> None:
        await asyncio.to_thread(self._create_bucket_sync)

    def _create_bucket_sync(self) -> None:
        self.client.create_bucket(self._bucket)

    async def _list_page(self, prefix: str, page: str | None) -> tuple[list[str], str | None]:
        return await asyncio.to_thread(self._list_page_sync, prefix, page)

    def _list_page_sync(self, prefix: str, page: str | None) -> tuple[list[str], str | None]:
        iterator = self.client.list_blobs(
            self._bucket,
            prefix=prefix,
            max_results=self._page_size,
            page_token=page,
        )
        # Consume exactly one backend page; the iterator then holds the next token.
        first = next(iterator.pages, None)
        names = [blob.name for blob in first] if first is not None else []
        return names, iterator.next_page_token

    async def _upload(self, key: str, request: FileWriteRequest) -> int:
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES) as buffer:
            size = await spool_stream(request.stream, buffer, request.content_length)
            buffer.seek(0)
            await asyncio.to_thread(self._upload_sync, key, buffer, size, request.content_type)
        return size

    def _upload_sync(self, key: str, fileobj: IO[bytes], size: int, content_type: str) -> None:
        blob = self.client.bucket(self._bucket).blob(key)
        if self._cache_control:
            blob.cache_control = self._cache_control
        blob.upload_from_file(
            fileobj,
            size=size,
            content_type=content_type,
            predefined_acl="publicRead",
        )

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await asyncio.to_thread(client.close)
