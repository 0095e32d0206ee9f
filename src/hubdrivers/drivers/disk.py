"""Local filesystem storage driver.

Implements the object-store contract on a directory tree:
    {storage_root}/{bucket}/{storage_top_level}/{path}

Listing follows object-store prefix semantics (a prefix matches any key that
starts with it, not only whole directories). Keys are returned in
lexicographic order; the continuation token is the last key of the previous
page. Writes go to a temporary file beside the target and are renamed into
place.

Filesystem calls run in worker threads (asyncio.to_thread) so a slow disk
or a large listing never stalls other coroutines.

Leading separators are dropped when mapping a key to a file, so keys that
differ only in leading ``/`` share one file on disk.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import tempfile
from collections.abc import Iterator
from itertools import islice
from pathlib import Path
from typing import IO

from hubdrivers.config import DiskConfig
from hubdrivers.drivers.interface import FileWriteRequest, StorageDriver, check_content_length
from hubdrivers.drivers.paths import SEPARATOR, is_path_valid
from hubdrivers.errors import StorageFailureError

# In-flight uploads; never listed.
TEMP_PREFIX = ".hub-upload-"


def _discard(tmp_name: str) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.unlink(tmp_name)


class DiskDriver(StorageDriver):
    """Storage driver using a local directory as the bucket."""

    backend_name = "disk"
    display_name = "Disk storage"

    def __init__(self, config: DiskConfig) -> None:
        super().__init__(config.bucket, config.page_size, config.cache_control)
        self._root = Path(config.storage_root) / config.bucket
        read_url = config.read_url
        self._read_url = read_url if read_url.endswith("/") else f"{read_url}/"

    @property
    def root(self) -> Path:
        return self._root

    def get_read_url_prefix(self) -> str:
        return f"{self._read_url}{self._bucket}/"

    async def bucket_exists(self) -> bool:
        return await asyncio.to_thread(self._root.is_dir)

    async def create_bucket(self) -> None:
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)

    def _object_path(self, key: str) -> Path:
        path = (self._root / key.lstrip(SEPARATOR)).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise StorageFailureError(
                f"{self.display_name} failure: key {key} resolves outside bucket {self._bucket}",
                bucket=self._bucket,
                key=key,
            )
        return path

    def _walk_sorted(
        self,
        directory: Path,
        key_prefix: str,
        start_after: str | None,
        name_prefix: str = "",
    ) -> Iterator[str]:
        """Yield keys below directory in lexicographic key order.

        Directory entries sort as ``name/`` so each subtree is contiguous in
        key order; subtrees entirely at or before start_after are skipped
        without being read.
        """
        try:
            with os.scandir(directory) as it:
                children = []
                for entry in it:
                    if entry.name.startswith(TEMP_PREFIX) or not entry.name.startswith(name_prefix):
                        continue
                    is_dir = entry.is_dir()
                    sort_name = f"{entry.name}{SEPARATOR}" if is_dir else entry.name
                    children.append((sort_name, entry.path, is_dir))
        except (FileNotFoundError, NotADirectoryError):
            return

        children.sort()
        for sort_name, path, is_dir in children:
            key = f"{key_prefix}{sort_name}"
            if is_dir:
                if start_after is not None and key < start_after and not start_after.startswith(key):
                    continue
                yield from self._walk_sorted(Path(path), key, start_after)
            elif start_after is None or key > start_after:
                yield key

    def _list_keys_sync(
        self, prefix: str, start_after: str | None, limit: int
    ) -> tuple[list[str], bool]:
        """Return up to limit keys after start_after, and whether more remain."""
        # Written keys never contain "..", so such a prefix matches nothing.
        if not is_path_valid(prefix):
            return [], False

        # Only the deepest directory named by the prefix is read; the last
        # segment filters its entries.
        base, _, name_prefix = prefix.rpartition(SEPARATOR)
        start = self._root / base if base else self._root
        key_prefix = f"{base}{SEPARATOR}" if base else ""

        keys = list(islice(self._walk_sorted(start, key_prefix, start_after, name_prefix), limit + 1))
        return keys[:limit], len(keys) > limit

    async def _list_page(self, prefix: str, page: str | None) -> tuple[list[str], str | None]:
        relative = prefix.lstrip(SEPARATOR)
        lead = prefix[: len(prefix) - len(relative)]

        start_after = None
        if page is not None:
            if not page.startswith(prefix):
                raise StorageFailureError(
                    f"{self.display_name} failure: invalid continuation token {page!r}"
                    f" for prefix {prefix}",
                    bucket=self._bucket,
                    key=prefix,
                )
            start_after = page[len(lead) :]

        keys, more = await asyncio.to_thread(
            self._list_keys_sync, relative, start_after, self._page_size
        )
        names = [f"{lead}{key}" for key in keys]
        return names, names[-1] if more else None

    def _open_temp(self, key: str) -> tuple[Path, IO[bytes], str]:
        target = self._object_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=target.parent)
        return target, os.fdopen(fd, "wb"), tmp_name

    async def _upload(self, key: str, request: FileWriteRequest) -> int:
        target, fh, tmp_name = await asyncio.to_thread(self._open_temp, key)
        try:
            size = 0
            try:
                async for chunk in request.stream:
                    await asyncio.to_thread(fh.write, chunk)
                    size += len(chunk)
            finally:
                await asyncio.to_thread(fh.close)
            check_content_length(request.content_length, size)
            await asyncio.to_thread(os.replace, tmp_name, target)
        except BaseException:
            await asyncio.to_thread(_discard, tmp_name)
            raise
        return size
