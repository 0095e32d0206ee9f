"""Tests for the StorageDriver contract implemented by the base class."""

import io

import pytest

from hubdrivers.drivers import (
    FileWriteRequest,
    ListFilesResult,
    StorageDriver,
    stream_bytes,
    stream_file,
)
from hubdrivers.drivers.interface import spool_stream
from hubdrivers.errors import InvalidPathError, StorageFailureError


class FakeDriver(StorageDriver):
    """In-memory backend with offset-based continuation tokens."""

    backend_name = "fake"
    display_name = "Fake storage"

    def __init__(
        self,
        names: list[str] | None = None,
        page_size: int = 2,
        fail_with: Exception | None = None,
    ) -> None:
        super().__init__("fake-bucket", page_size)
        self.names = names or []
        self.objects: dict[str, bytes] = {}
        self.upload_calls: list[str] = []
        self.fail_with = fail_with

    def get_read_url_prefix(self) -> str:
        return "https://storage.example.com/fake-bucket/"

    async def bucket_exists(self) -> bool:
        return True

    async def create_bucket(self) -> None:
        pass

    async def _list_page(self, prefix, page):
        if self.fail_with:
            raise self.fail_with
        matching = [n for n in self.names if n.startswith(prefix)]
        offset = int(page) if page else 0
        chunk = matching[offset : offset + self._page_size]
        next_offset = offset + len(chunk)
        return chunk, str(next_offset) if next_offset < len(matching) else None

    async def _upload(self, key, request):
        self.upload_calls.append(key)
        if self.fail_with:
            raise self.fail_with
        data = b"".join([chunk async for chunk in request.stream])
        self.objects[key] = data
        return len(data)


def make_request(path: str, data: bytes = b"hello", top_level: str = "user1") -> FileWriteRequest:
    return FileWriteRequest(
        path=path,
        storage_top_level=top_level,
        stream=stream_bytes(data),
        content_type="text/plain",
        content_length=len(data),
    )


class TestStorageDriverInterface:
    """Tests for StorageDriver ABC."""

    def test_cannot_instantiate_abstract_class(self) -> None:
        with pytest.raises(TypeError, match="abstract"):
            StorageDriver("bucket", 100)  # type: ignore[abstract]

    def test_interface_has_all_required_methods(self) -> None:
        required = {
            "get_read_url_prefix",
            "bucket_exists",
            "create_bucket",
            "_list_page",
            "_upload",
        }
        assert required == set(StorageDriver.__abstractmethods__)


class TestPerformWrite:
    """Tests for perform_write."""

    async def test_returns_prefix_plus_object_key(self) -> None:
        driver = FakeDriver()

        url = await driver.perform_write(make_request("a/b.txt"))

        assert url == f"{driver.get_read_url_prefix()}user1/a/b.txt"
        assert driver.objects["user1/a/b.txt"] == b"hello"

    async def test_invalid_path_never_reaches_backend(self) -> None:
        driver = FakeDriver()

        with pytest.raises(InvalidPathError) as exc_info:
            await driver.perform_write(make_request("a/../../b.txt"))

        assert driver.upload_calls == []
        assert exc_info.value.message == "Invalid Path"

    async def test_backend_error_wrapped_as_storage_failure(self) -> None:
        driver = FakeDriver(fail_with=ConnectionError("connection reset"))

        with pytest.raises(StorageFailureError) as exc_info:
            await driver.perform_write(make_request("a.txt"))

        exc = exc_info.value
        assert exc.bucket == "fake-bucket"
        assert exc.key == "user1/a.txt"
        assert "user1/a.txt" in exc.message
        assert "fake-bucket" in exc.message
        assert "connection reset" in exc.message
        assert isinstance(exc.__cause__, ConnectionError)

    async def test_storage_failure_from_backend_propagates_unchanged(self) -> None:
        original = StorageFailureError("quota exceeded", bucket="fake-bucket", key="user1/a.txt")
        driver = FakeDriver(fail_with=original)

        with pytest.raises(StorageFailureError) as exc_info:
            await driver.perform_write(make_request("a.txt"))

        assert exc_info.value is original


class TestListFiles:
    """Tests for list_files."""

    async def test_strips_prefix_from_entries(self) -> None:
        driver = FakeDriver(names=["user1/a.txt", "user1/dir/b.txt"], page_size=10)

        result = await driver.list_files("user1")

        assert result == ListFilesResult(entries=["a.txt", "dir/b.txt"], page=None)

    async def test_pagination_yields_every_entry_once_in_order(self) -> None:
        names = [f"user1/file-{i:02d}" for i in range(7)]
        driver = FakeDriver(names=names, page_size=3)

        entries: list[str] = []
        page = None
        calls = 0
        while True:
            result = await driver.list_files("user1", page)
            calls += 1
            assert len(result.entries) <= 3
            entries.extend(result.entries)
            page = result.page
            if page is None:
                break

        assert entries == [f"file-{i:02d}" for i in range(7)]
        assert calls == 3

    async def test_empty_page_token_starts_from_beginning(self) -> None:
        driver = FakeDriver(names=["user1/a", "user1/b"], page_size=10)

        result = await driver.list_files("user1", "")

        assert result.entries == ["a", "b"]

    async def test_backend_error_wrapped_as_storage_failure(self) -> None:
        driver = FakeDriver(fail_with=TimeoutError("read timed out"))

        with pytest.raises(StorageFailureError) as exc_info:
            await driver.list_files("user1")

        assert exc_info.value.key == "user1"
        assert "read timed out" in exc_info.value.message


class TestProvision:
    """Tests for provision on the base class."""

    async def test_sets_ready(self) -> None:
        driver = FakeDriver()
        assert not driver.ready.is_set()

        await driver.provision()

        assert driver.ready.is_set()


class TestStreams:
    """Tests for byte stream helpers."""

    async def test_spool_stream_counts_bytes(self) -> None:
        buffer = io.BytesIO()

        size = await spool_stream(stream_bytes(b"x" * 100, chunk_size=7), buffer, 100)

        assert size == 100
        assert buffer.getvalue() == b"x" * 100

    async def test_spool_stream_unknown_length(self) -> None:
        size = await spool_stream(stream_bytes(b"abc"), io.BytesIO(), None)
        assert size == 3

    async def test_spool_stream_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="declared content length 10"):
            await spool_stream(stream_bytes(b"abc"), io.BytesIO(), 10)

    async def test_stream_file_reads_in_chunks(self) -> None:
        chunks = [c async for c in stream_file(io.BytesIO(b"abcdef"), chunk_size=4)]
        assert chunks == [b"abcd", b"ef"]
