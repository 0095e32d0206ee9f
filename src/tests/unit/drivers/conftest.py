"""Fixtures for driver unit tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hubdrivers.config import DiskConfig, GcsConfig, S3Config
from hubdrivers.drivers import DiskDriver, GcsDriver, S3Driver


@pytest.fixture
def disk_config(tmp_path) -> DiskConfig:
    return DiskConfig(
        storage_root=str(tmp_path / "root"),
        bucket="hub-test",
        read_url="https://files.example.com",
        page_size=3,
    )


@pytest.fixture
def disk_driver(disk_config: DiskConfig) -> DiskDriver:
    return DiskDriver(disk_config)


@pytest.fixture
def mock_gcs_client() -> MagicMock:
    """Mock google.cloud.storage.Client.

    client.bucket(name) always returns the same bucket mock, and
    bucket.blob(key) the same blob mock.
    """
    client = MagicMock()
    bucket = MagicMock()
    bucket.exists.return_value = True
    client.bucket.return_value = bucket
    return client


@pytest.fixture
def gcs_driver(mock_gcs_client: MagicMock) -> GcsDriver:
    config = GcsConfig(bucket="hub-test", page_size=2, cache_control="public, max-age=60")
    return GcsDriver(config, client=mock_gcs_client)


@pytest.fixture
def mock_s3_client() -> AsyncMock:
    """Mock aiobotocore S3 client."""
    client = AsyncMock()
    client.head_bucket = AsyncMock(return_value={})
    client.create_bucket = AsyncMock(return_value={})
    client.list_objects_v2 = AsyncMock(return_value={"Contents": [], "IsTruncated": False})
    client.put_object = AsyncMock(return_value={})
    return client


@pytest.fixture
def mock_s3_session(mock_s3_client: AsyncMock) -> MagicMock:
    """Mock AioSession whose create_client() yields mock_s3_client."""
    session = MagicMock()
    session.create_client.return_value.__aenter__.return_value = mock_s3_client
    session.create_client.return_value.__aexit__.return_value = False
    return session


@pytest.fixture
def s3_config() -> S3Config:
    return S3Config(
        bucket="hub-test",
        endpoint="http://minio:9000",
        access_key="test-access-key",
        secret_key="test-secret-key",
        page_size=2,
    )


@pytest.fixture
def s3_driver(s3_config: S3Config, mock_s3_session: MagicMock) -> S3Driver:
    return S3Driver(s3_config, session=mock_s3_session)
