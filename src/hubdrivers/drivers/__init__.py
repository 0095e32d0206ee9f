"""Storage drivers: gcs (Google Cloud Storage), aws (S3/MinIO), disk (filesystem)."""

from hubdrivers.drivers.disk import DiskDriver
from hubdrivers.drivers.gcs import GcsDriver
from hubdrivers.drivers.interface import (
    ByteStream,
    FileWriteRequest,
    ListFilesResult,
    StorageDriver,
    stream_bytes,
    stream_file,
)
from hubdrivers.drivers.paths import is_path_valid, object_key
from hubdrivers.drivers.provisioning import BucketProvisioner, ProvisionResult, ProvisionStatus
from hubdrivers.drivers.s3 import S3Driver

__all__ = [
    # Contract
    "StorageDriver",
    "FileWriteRequest",
    "ListFilesResult",
    "ByteStream",
    "stream_bytes",
    "stream_file",
    # Paths
    "is_path_valid",
    "object_key",
    # Provisioning
    "BucketProvisioner",
    "ProvisionResult",
    "ProvisionStatus",
    # Backends
    "GcsDriver",
    "S3Driver",
    "DiskDriver",
]
