"""Hub storage configuration using pydantic-settings.

Configuration hierarchy:
- GcsConfig / GcsCredentials: Google Cloud Storage backend
- S3Config: S3/MinIO backend
- DiskConfig: Local filesystem backend
- LoggingConfig: Logging behavior
- HubConfig: Main config selecting the driver and aggregating sub-configs

Environment variable prefix: HUB_
Example: HUB_DRIVER=aws HUB_S3_BUCKET=hub-files

Drivers never read the environment themselves; they receive one of the
backend config objects below. All models are frozen after construction.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DriverName = Literal["gcs", "aws", "disk"]

DEFAULT_PAGE_SIZE = 100


class GcsCredentials(BaseSettings):
    """Google Cloud credential material.

    Resolution order used by the driver:
      key_filename            -> service account JSON on disk
      client_email + key      -> inline service account
      (nothing)               -> application default credentials
    """

    model_config = SettingsConfigDict(env_prefix="HUB_GCP_", frozen=True)

    email: str | None = Field(default=None, description="Principal identifier")
    project_id: str | None = Field(default=None, description="GCP project ID")
    key_filename: str | None = Field(default=None, description="Service account key file")
    client_email: str | None = Field(default=None, description="Inline service account email")
    client_private_key: SecretStr | None = Field(
        default=None,
        description="Inline service account private key (PEM)",
    )


class GcsConfig(BaseSettings):
    """Google Cloud Storage driver configuration."""

    model_config = SettingsConfigDict(env_prefix="HUB_GCS_", frozen=True)

    bucket: str = Field(default="hub", description="GCS bucket name")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Max entries per listing")
    cache_control: str | None = Field(default=None, description="Cache-Control for every write")
    credentials: GcsCredentials = Field(default_factory=GcsCredentials)


class S3Config(BaseSettings):
    """S3/MinIO driver configuration.

    Credentials have empty defaults so the SDK falls back to its own chain
    (instance profile, shared config) when none are given.
    """

    model_config = SettingsConfigDict(env_prefix="HUB_S3_", frozen=True)

    bucket: str = Field(default="hub", description="S3 bucket name")
    endpoint: str | None = Field(
        default=None,
        description="S3 endpoint URL (None for AWS)",
    )
    public_endpoint: str | None = Field(
        default=None,
        description="Endpoint used in public read URLs, defaults to endpoint",
    )
    region: str = Field(default="us-east-1", description="S3 region")
    access_key: SecretStr | None = Field(default=None, description="S3 access key")
    secret_key: SecretStr | None = Field(default=None, description="S3 secret key")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Max entries per listing")
    cache_control: str | None = Field(default=None, description="Cache-Control for every write")
    public_read: bool = Field(default=True, description="Attach public-read ACL on write")


class DiskConfig(BaseSettings):
    """Local filesystem driver configuration."""

    model_config = SettingsConfigDict(env_prefix="HUB_DISK_", frozen=True)

    storage_root: str = Field(default="/tmp/hub-storage", description="Root directory")
    bucket: str = Field(default="hub", description="Directory name under the root")
    read_url: str = Field(
        default="http://localhost:8008/",
        description="Base URL of the static file server for the root",
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Max entries per listing")
    # Accepted for parity with object stores; a static file server decides headers.
    cache_control: str | None = Field(default=None)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="HUB_LOGGING_", frozen=True)

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="hub-storage", description="Service identifier in logs")
    rate_limit_seconds: float = Field(
        default=5.0,
        description="Minimum seconds between identical non-error messages",
    )


class HubConfig(BaseSettings):
    """Main configuration: driver selection plus every backend's sub-config.

    Only the sub-config named by ``driver`` is used at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="HUB_",
        env_nested_delimiter="__",
        frozen=True,
    )

    driver: DriverName = Field(default="gcs", description="Storage backend")

    gcs: GcsConfig = Field(default_factory=GcsConfig)
    s3: S3Config = Field(default_factory=S3Config)
    disk: DiskConfig = Field(default_factory=DiskConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def driver_config(self) -> GcsConfig | S3Config | DiskConfig:
        """Return the sub-config of the selected driver."""
        if self.driver == "aws":
            return self.s3
        if self.driver == "disk":
            return self.disk
        return self.gcs


@lru_cache
def get_hub_config() -> HubConfig:
    """Get cached hub configuration singleton."""
    return HubConfig()
