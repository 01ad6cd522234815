"""S3 client configuration and management.

This module builds the boto3 client behind the object client adapter. It
accepts any S3-compatible service (AWS, MinIO, Aliyun OSS in S3 mode,
DigitalOcean Spaces) through ``endpoint_url``.

Authentication Methods Supported:
    1. Explicit credentials (access_key_id, secret_access_key)
    2. Default credential chain (no explicit credentials)
"""

from typing import Any, Dict, Optional

import boto3
from botocore.client import Config
from pydantic import BaseModel, ConfigDict, Field

from bucket_storage.connection import ConnectionOptions
from bucket_storage.core import get_logger, settings

logger = get_logger(__name__)


class S3ClientConfig(BaseModel):
    """Configuration for S3 client connections.

    Example:
        # MinIO endpoint
        config = S3ClientConfig(
            endpoint_url="http://localhost:9000",
            access_key_id="minioadmin",
            secret_access_key="minioadmin"
        )
    """

    model_config = ConfigDict(extra="forbid")

    access_key_id: Optional[str] = Field(None, description="Access key ID")
    secret_access_key: Optional[str] = Field(None, description="Secret access key")
    region_name: str = Field(
        default_factory=lambda: settings.region_name, description="Region name"
    )
    endpoint_url: Optional[str] = Field(
        None, description="Custom S3 endpoint URL for S3-compatible services"
    )
    signature_version: str = Field(
        default_factory=lambda: settings.signature_version,
        description="Request signature version",
    )

    @classmethod
    def from_options(cls, options: ConnectionOptions) -> "S3ClientConfig":
        """Build client configuration from parsed connection options."""
        return cls(
            access_key_id=options.access_key,
            secret_access_key=options.secret_key,
            endpoint_url=options.endpoint,
        )


class S3ClientManager:
    """Manages a lazily created S3 client."""

    def __init__(self, config: S3ClientConfig):
        """Initialize S3 client manager.

        Args:
            config: S3 client configuration
        """
        self.config = config
        self._client = None
        logger.info("S3 client manager initialized", region=config.region_name)

    @property
    def client(self):
        """Get or create S3 client instance."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        """Create boto3 S3 client with the configured settings."""
        kwargs: Dict[str, Any] = {
            "region_name": self.config.region_name,
            "config": Config(signature_version=self.config.signature_version),
        }

        if self.config.endpoint_url:
            kwargs["endpoint_url"] = self.config.endpoint_url

        if self.config.access_key_id and self.config.secret_access_key:
            kwargs.update(
                {
                    "aws_access_key_id": self.config.access_key_id,
                    "aws_secret_access_key": self.config.secret_access_key,
                }
            )
            logger.info("S3 client created with explicit credentials")
        else:
            logger.info("S3 client created with default credential chain")

        return boto3.client("s3", **kwargs)  # type: ignore

    def close(self) -> None:
        """Close the underlying client if one was created."""
        if self._client is not None:
            self._client.close()
            self._client = None
