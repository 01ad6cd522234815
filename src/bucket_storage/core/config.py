"""Configuration management for bucket-storage."""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from ``BUCKET_STORAGE_*`` environment variables."""

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
    otel_enabled: bool = False
    otel_service_name: str = "bucket-storage"

    region_name: str = "us-east-1"
    signature_version: str = "s3v4"
    default_bucket: str = "storage"
    # Keys requested per provider listing call
    list_max_keys: int = Field(1000, ge=1, le=1000)
    connection_string: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="BUCKET_STORAGE_", case_sensitive=False)


settings = Settings()
