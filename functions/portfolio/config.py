"""
Configuration and settings for the portfolio backend and data layer.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the API service and the admin tools."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Static bearer token for writes (ADMIN_TOKEN)
    admin_token: Optional[str] = Field(default=None)
    # Password for the admin tools (ADMIN_PASSWORD)
    admin_password: Optional[str] = Field(default=None)

    # S3-compatible storage (R2 / COS / S3)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Object keys
    projects_key: str = Field(default="data/projects.json")
    categories_key: str = Field(default="data/categories.json")
    image_prefix: str = Field(default="images")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Client side: remote API, local database and legacy storage
    remote_base_url: Optional[str] = Field(default=None)
    request_timeout: float = Field(default=30.0)
    local_database_url: str = Field(default="sqlite:///portfolio_local.db")
    legacy_store_path: Optional[str] = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
