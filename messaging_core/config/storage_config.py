# =============================================================================
# File: messaging_core/config/storage_config.py
# Description: S3 storage configuration for message media and entity images
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from messaging_core.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class StorageConfig(BaseConfig):
    """
    Storage configuration for S3 presigned URLs.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='STORAGE_',
    )

    endpoint_url: Optional[str] = Field(default=None, description="Override endpoint (MinIO/LocalStack)")
    region: str = Field(default="us-east-1", description="AWS region")
    message_bucket_name: str = Field(default="messaging-core-messages", description="Message media bucket")
    image_bucket_name: str = Field(default="messaging-core-images", description="User/group/meeting image bucket")
    signed_url_expires_seconds: int = Field(default=7200, description="Presigned URL lifetime (seconds)")

    connect_timeout: int = Field(default=5, description="Connection timeout (seconds)")
    read_timeout: int = Field(default=30, description="Read timeout (seconds)")


@lru_cache(maxsize=1)
def get_storage_config() -> StorageConfig:
    """Get storage configuration singleton (cached)."""
    return StorageConfig()


def reset_storage_config() -> None:
    """Reset config singleton (for testing)."""
    get_storage_config.cache_clear()
