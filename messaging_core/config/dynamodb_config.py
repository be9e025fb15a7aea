# =============================================================================
# File: messaging_core/config/dynamodb_config.py
# Description: DynamoDB core table configuration
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from messaging_core.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class DynamoDBConfig(BaseConfig):
    """
    DynamoDB configuration for the single core table and its indexes.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='DYNAMODB_',
    )

    core_table_name: str = Field(default="messaging-core", description="Core table name")
    gsi_one_name: str = Field(default="GSI1", description="Index on gsi1pk/gsi1sk")
    gsi_two_name: str = Field(default="GSI2", description="Index on gsi2pk/gsi2sk")
    gsi_three_name: str = Field(default="GSI3", description="Index on gsi3pk/gsi3sk")

    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: Optional[str] = Field(default=None, description="Override endpoint (DynamoDB Local)")
    access_key: Optional[SecretStr] = Field(default=None, description="Access key (uses default chain if unset)")
    secret_key: Optional[SecretStr] = Field(default=None, description="Secret key (uses default chain if unset)")

    connect_timeout: int = Field(default=5, description="Connection timeout (seconds)")
    read_timeout: int = Field(default=10, description="Read timeout (seconds)")
    max_pool_connections: int = Field(default=50, description="Max connection pool size")
    default_page_size: int = Field(default=25, description="Default query page size")


@lru_cache(maxsize=1)
def get_dynamodb_config() -> DynamoDBConfig:
    """Get DynamoDB configuration singleton (cached)."""
    return DynamoDBConfig()


def reset_dynamodb_config() -> None:
    """Reset config singleton (for testing)."""
    get_dynamodb_config.cache_clear()
