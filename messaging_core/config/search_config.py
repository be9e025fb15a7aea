# =============================================================================
# File: messaging_core/config/search_config.py
# Description: OpenSearch configuration
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from messaging_core.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class SearchConfig(BaseConfig):
    """OpenSearch connection and index names."""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='OPENSEARCH_',
    )

    domain_endpoint: str = Field(default="http://localhost:9200", description="OpenSearch base URL")
    username: Optional[str] = Field(default=None)
    password: Optional[SecretStr] = Field(default=None)
    user_index: str = Field(default="user")
    group_index: str = Field(default="group")
    meeting_index: str = Field(default="meeting")
    message_index: str = Field(default="message")
    timeout: float = Field(default=5.0, description="Request timeout (seconds)")
    max_results: int = Field(default=100, description="Max ids returned per search")


@lru_cache(maxsize=1)
def get_search_config() -> SearchConfig:
    """Get search configuration singleton (cached)."""
    return SearchConfig()


def reset_search_config() -> None:
    """Reset config singleton (for testing)."""
    get_search_config.cache_clear()
