# =============================================================================
# File: messaging_core/config/jwt_config.py
# Description: JWT bearer token configuration
# =============================================================================

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from messaging_core.common.base.base_config import BaseConfig, BASE_CONFIG_DICT


class JwtConfig(BaseConfig):
    """JWT validation settings for the HTTP API."""

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='JWT_',
    )

    secret_key: SecretStr = Field(default=SecretStr("change-me"), description="HS256 signing secret")
    algorithm: str = Field(default="HS256")
    audience: str | None = Field(default=None, description="Expected aud claim, if any")
    access_token_expire_minutes: int = Field(default=60)

    def get_secret_key(self) -> str:
        """Get secret key as plain string"""
        return self.secret_key.get_secret_value()


@lru_cache(maxsize=1)
def get_jwt_config() -> JwtConfig:
    """Get JWT configuration singleton (cached)."""
    return JwtConfig()


def reset_jwt_config() -> None:
    """Reset config singleton (for testing)."""
    get_jwt_config.cache_clear()
