"""Service configuration using Pydantic Settings"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Hookcord settings, read from the environment or a .env file"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_bot_token: str = Field(..., description="Discord bot token")
    discord_guild_id: int | None = Field(
        default=None, description="Sync slash commands to this guild only (faster, for testing)"
    )

    # Database
    database_url: str = Field(..., description="PostgreSQL database URL")
    database_ssl: str | None = Field(default=None, description="asyncpg ssl mode, e.g. 'require'")

    # Webhook listener
    webhook_host: str = Field(default="0.0.0.0", description="Webhook listener host")
    webhook_port: int = Field(default=8080, description="Webhook listener port")
    delivery_dedupe_ttl: float = Field(
        default=600.0, description="Seconds a delivery id is remembered for dedupe"
    )

    # Registry
    registry_ready_timeout: float = Field(
        default=30.0, description="Seconds a dispatch waits for the registry to load"
    )
    registry_load_retries: int = Field(default=5, description="Config store load attempts")
    registry_load_retry_delay: float = Field(
        default=2.0, description="Initial backoff between load attempts"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
