"""Control plane settings loaded from environment variables or .env file."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Control plane settings.

    These are loaded from environment variables or a .env file.
    Create a .env file in the project root with your settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_url: str = "sqlite:///./cloudprep.db"
    config_dir: str = "./port-configs"

    # Azure credentials (optional, DefaultAzureCredential otherwise)
    azure_subscription_id: str = ""
    azure_tenant_id: str = ""
    azure_client_id: str = ""
    azure_client_secret: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: LogLevel = "INFO"
    json_logs: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance - loaded once at startup
settings = get_settings()
