"""
Configuration settings for the Extension Service.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Extension Service configuration loaded from environment variables.

    Variables are prefixed with CONDUIT_ (e.g. CONDUIT_EXTENSION). For local
    development, a .env file is read as well.
    """
    model_config = SettingsConfigDict(
        env_prefix="CONDUIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service settings
    service_name: str = "conduit-extension-service"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8090

    # Hosted extension (module:attribute)
    extension: str = "conduit.sample:extension"

    # Report unsupported types and environments with distinct skip reasons
    distinct_skip_reasons: bool = True

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]


# Global settings instance
settings = Settings()
