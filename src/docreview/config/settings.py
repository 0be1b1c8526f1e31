"""Configuration management using Pydantic Settings."""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DOCREVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store backend
    store_backend: str = Field(
        "sqlite",
        pattern="^(memory|sqlite|http)$",
        description="Where review assignments live: 'memory', 'sqlite' or 'http'",
    )
    database_path: Path = Field(Path(".data/reviews.db"), description="SQLite file for the sqlite backend")

    # Remote store (http backend)
    api_base_url: str = Field("http://127.0.0.1:8000", description="Base URL of a docreview API")
    api_timeout: float = Field(10.0, gt=0)

    # Web server
    host: str = Field("127.0.0.1")
    port: int = Field(8000, ge=1, le=65535)

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")


# Instantiate global settings
settings = Settings()
