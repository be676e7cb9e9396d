"""
Configuration for the Todo Calendar API.

Settings are read from the environment (and a .env file, if present) once
per process and cached.
"""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

SERVICE_NAME = "todocal-api"
SERVICE_VERSION = "0.1.0"

DEFAULT_GOOGLE_CLIENT_ID = "your-google-client-id.apps.googleusercontent.com"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "https://todo-calender.up.railway.app",
    "https://todo-calender-be-production.up.railway.app",
]


class Settings(BaseSettings):
    """Environment-backed settings for the API service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Identity provider
    google_client_id: str = Field(
        default=DEFAULT_GOOGLE_CLIENT_ID,
        description="OAuth client ID used as the ID token audience",
    )

    # Database
    database_url: str | None = Field(
        default=None, description="SQLAlchemy URL (postgresql+pg8000://...)"
    )
    instance_connection_name: str | None = Field(
        default=None, description="Cloud SQL instance (project:region:instance)"
    )
    db_name: str = Field(default="todocal")
    db_user: str | None = Field(
        default=None, description="Service account email for IAM auth"
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_pool_recycle: int = Field(default=1800)
    db_connect_timeout: int = Field(default=30, ge=1)
    db_create_schema: bool = Field(
        default=True, description="Create tables and indexes at startup"
    )

    # HTTP
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    # Comma-separated in the environment
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    # Profile images
    image_download_timeout: float = Field(default=10.0, gt=0)
    image_max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    image_max_concurrent_downloads: int = Field(default=4, ge=1)
    image_cache_max_age: int = Field(default=86400, ge=0)

    # Logging
    log_level: str = Field(default="INFO")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def database_configured(self) -> bool:
        """Whether enough settings are present to open a database pool."""
        return bool(self.database_url or self.instance_connection_name)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
