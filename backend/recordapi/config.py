"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - Invalid configuration raises pydantic.ValidationError at construction
    - get_settings() is cached (lru_cache): one instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Token secrets and AWS fields are validated but not read by any route yet
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def async_database_url(url: str) -> str:
    """Hosted Postgres URLs are postgresql:// but asyncpg needs postgresql+asyncpg://."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


RuntimeMode = Literal["development", "production", "test"]
LogLevel = Literal["error", "warn", "info", "debug"]


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Runtime
    node_env: RuntimeMode = "development"
    port: int = 5000

    # Store
    database_url: str

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        return async_database_url(v) if isinstance(v, str) else v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_schema: bool = True

    # Tokens (reserved for auth routes)
    access_token_secret: str = Field(min_length=32)
    access_token_expires_in: str = "15m"
    refresh_token_secret: str = Field(min_length=32)
    refresh_token_expires_in: str = "7d"

    # Object storage (reserved)
    aws_region: str
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_s3_bucket_name: str

    # API
    client_url: str
    api_prefix: str = "/api/v1"
    max_body_bytes: int = 10 * 1024 * 1024

    @field_validator("client_url")
    @classmethod
    def check_client_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("client_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("api_prefix must start with '/'")
        return v.rstrip("/")

    # Observability
    log_level: LogLevel = "debug"
    log_format: Literal["json", "text"] = "text"
    log_dir: str | None = None

    @property
    def is_production(self) -> bool:
        return self.node_env == "production"

    @property
    def is_development(self) -> bool:
        return self.node_env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
