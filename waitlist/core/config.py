"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Admin access
    admin_token: str = ""

    # Encryption at rest (base64-encoded 32-byte AES key)
    signup_encryption_key: str = ""

    # Counter store (rate limiting, audit trail)
    redis_url: str | None = None

    # Object store (S3 or any S3-compatible endpoint such as R2)
    signup_bucket: str = ""
    s3_endpoint_url: str | None = None
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"

    # Identity hashing: hex characters kept from the SHA-256 digest
    email_hash_length: int = Field(default=16, ge=8, le=64)

    # Rate limiting
    signup_ip_limit: int = 10
    signup_ip_window: int = 3600
    signup_email_limit: int = 3
    signup_email_window: int = 86400

    # Admin listing
    admin_default_limit: int = 50
    admin_max_limit: int = 200

    # Timeout applied to every external store call
    store_timeout_seconds: float = 5.0

    # CORS
    cors_allowed_origins: list[str] = Field(default_factory=list)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
