"""
Application configuration using Pydantic Settings.

All environment-driven values live on one Settings instance, built once at
process start and handed to the app factory. Nothing below reads os.environ
after that point.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_JWT_SECRETS = {"your_jwt_secret_key", "changeme"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (and .env).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Roommate Finder API"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "*"

    # MongoDB - Motor (async driver) connection string
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "roommate_finder"

    # Auth
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = Field(default=60 * 24 * 30, gt=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    @field_validator("jwt_secret", mode="before")
    @classmethod
    def reject_placeholder_secret(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("JWT_SECRET is not set")
        if isinstance(v, str) and v.lower() in PLACEHOLDER_JWT_SECRETS:
            raise ValueError("JWT_SECRET is using a placeholder value; set a strong, unique secret")
        return v

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance for the process entry point.
    """
    return Settings()
