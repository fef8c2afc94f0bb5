"""
Configuration management for the account service
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Defaults shared by Settings and the service constructors
DEFAULT_TOKEN_TTL_HOURS = 24
DEFAULT_MIN_PASSWORD_LENGTH = 6
DEFAULT_MAX_PASSWORD_LENGTH = 4096
# pbkdf2-sha256 iterations; 600k is roughly 100-300ms on commodity hardware
DEFAULT_HASH_ROUNDS = 600_000


class Settings(BaseSettings):
    """Account service configuration loaded from environment variables"""

    # Application
    APP_NAME: str = "User Management API"
    VERSION: str = "1.0.0"
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Token Configuration
    JWT_SECRET: str = "change-this-secret-in-prod"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = DEFAULT_TOKEN_TTL_HOURS

    # Credential Configuration
    # lengths count UTF-8 bytes
    MIN_PASSWORD_LENGTH: int = DEFAULT_MIN_PASSWORD_LENGTH
    MAX_PASSWORD_LENGTH: int = DEFAULT_MAX_PASSWORD_LENGTH
    PASSWORD_HASH_ROUNDS: int = DEFAULT_HASH_ROUNDS

    # Accounts
    DEFAULT_MEMBERSHIP_LEVEL: str = "Bronze"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("JWT_SECRET")
    @classmethod
    def secret_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("JWT_SECRET must not be empty")
        return value

    @field_validator("TOKEN_TTL_HOURS", "MIN_PASSWORD_LENGTH", "PASSWORD_HASH_ROUNDS")
    @classmethod
    def positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
