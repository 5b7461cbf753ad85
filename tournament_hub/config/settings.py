"""
Application Settings

Centralized configuration for the tournament backend.
All settings are loaded from environment variables (a .env file at the
project root is read first).
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(dotenv_path=ENV_FILE)


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable."""
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return int(value)


def get_list_env(key: str) -> List[str]:
    """Get a comma-separated list from environment variable."""
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


class Settings:
    """
    Settings for the application.

    Values are read once at import time. Tests override them by setting
    environment variables before importing the application.
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Persistence
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./tournament_hub.db")

    # Tokens
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_DAYS: int = get_int_env("JWT_EXPIRE_DAYS", 7)

    # Passwords
    BCRYPT_ROUNDS: int = get_int_env("BCRYPT_ROUNDS", 10)

    # HTTP
    ALLOWED_ORIGINS: List[str] = get_list_env("ALLOWED_ORIGINS")
    RATE_LIMIT_ENABLED: bool = get_bool_env("RATE_LIMIT_ENABLED", True)
    REGISTER_RATE_LIMIT: str = os.getenv("REGISTER_RATE_LIMIT", "10/minute")
    LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "30/minute")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = get_int_env("PORT", 8000)

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def missing_required(self) -> List[str]:
        """Names of settings that must be provided explicitly in production."""
        if not self.is_production:
            return []
        return [key for key in ("DATABASE_URL", "JWT_SECRET_KEY") if not os.getenv(key)]


settings = Settings()
