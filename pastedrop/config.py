"""
Configuration module for PasteDrop.
Loads environment variables and provides config objects.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    # Empty means "no database": the JSON file store is used instead
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    PASTES_FILE: str = os.getenv("PASTES_FILE", "pastes.json")
    APP_DOMAIN: str = os.getenv("APP_DOMAIN", "http://localhost:8000")
    DEBUG: bool = _flag("DEBUG", "False")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    # Read once at process start; enables the x-test-now-ms header
    TEST_MODE: bool = _flag("TEST_MODE", "0")

    @property
    def backend_name(self) -> str:
        return "sql" if self.DATABASE_URL else "file"


settings = Settings()
