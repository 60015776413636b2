"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "Security Control Tracker"
    APP_ENV: str = Field(default="development", description="development or production")
    DEBUG: bool = Field(default=False)

    # Database settings - explicit connection string wins over the file paths
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy database URL (overrides the SQLite file paths)",
    )
    DEV_DATABASE_PATH: str = Field(default="./security-tracker.db")
    PROD_DATABASE_PATH: str = Field(default="/app/data/security-tracker.db")
    RUN_MIGRATIONS: bool = Field(
        default=True,
        description="Apply Alembic migrations on startup before serving traffic",
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("production", "prod")

    @property
    def sqlalchemy_database_uri(self) -> str:
        """
        Build SQLAlchemy database URI with priority:
        1. DATABASE_URL
        2. PROD_DATABASE_PATH when APP_ENV is production
        3. DEV_DATABASE_PATH
        """
        if self.DATABASE_URL:
            # Some hosts still hand out postgres:// URLs
            if self.DATABASE_URL.startswith("postgres://"):
                return self.DATABASE_URL.replace("postgres://", "postgresql+psycopg2://", 1)
            return self.DATABASE_URL

        if self.is_production:
            return f"sqlite:///{self.PROD_DATABASE_PATH}"
        return f"sqlite:///{self.DEV_DATABASE_PATH}"

    # CORS settings
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default='["http://localhost:8501", "http://localhost:8000"]',
    )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not JSON, treat as comma-separated
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Backups
    EXPORT_DIR: str = Field(default="./exports", description="Directory for JSON exports")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: str = Field(default="logs")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
