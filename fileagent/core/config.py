"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
import os
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
    APP_NAME: str = "fileagent"
    APP_VERSION: str = "0.1.0"
    APP_ENV: str = Field(default="local")
    DEBUG: bool = Field(default=False)

    # Database settings
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="SQLAlchemy connection URL for the ACL store",
    )

    @property
    def sqlalchemy_database_uri(self) -> str:
        """
        Build SQLAlchemy database URI with priority:
        1. DATABASE_URL (explicit connection string)
        2. SQLite file in the working directory
        """
        if self.DATABASE_URL:
            # Some hosting providers still hand out postgres:// URLs
            if self.DATABASE_URL.startswith("postgres://"):
                return self.DATABASE_URL.replace("postgres://", "postgresql+psycopg2://", 1)
            return self.DATABASE_URL
        return "sqlite:///./fileagent.db"

    # Root directory for file operations
    FILEAGENT_HOME: Optional[str] = Field(
        default=None,
        description="Root directory under which all file operations are confined",
    )

    def get_root_dir(self) -> str:
        """
        Determine the root directory for file operations.

        Priority:
        1. FILEAGENT_HOME
        2. The canonicalized current working directory
        3. $HOME

        Raises:
            ValueError: If none of the above can be determined
        """
        if self.FILEAGENT_HOME:
            return self.FILEAGENT_HOME
        try:
            return str(Path.cwd().resolve(strict=True))
        except OSError:
            pass
        home = os.getenv("HOME")
        if home:
            return home
        raise ValueError(
            "Couldn't determine base directory. Help: set the environment variable FILEAGENT_HOME."
        )

    # CORS settings
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default='["http://localhost:3000", "http://localhost:8000"]',
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

    # File upload settings
    MAX_UPLOAD_SIZE: int = Field(
        default=100 * 1024 * 1024, description="Max upload size in bytes (100MB default)"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: str = Field(default="logs")

    # API Authentication
    API_KEY: Optional[str] = Field(
        default=None,
        description="Static admin API key. Leave empty to disable authentication.",
    )
    API_KEY_SALT: str = Field(default="fileagent_salt", description="Salt used when hashing stored API keys")
    ADMIN_SUBJECT: str = Field(
        default="admin",
        description="Subject used for the static API key and for unauthenticated (dev) requests",
    )

    # ACL enforcement on file operations
    ACL_ENFORCEMENT: bool = Field(
        default=False,
        description="Check the ACL engine before every file list/download/upload",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
