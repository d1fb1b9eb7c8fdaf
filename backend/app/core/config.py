"""
Configuration settings for the application.
"""
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / ".env"

if env_path.exists():
    load_dotenv(dotenv_path=env_path)
    logger.info(f"[ENV] Loaded .env from: {env_path}")
else:
    logger.debug(f"[ENV] No .env file at {env_path}, using process environment")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from environment
    )

    # API configuration
    API_PORT: int = 7778
    API_HOST: str = "0.0.0.0"
    LOG_LEVEL: str = "INFO"

    # Database configuration
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_NAME: str = "TalentIntroductions"

    # Takes precedence over the DB_* values (Railway, Heroku, etc.)
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_ECHO: bool = False

    # CORS configuration
    CORS_ORIGINS: Union[str, List[str]] = Field(default="*", validate_default=True)

    # Introduction requests
    INTRODUCTION_EXPIRY_DAYS: int = Field(default=7, ge=1)
    INTRODUCTION_MESSAGE_MAX_LENGTH: int = Field(default=1000, ge=1)

    # Pagination
    DEFAULT_PAGE_LIMIT: int = Field(default=10, ge=1)
    MAX_PAGE_LIMIT: int = Field(default=100, ge=1)

    @field_validator("DATABASE_URL", mode="after")
    def assemble_db_uri(cls, v: Optional[str], info: Any) -> str:
        """
        Normalise DATABASE_URL to an async driver, or assemble it from DB_* values.
        """
        if v:
            if v.startswith("postgres://"):
                return v.replace("postgres://", "postgresql+asyncpg://", 1)
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
            return v

        values = info.data
        user = values.get("DB_USER")
        password = values.get("DB_PASSWORD")
        host = values.get("DB_HOST")
        port = values.get("DB_PORT")
        name = values.get("DB_NAME")

        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"

    @field_validator("CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """
        Parse a comma-separated string into a list of CORS origins.
        """
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


# Create settings object
settings = Settings()
