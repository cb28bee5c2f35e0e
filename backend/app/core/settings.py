"""
SocietyOps settings.

Values come from the process environment first, then from the repository
root ``.env``. Import ``settings`` for the shared instance; tests that need
different values build their own ``Settings(...)``.
"""
import os
import warnings
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[3]

_PLACEHOLDER_SECRET = "societyops-dev-secret-replace-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=REPO_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- service identity ---
    PROJECT_NAME: str = "SocietyOps"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field(default="development", description="development, staging or production")
    DEBUG: bool = False

    # --- database ---
    # DATABASE_URL wins when set; otherwise the URL is assembled from the DB_* parts.
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "societyops"
    DB_USER: str = "societyops"
    DB_PASSWORD: str = "societyops"
    DB_ECHO: bool = Field(default=False, description="Echo SQL to the sqlalchemy.engine logger")
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_POOL_RECYCLE: int = Field(default=3600, description="Seconds before a pooled connection is replaced")

    # --- auth tokens ---
    SECRET_KEY: str = _PLACEHOLDER_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1)

    # --- browser clients ---
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # --- public transition checks ---
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_VALIDATION: str = Field(
        default="60/minute",
        description="slowapi limit for the unauthenticated validate-transition endpoints",
    )

    # --- listing ---
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1)

    # --- logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_FILE: Optional[str] = None

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value):
        # "a,b" in the environment is easier to write than a JSON list
        if isinstance(value, str) and not value.lstrip().startswith("["):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "text"}:
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return value

    @field_validator("SECRET_KEY")
    @classmethod
    def check_secret(cls, value: str) -> str:
        if value != _PLACEHOLDER_SECRET:
            return value
        if os.getenv("ENVIRONMENT", "development").lower() == "production":
            raise ValueError("SECRET_KEY must be set in production")
        warnings.warn("SECRET_KEY is the development placeholder", UserWarning, stacklevel=2)
        return value

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
