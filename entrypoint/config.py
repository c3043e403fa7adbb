"""
Single source of truth for entrypoint configuration.
All settings are typed and loaded from environment variables.
"""
import logging
import sys
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


_SECRET_FIELDS = ("DB_PASSWORD", "DJANGO_SUPERUSER_PASSWORD")


class Settings(BaseSettings):
    """
    Container entrypoint settings.

    - Database parameters mirror the names the Django settings module reads
    - Superuser bootstrap is enabled only when username and password are both set
    - Image fields are consumed by CI when tagging the built image
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # === Database ===
    DB_NAME: str = Field(default="postgres", description="PostgreSQL database name")
    DB_USERNAME: str = Field(default="postgres", description="PostgreSQL user")
    DB_PASSWORD: Optional[SecretStr] = Field(default=None, description="PostgreSQL password")
    DB_HOST: str = Field(default="localhost", description="PostgreSQL host")
    DB_PORT: int = Field(default=5432, ge=1, le=65535)
    DB_CONNECT_TIMEOUT: int = Field(
        default=5,
        ge=1,
        description="Per-attempt connect timeout in seconds"
    )

    # === Readiness wait ===
    DB_WAIT_ATTEMPTS: int = Field(default=30, ge=1)
    DB_WAIT_INTERVAL_SECONDS: float = Field(default=2.0, ge=0)

    # === Django management ===
    PYTHON_EXECUTABLE: str = Field(
        default=sys.executable or "python",
        description="Interpreter used to run manage.py"
    )
    MANAGE_PY: str = Field(default="manage.py")
    RUN_MIGRATIONS: bool = Field(default=True)
    COLLECT_STATIC: bool = Field(default=True)

    # === Admin bootstrap (optional) ===
    DJANGO_SUPERUSER_USERNAME: Optional[str] = None
    DJANGO_SUPERUSER_EMAIL: Optional[str] = None
    DJANGO_SUPERUSER_PASSWORD: Optional[SecretStr] = None

    # === Image tagging ===
    IMAGE_REGISTRY: Optional[str] = Field(
        default=None,
        description="Registry host, e.g. registry.example.com:5000"
    )
    IMAGE_REPOSITORY: str = Field(default="backend")
    BUILD_NUMBER: Optional[str] = None
    GIT_COMMIT: Optional[str] = None
    GIT_BRANCH: Optional[str] = None
    IMAGE_TAG_LATEST: bool = Field(default=True)

    # === Logging ===
    LOG_LEVEL: str = Field(default="INFO")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept only the standard logging level names."""
        level = v.strip().upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @field_validator("IMAGE_REGISTRY")
    @classmethod
    def strip_registry_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None

    @property
    def superuser_configured(self) -> bool:
        """Check if the admin account can be created non-interactively."""
        password = self.DJANGO_SUPERUSER_PASSWORD
        return bool(self.DJANGO_SUPERUSER_USERNAME) and bool(password and password.get_secret_value())

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL for the configured PostgreSQL database."""
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD.get_secret_value() if self.DB_PASSWORD else None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )

    @property
    def log_level(self) -> int:
        return logging.getLevelName(self.LOG_LEVEL)

    def masked(self) -> dict[str, Any]:
        """Settings as a plain dict with secrets replaced by a marker."""
        data = self.model_dump()
        for name in _SECRET_FIELDS:
            data[name] = "********" if data.get(name) is not None else None
        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Settings for this entrypoint run.

    Parsed on first use; later calls in the same process see the same values
    even if the environment changes underneath.
    """
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and parse the environment again."""
    get_settings.cache_clear()
    return get_settings()
