# sessionbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_MATCH_LIMIT, MAX_MATCH_LIMIT

logger = logging.getLogger(__name__)


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SESSIONBOOK_",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )

    # Database
    database_url: str = Field(
        default="sqlite+pysqlite:///./sessionbook.db",
        description="SQLAlchemy URL for the session store",
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    db_pool_size: int = Field(default=5, ge=1, description="Persistent connections per process")
    db_max_overflow: int = Field(default=5, ge=0, description="Extra connections under load")
    db_pool_timeout: int = Field(default=10, ge=1, description="Seconds to wait for a pooled connection")
    db_statement_timeout_ms: int = Field(
        default=15000,
        ge=0,
        description="Per-statement timeout applied on PostgreSQL (0 disables)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")

    # Business knobs that are deployment policy rather than product rules
    cancellation_reason_min_length: int = Field(
        default=1,
        ge=1,
        description="Minimum non-blank characters in a cancellation reason",
    )
    match_default_limit: int = Field(default=DEFAULT_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT)
    match_max_limit: int = Field(default=MAX_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_database_url(self, override: Optional[str] = None) -> str:
        """Return the URL to connect to; tests may override it explicitly."""
        return override or self.database_url


settings = Settings()
