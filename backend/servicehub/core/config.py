# backend/servicehub/core/config.py
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment")
    database_url: str = Field(
        default="sqlite:///./servicehub.db",
        description="SQLAlchemy database URL",
    )
    sql_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    audit_enabled: bool = Field(
        default=True, description="Persist booking status log rows on each transition"
    )
    emails_enabled: bool = Field(
        default=True, description="Dispatch booking emails through the email collaborator"
    )
    slow_operation_threshold_seconds: float = Field(
        default=1.0, gt=0, description="Service operations slower than this are logged"
    )

    commission_rate_min: float = Field(default=5.0, ge=0, description="Lowest allowed rate (%)")
    commission_rate_max: float = Field(default=50.0, le=100, description="Highest allowed rate (%)")

    revenue_top_providers_limit: int = Field(
        default=10, ge=1, description="Top providers listed in revenue reports"
    )
    migration_batch_size: int = Field(
        default=200, ge=1, description="Providers loaded per page by the tier migration"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @model_validator(mode="after")
    def _validate_rate_bounds(self) -> "Settings":
        if self.commission_rate_min >= self.commission_rate_max:
            raise ValueError("commission_rate_min must be lower than commission_rate_max")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
