"""Configuration loading for pg-stat-collector."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse, urlunparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration derived from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PG_STAT_COLLECTOR_",
        env_file=".env",
        extra="ignore",
    )

    dsn: str = Field(
        "postgresql+asyncpg://postgres@localhost:5432/postgres",
        description="Async SQLAlchemy connection string",
    )
    password: str | None = Field(default=None, description="Overrides the DSN password")
    namespace: str = Field("pg", min_length=1, description="Metric name prefix")
    scrape_timeout_seconds: float = Field(
        10.0,
        gt=0,
        description="Upper bound for one scrape cycle",
    )
    log_level: str = Field("INFO", description="structlog/stdlib log level")
    log_json: bool = Field(True, description="Render logs as JSON lines")
    server_version: str | None = Field(
        default=None,
        description="Skip detection and assume this server version",
    )

    @model_validator(mode="after")
    def inject_password(self) -> Settings:
        # PG_STAT_COLLECTOR_PASSWORD_FILE takes effect only without an explicit password
        password_file = os.getenv("PG_STAT_COLLECTOR_PASSWORD_FILE")
        if password_file and not self.password and Path(password_file).exists():
            self.password = Path(password_file).read_text().strip()

        if self.password:
            u = urlparse(self.dsn)
            if "@" in u.netloc:
                user_pass, host_port = u.netloc.rsplit("@", 1)
                user = user_pass.split(":", 1)[0]
                new_netloc = f"{user}:{self.password}@{host_port}"
                self.dsn = urlunparse(
                    (u.scheme, new_netloc, u.path, u.params, u.query, u.fragment)
                )
        return self

    @property
    def redacted_dsn(self) -> str:
        """DSN with any password masked, safe for logs."""
        u = urlparse(self.dsn)
        if "@" not in u.netloc:
            return self.dsn
        user_pass, host_port = u.netloc.rsplit("@", 1)
        if ":" not in user_pass:
            return self.dsn
        user = user_pass.split(":", 1)[0]
        return urlunparse((u.scheme, f"{user}:***@{host_port}", u.path, u.params, u.query, u.fragment))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()  # type: ignore[call-arg]
