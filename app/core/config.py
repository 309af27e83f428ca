"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the Jibble clients and the
maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class JibbleSettings(BaseSettings):
    """Configuration required for interacting with the Jibble API."""

    client_id: str = Field(..., validation_alias="JIBBLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="JIBBLE_CLIENT_SECRET")
    token_url: AnyHttpUrl = Field(
        "https://identity.prod.jibble.io/connect/token",
        validation_alias="JIBBLE_TOKEN_URL",
    )
    api_base: AnyHttpUrl = Field(
        "https://workspace.prod.jibble.io",
        validation_alias="JIBBLE_API_BASE",
    )
    timeout_seconds: float = Field(10.0, validation_alias="JIBBLE_TIMEOUT")
    token_ttl_minutes: int = Field(
        50,
        validation_alias="JIBBLE_TOKEN_TTL_MINUTES",
        description=(
            "Lifetime assumed for an acquired token. Kept below the upstream "
            "60 minute lifetime."
        ),
    )

    @field_validator("token_ttl_minutes")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Token TTL must be a positive number of minutes.")
        return value


class StorageSettings(BaseSettings):
    """Location of the local JSON document."""

    db_path: str = Field("data/db.json", validation_alias="RELAY_DB_PATH")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    timezone: str = Field(
        "UTC",
        validation_alias="APP_TIMEZONE",
        description="Timezone used to decide what 'today' means for timesheets.",
    )
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    jibble: JibbleSettings = Field(default_factory=JibbleSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "JibbleSettings",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
]
