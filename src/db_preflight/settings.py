"""Pre-flight configuration using Pydantic Settings.

This module captures every environment input the pre-flight pipeline reacts
to. Values are read once, from environment variables or an optional ``.env``
file, into a frozen ``Settings`` instance that is passed explicitly into the
pipeline. Checks never read the process environment themselves.

Environment variables are unprefixed (e.g. ``DATABASE_URL``) so the same
names the service itself uses can be shared with its deploy tooling.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from db_preflight.constants import DEFAULT_MIN_SERVER_VERSION

FALSY_FLAG_VALUES = ("", "0", "false")


class Settings(BaseSettings):
    """Immutable pre-flight settings.

    Attributes map directly to environment variables (case-insensitive). For
    example, ``database_url`` <- ``DATABASE_URL``.
    """

    # Database connection
    database_url: str | None = Field(
        default=None,
        description="Database connection string",
    )  # fmt: skip
    connect_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the database connection to open",
    )  # fmt: skip

    # Pipeline control
    skip_db_check: bool = Field(
        default=False,
        description="Skip every pre-flight check and exit successfully",
    )  # fmt: skip
    skip_db_migration: bool = Field(
        default=False,
        description="Skip applying pending migrations",
    )  # fmt: skip
    min_server_version: str = Field(
        default=DEFAULT_MIN_SERVER_VERSION,
        description="Minimum accepted database server version",
    )  # fmt: skip

    # TLS overrides
    database_ssl: bool = Field(
        default=False,
        description="Force TLS on regardless of URL hints",
    )  # fmt: skip
    database_ssl_reject_unauthorized: str | None = Field(
        default=None,
        description="Force certificate verification on or off ('0'/'false' disables)",
    )  # fmt: skip
    database_ssl_ca: str | None = Field(
        default=None,
        description="Trusted CA certificate as PEM text",
    )  # fmt: skip
    database_ssl_ca_base64: str | None = Field(
        default=None,
        description="Trusted CA certificate as base64-encoded PEM",
    )  # fmt: skip
    database_ssl_debug: bool = Field(
        default=False,
        description="Log the derived TLS state",
    )  # fmt: skip

    # Migrations
    migration_command: str | None = Field(
        default=None,
        description="Shell command applying pending migrations. Empty/None runs alembic in-process.",
    )  # fmt: skip
    alembic_config: str = Field(
        default="alembic.ini",
        description="Path to alembic.ini used by the in-process migration runner",
    )  # fmt: skip

    # Secondary services
    redis_url: str | None = Field(
        default=None,
        description="Cache connection string (presence is reported only)",
    )  # fmt: skip

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("database_url", "migration_command", "redis_url", mode="before")
    @classmethod
    def empty_as_none(cls, v: str | None) -> str | None:
        """Treat blank values the same as unset ones."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("skip_db_check", "skip_db_migration", "database_ssl", "database_ssl_debug", mode="before")
    @classmethod
    def flag_from_presence(cls, v: str | bool | None) -> bool | None:
        """Read a flag the way deploy environments set it.

        Blank, ``0`` and ``false`` are off; any other non-empty value is on.
        """
        if v is None or isinstance(v, bool):
            return v
        value = str(v).strip().lower()
        return value not in FALSY_FLAG_VALUES

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars
        env_file=".env",  # Optional .env loading (if present)
        env_file_encoding="utf-8",
        frozen=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings"]
