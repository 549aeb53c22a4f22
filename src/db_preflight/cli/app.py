"""Main CLI application."""

import typer
from loguru import logger
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from db_preflight.cli.runner import console, run_preflight_checks
from db_preflight.database import TlsOverrides, derive_tls, parse_connection_url
from db_preflight.exceptions import ConfigError
from db_preflight.logging import setup_logging
from db_preflight.settings import Settings, get_settings

app = typer.Typer(
    name="db-preflight",
    help="Database pre-flight checks - run before the service is allowed to start",
    no_args_is_help=True,
)


DATABASE_URL_OPTION = typer.Option(
    None,
    "--database-url",
    help="Database URL (overrides DATABASE_URL)",
    metavar="<dsn>",
)  # fmt: skip
SKIP_MIGRATION_OPTION = typer.Option(
    None,
    "--skip-migration/--migrate",
    help="Skip or force applying pending migrations (overrides SKIP_DB_MIGRATION)",
)  # fmt: skip
MIN_VERSION_OPTION = typer.Option(
    None,
    "--min-version",
    help="Minimum server version (overrides MIN_SERVER_VERSION)",
    metavar="<version>",
)  # fmt: skip
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Log level (overrides LOG_LEVEL)",
    metavar="<level>",
    case_sensitive=False,
)  # fmt: skip


def _resolve_settings(
    database_url: str | None = None,
    skip_migration: bool | None = None,
    min_version: str | None = None,
    log_level: str | None = None,
) -> Settings:
    """Return settings with CLI overrides applied.

    Settings are immutable, so overrides produce a new validated instance
    rather than mutating the cached one.
    """
    overrides = {
        "database_url": database_url,
        "skip_db_migration": skip_migration,
        "min_server_version": min_version,
        "log_level": log_level,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    try:
        settings = get_settings()
        if not overrides:
            return settings
        return Settings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(part) for part in error['loc']).upper()}: {error['msg']}" for error in e.errors())
        console.print(f"[bright_red]✗ Invalid configuration: {escape(problems)}[/bright_red]")
        raise typer.Exit(1) from None


@app.command()
def check(
    database_url: str | None = DATABASE_URL_OPTION,
    skip_migration: bool | None = SKIP_MIGRATION_OPTION,
    min_version: str | None = MIN_VERSION_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
):
    """Run all pre-flight checks, exiting non-zero on the first failure.

    Checks, in order: required configuration, connectivity, server version,
    pending migrations.

    Examples:
        db-preflight check
        db-preflight check --skip-migration
        db-preflight check --database-url postgresql://app@db/app?sslmode=require
    """
    settings = _resolve_settings(database_url, skip_migration, min_version, log_level)
    setup_logging(settings.log_level, compact=True)

    run_preflight_checks(settings)


@app.command()
def tls(
    database_url: str | None = DATABASE_URL_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
):
    """Show the TLS options derived for the configured database URL.

    Nothing is connected; this only evaluates the URL and TLS overrides.

    Examples:
        db-preflight tls
        DATABASE_SSL_REJECT_UNAUTHORIZED=false db-preflight tls
    """
    settings = _resolve_settings(database_url=database_url, log_level=log_level)
    setup_logging(settings.log_level, compact=True)

    if not settings.database_url:
        console.print("[bright_red]✗ DATABASE_URL is not defined.[/bright_red]")
        raise typer.Exit(1)

    try:
        descriptor = parse_connection_url(settings.database_url)
    except ConfigError as e:
        console.print(f"[bright_red]✗ {escape(str(e))}[/bright_red]")
        raise typer.Exit(1) from None

    options = derive_tls(descriptor, TlsOverrides.from_settings(settings))
    logger.debug("Derived TLS options for {}: {}", descriptor.redacted(), options)

    table = Table(title=escape(descriptor.redacted()), show_header=False)
    table.add_row("enabled", str(options is not None))
    if options is not None:
        table.add_row("verify", str(options.verify))
        table.add_row("sslmode", descriptor.get_param("sslmode") or "-")
        table.add_row("ca certificate", "yes" if options.ca_certificate else "no")
        table.add_row("ca looks like PEM", str(options.ca_looks_like_pem))
    console.print(table)
