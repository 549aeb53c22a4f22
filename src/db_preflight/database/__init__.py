"""Database package for the pre-flight pipeline.

Provides connection URL parsing, TLS derivation, the async connection handle
and the migration runner capabilities.
"""

from .connection import DatabaseFactory, DatabaseHandle
from .descriptor import ConnectionDescriptor, parse_connection_url
from .migrations import (
    AlembicMigrationRunner,
    CommandMigrationRunner,
    MigrationOutput,
    MigrationRunner,
    create_migration_runner,
)
from .tls import TlsOptions, TlsOverrides, build_ssl_context, derive_tls

__all__ = [
    # Connection
    "DatabaseFactory",
    "DatabaseHandle",
    # URL parsing and TLS
    "ConnectionDescriptor",
    "parse_connection_url",
    "TlsOptions",
    "TlsOverrides",
    "build_ssl_context",
    "derive_tls",
    # Migrations
    "AlembicMigrationRunner",
    "CommandMigrationRunner",
    "MigrationOutput",
    "MigrationRunner",
    "create_migration_runner",
]
