"""Run context shared by the checks of one pipeline execution."""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from db_preflight.database import (
    ConnectionDescriptor,
    DatabaseFactory,
    DatabaseHandle,
    MigrationRunner,
    TlsOptions,
    create_migration_runner,
)
from db_preflight.settings import Settings


def _default_database_factory(settings: Settings) -> DatabaseFactory:
    def factory(descriptor: ConnectionDescriptor, tls: TlsOptions | None) -> DatabaseHandle:
        return DatabaseHandle(descriptor, tls, connect_timeout=settings.connect_timeout)

    return factory


class PreflightContext:
    """State produced by earlier checks and consumed by later ones.

    The environment check fills in ``descriptor`` and ``tls``; the
    connectivity check opens ``database``. The pipeline owns the context and
    closes the database handle when the run ends.

    Attributes:
        settings: Immutable configuration for this run
        database_factory: Creates the database handle from descriptor and TLS options
        migration_runner: Capability applying pending migrations
    """

    def __init__(
        self,
        settings: Settings,
        database_factory: DatabaseFactory | None = None,
        migration_runner: MigrationRunner | None = None,
    ):
        self.settings = settings
        self.database_factory = database_factory or _default_database_factory(settings)
        self.migration_runner = migration_runner or create_migration_runner(settings)
        self.descriptor: ConnectionDescriptor | None = None
        self.tls: TlsOptions | None = None
        self.database: DatabaseHandle | None = None

    async def close(self) -> None:
        """Release the database handle, if one was opened."""
        if self.database is None:
            return
        try:
            await self.database.close()
        except (OSError, RuntimeError, SQLAlchemyError) as e:
            logger.warning("Error closing database connection: {}", e)
        finally:
            self.database = None
