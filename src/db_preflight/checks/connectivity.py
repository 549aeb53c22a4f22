"""Database connectivity check for the pre-flight pipeline."""

import asyncio

import asyncpg
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from db_preflight.constants import CHECK_CONNECTIVITY
from db_preflight.exceptions import ConfigError, ConnectivityError
from db_preflight.readiness_pipeline import CheckResult, PipelineState, PreflightCheck, PreflightContext


class ConnectivityCheck(PreflightCheck):
    """Open the database connection used by the remaining checks."""

    state = PipelineState.CONNECTIVITY

    def __init__(self, context: PreflightContext, name: str = CHECK_CONNECTIVITY):
        super().__init__(context, name)

    async def _execute(self) -> CheckResult:
        descriptor = self.context.descriptor
        if descriptor is None:
            raise ConfigError("Connection settings are not available; the environment check must run first.")

        logger.info("Checking database connection to {}", descriptor.host)
        database = self.context.database_factory(descriptor, self.context.tls)
        # Owned by the context from here on, so it is closed even if connect fails halfway
        self.context.database = database

        try:
            await database.connect()
        except (SQLAlchemyError, asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError, ValueError) as e:
            raise ConnectivityError(f"Unable to connect to the database: {_driver_message(e)}") from e

        return self.success(
            "Database connection successful.",
            {"host": descriptor.host, "port": descriptor.port, "database": descriptor.database},
        )


def _driver_message(e: Exception) -> str:
    # SQLAlchemy wraps DBAPI errors; the original driver message is the useful part
    original = getattr(e, "orig", None)
    message = str(original) if original is not None else str(e)
    return message or type(e).__name__
