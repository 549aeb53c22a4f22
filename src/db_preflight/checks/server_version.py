"""Database server version compatibility check for the pre-flight pipeline."""

import asyncpg
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from db_preflight.constants import CHECK_VERSION
from db_preflight.exceptions import CompatibilityError, ConfigError, ConnectivityError
from db_preflight.readiness_pipeline import CheckResult, PipelineState, PreflightCheck, PreflightContext
from db_preflight.utils.version import coerce_version


class VersionCompatibilityCheck(PreflightCheck):
    """Reject servers older than the configured minimum version."""

    state = PipelineState.VERSION

    def __init__(self, context: PreflightContext, name: str = CHECK_VERSION):
        super().__init__(context, name)

    async def _execute(self) -> CheckResult:
        """Query ``version()`` and compare it against ``min_server_version``.

        Raises:
            CompatibilityError: If the server is older than the minimum or its
                version cannot be determined
            ConnectivityError: If the version query itself fails
        """
        minimum = coerce_version(self.settings.min_server_version)
        if minimum is None:
            raise ConfigError(f"MIN_SERVER_VERSION is not a valid version: {self.settings.min_server_version}")

        database = self.context.database
        if database is None or not database.is_connected:
            raise ConnectivityError("No open database connection; the connectivity check must run first.")

        logger.info("Checking database version")
        try:
            reported = await database.fetch_server_version()
        except (SQLAlchemyError, asyncpg.PostgresError, OSError) as e:
            raise ConnectivityError(f"Unable to query the database version: {e}") from e

        version = coerce_version(reported)
        logger.debug("Server reported '{}', coerced to {}", reported, version)

        if version is None or version < minimum:
            raise CompatibilityError(f"Database version is not compatible. Please upgrade to {minimum} or greater.")

        return self.success(
            "Database version check successful.",
            {"version": str(version), "minimum_version": str(minimum), "reported": reported},
        )
