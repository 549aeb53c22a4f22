"""Migration apply check for the pre-flight pipeline."""

from loguru import logger

from db_preflight.constants import CHECK_MIGRATION
from db_preflight.exceptions import MigrationError
from db_preflight.readiness_pipeline import CheckResult, PipelineState, PreflightCheck, PreflightContext


class MigrationApplyCheck(PreflightCheck):
    """Apply pending schema migrations through the configured runner.

    Skipped entirely when ``SKIP_DB_MIGRATION`` is set; the runner is not
    touched in that case.
    """

    state = PipelineState.MIGRATION

    def __init__(self, context: PreflightContext, name: str = CHECK_MIGRATION):
        super().__init__(context, name)

    async def _execute(self) -> CheckResult:
        if self.settings.skip_db_migration:
            logger.info("Skipping database migration (SKIP_DB_MIGRATION is set)")
            return self.skipped("Database migration skipped.", {"reason": "skip_db_migration"})

        try:
            result = await self.context.migration_runner.apply()
        except OSError as e:
            raise MigrationError(f"Unable to run database migrations: {e}", str(e)) from e

        if not result.succeeded:
            message = f"Database migration failed with exit code {result.returncode}"
            if result.output.strip():
                message = f"{message}:\n{result.output}"
            raise MigrationError(message, result.output)

        details = {"returncode": result.returncode}
        if result.output.strip():
            details["output"] = result.output.rstrip("\n")
        return self.success("Database is up to date.", details)
