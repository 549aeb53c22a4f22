"""Pre-flight check implementations and the default pipeline factory."""

from db_preflight.database import DatabaseFactory, MigrationRunner
from db_preflight.readiness_pipeline import (
    PipelineBuilder,
    PipelineOutcome,
    PreflightContext,
    ReadinessPipeline,
    ResultCallback,
)
from db_preflight.settings import Settings

from .connectivity import ConnectivityCheck
from .environment import EnvironmentCheck
from .migration_apply import MigrationApplyCheck
from .server_version import VersionCompatibilityCheck


def build_preflight_pipeline(
    settings: Settings,
    database_factory: DatabaseFactory | None = None,
    migration_runner: MigrationRunner | None = None,
    on_result: ResultCallback | None = None,
) -> ReadinessPipeline:
    """Build the default pre-flight pipeline.

    Creates a pipeline with checks, in order:
    1. Environment - required configuration, URL parsing, TLS derivation
    2. Connectivity - open the database connection
    3. Version compatibility - server version >= MIN_SERVER_VERSION
    4. Migration apply - run pending migrations unless SKIP_DB_MIGRATION is set

    Args:
        settings: Configuration for this run
        database_factory: Creates the database handle (default: asyncpg engine)
        migration_runner: Applies migrations (default: chosen from settings)
        on_result: Called with each check result as it completes

    Returns:
        ReadinessPipeline: A fresh pipeline for a single run
    """
    context = PreflightContext(settings, database_factory, migration_runner)

    return (
        PipelineBuilder(context)
        .check(EnvironmentCheck(context))
        .check(ConnectivityCheck(context))
        .check(VersionCompatibilityCheck(context))
        .check(MigrationApplyCheck(context))
        .on_result(on_result)
        .build()
    )


async def run_preflight(
    settings: Settings,
    database_factory: DatabaseFactory | None = None,
    migration_runner: MigrationRunner | None = None,
    on_result: ResultCallback | None = None,
) -> PipelineOutcome:
    """Build the default pipeline and execute it once."""
    pipeline = build_preflight_pipeline(settings, database_factory, migration_runner, on_result)
    return await pipeline.execute()


__all__ = [
    "ConnectivityCheck",
    "EnvironmentCheck",
    "MigrationApplyCheck",
    "VersionCompatibilityCheck",
    "build_preflight_pipeline",
    "run_preflight",
]
