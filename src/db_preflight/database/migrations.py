"""Migration runner capabilities.

The migration check only needs ``apply()``: run pending migrations and report
a return code plus captured output. Two runners are provided:

- ``AlembicMigrationRunner`` upgrades to ``head`` in-process using the
  project's ``alembic.ini``
- ``CommandMigrationRunner`` spawns an arbitrary shell command (for projects
  whose migrations are managed by another tool)

Tests substitute a fake runner instead of spawning anything.
"""

import asyncio
import io
import os
from typing import Protocol

import alembic.command
import alembic.config
from alembic.util import CommandError
from loguru import logger
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from db_preflight.settings import Settings


class MigrationOutput(BaseModel):
    """Outcome of one migration run."""

    returncode: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class MigrationRunner(Protocol):
    """Capability applying pending schema migrations."""

    async def apply(self) -> MigrationOutput: ...


class AlembicMigrationRunner:
    """Apply migrations in-process with alembic."""

    def __init__(self, config_path: str = "alembic.ini", database_url: str | None = None, target: str = "head"):
        """Initialize the runner.

        Args:
            config_path: Path to alembic.ini, relative paths resolve against the cwd
            database_url: If given, overrides ``sqlalchemy.url`` from the ini file
            target: Migration target revision
        """
        self.config_path = config_path
        self.database_url = database_url
        self.target = target

    def _build_config(self, stdout: io.StringIO) -> alembic.config.Config:
        config_path = os.path.abspath(self.config_path)
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Alembic configuration file not found: {config_path}")

        logger.trace("Loading alembic configuration from: {}", config_path)
        config = alembic.config.Config(config_path, stdout=stdout)

        # Resolve script_location relative to the ini file so the runner works from any directory
        script_location = config.get_main_option("script_location")
        if script_location and not os.path.isabs(script_location) and ":" not in script_location:
            config.set_main_option("script_location", os.path.join(os.path.dirname(config_path), script_location))

        if self.database_url:
            # ConfigParser interpolation treats '%' specially
            config.set_main_option("sqlalchemy.url", self.database_url.replace("%", "%%"))
        return config

    def _upgrade(self) -> MigrationOutput:
        stdout = io.StringIO()
        try:
            config = self._build_config(stdout)
            logger.info("Starting database migration to '{}'", self.target)
            alembic.command.upgrade(config, self.target)
        except (OSError, ValueError, RuntimeError, SQLAlchemyError, CommandError) as e:
            logger.error("Migration failed: {}", e)
            captured = stdout.getvalue()
            return MigrationOutput(returncode=1, output=f"{captured}{e}" if captured else str(e))

        logger.info("Database migration to '{}' completed successfully", self.target)
        return MigrationOutput(returncode=0, output=stdout.getvalue())

    async def apply(self) -> MigrationOutput:
        return await asyncio.to_thread(self._upgrade)


class CommandMigrationRunner:
    """Apply migrations by running a shell command and capturing its output."""

    def __init__(self, command: str, database_url: str | None = None):
        """Initialize the runner.

        Args:
            command: Shell command applying pending migrations
            database_url: If given, exported to the command as ``DATABASE_URL``
        """
        self.command = command
        self.database_url = database_url

    def _environment(self) -> dict[str, str] | None:
        if not self.database_url:
            return None
        return {**os.environ, "DATABASE_URL": self.database_url}

    async def apply(self) -> MigrationOutput:
        """Run the command, merging stdout and stderr.

        Raises:
            OSError: If the shell itself cannot be spawned
        """
        logger.info("Running migration command: {}", self.command)
        process = await asyncio.create_subprocess_shell(
            self.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=self._environment(),
        )
        stdout, _ = await process.communicate()
        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        logger.debug("Migration command exited with {}", process.returncode)
        return MigrationOutput(returncode=process.returncode or 0, output=output)


def create_migration_runner(settings: Settings) -> MigrationRunner:
    """Pick the migration runner configured in settings.

    Either runner migrates the same ``database_url`` the other checks connect to.
    """
    if settings.migration_command:
        return CommandMigrationRunner(settings.migration_command, settings.database_url)
    return AlembicMigrationRunner(settings.alembic_config, settings.database_url)
