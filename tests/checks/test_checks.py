"""Tests for the individual pre-flight checks."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from db_preflight.checks import ConnectivityCheck, EnvironmentCheck, MigrationApplyCheck, VersionCompatibilityCheck
from db_preflight.database import parse_connection_url
from db_preflight.exceptions import CompatibilityError, ConfigError, ConnectivityError, MigrationError
from db_preflight.readiness_pipeline import CheckStatus, PreflightContext


@pytest.fixture
def make_context(make_settings, database_factory, migration_runner):
    def build(factory=None, runner=None, **overrides) -> PreflightContext:
        return PreflightContext(make_settings(**overrides), factory or database_factory, runner or migration_runner)

    return build


def connected_context(make_context, valid_url, database_factory_cls, settings=None, **database_kwargs) -> PreflightContext:
    factory = database_factory_cls(**database_kwargs)
    context = make_context(factory=factory, database_url=valid_url, **(settings or {}))
    context.descriptor = parse_connection_url(valid_url)
    context.database = factory(context.descriptor, None)
    asyncio.run(context.database.connect())
    return context


class TestEnvironmentCheck:
    """Test EnvironmentCheck."""

    def test_missing_database_url(self, make_context):
        check = EnvironmentCheck(make_context())

        with pytest.raises(ConfigError, match="DATABASE_URL is not defined."):
            asyncio.run(check.run())

    def test_defined_database_url(self, make_context, valid_url):
        context = make_context(database_url=valid_url)

        result = asyncio.run(EnvironmentCheck(context).run())

        assert result.status == CheckStatus.SUCCESS
        assert result.check_name == "environment"
        assert result.message == "DATABASE_URL is defined."
        assert result.notes == []
        assert result.details["tls_enabled"] is False
        assert context.descriptor.host == "db.internal"
        assert context.tls is None

    def test_redis_url_note(self, make_context, valid_url):
        context = make_context(database_url=valid_url, redis_url="redis://cache:6379/0")

        result = asyncio.run(EnvironmentCheck(context).run())

        assert result.notes == ["REDIS_URL is defined."]

    def test_tls_derived_once(self, make_context, valid_url):
        context = make_context(database_url=f"{valid_url}?sslmode=require")

        result = asyncio.run(EnvironmentCheck(context).run())

        assert context.tls is not None
        assert context.tls.verify is False
        assert result.details["tls_enabled"] is True
        assert result.details["tls_verify"] is False

    def test_malformed_url(self, make_context):
        context = make_context(database_url="this is not a url")

        with pytest.raises(ConfigError, match="not a valid URL"):
            asyncio.run(EnvironmentCheck(context).run())
        assert context.descriptor is None


class TestConnectivityCheck:
    """Test ConnectivityCheck."""

    def test_connects(self, make_context, database_factory, valid_url):
        context = make_context(database_url=valid_url)
        context.descriptor = parse_connection_url(valid_url)

        result = asyncio.run(ConnectivityCheck(context).run())

        assert result.status == CheckStatus.SUCCESS
        assert result.message == "Database connection successful."
        assert len(database_factory.created) == 1
        assert context.database is database_factory.created[0]
        assert context.database.is_connected is True

    def test_tls_options_passed_to_factory(self, make_context, database_factory, valid_url):
        context = make_context(database_url=f"{valid_url}?sslmode=verify-full")
        asyncio.run(EnvironmentCheck(context).run())

        asyncio.run(ConnectivityCheck(context).run())

        assert database_factory.created[0].tls is context.tls
        assert database_factory.created[0].tls.verify is True

    @pytest.mark.parametrize(
        "error,expected",
        [
            (OSError("Connection refused"), "Unable to connect to the database: Connection refused"),
            (
                OperationalError("select 1", {}, Exception("password authentication failed for user \"app\"")),
                'Unable to connect to the database: password authentication failed for user "app"',
            ),
            (asyncio.TimeoutError(), "Unable to connect to the database: TimeoutError"),
        ],
    )
    def test_connection_failure(self, make_context, database_factory_cls, valid_url, error, expected):
        factory = database_factory_cls(connect_error=error)
        context = make_context(factory=factory, database_url=valid_url)
        context.descriptor = parse_connection_url(valid_url)

        with pytest.raises(ConnectivityError) as exc_info:
            asyncio.run(ConnectivityCheck(context).run())

        assert str(exc_info.value) == expected
        # Handed to the context so the pipeline can close it
        assert context.database is factory.created[0]

    def test_requires_environment(self, make_context):
        with pytest.raises(ConfigError):
            asyncio.run(ConnectivityCheck(make_context()).run())


class TestVersionCompatibilityCheck:
    """Test VersionCompatibilityCheck."""

    def test_compatible(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, version="PostgreSQL 16.2 on x86_64")

        result = asyncio.run(VersionCompatibilityCheck(context).run())

        assert result.status == CheckStatus.SUCCESS
        assert result.message == "Database version check successful."
        assert result.details["version"] == "16.2.0"
        assert result.details["minimum_version"] == "9.4.0"
        assert context.database.version_queries == 1

    def test_exact_minimum_passes(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, version="9.4.0")

        result = asyncio.run(VersionCompatibilityCheck(context).run())

        assert result.status == CheckStatus.SUCCESS

    def test_too_old(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, version="PostgreSQL 9.3.1 on linux")

        with pytest.raises(CompatibilityError) as exc_info:
            asyncio.run(VersionCompatibilityCheck(context).run())

        assert str(exc_info.value) == "Database version is not compatible. Please upgrade to 9.4.0 or greater."

    def test_unparseable_version(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, version="unknown")

        with pytest.raises(CompatibilityError):
            asyncio.run(VersionCompatibilityCheck(context).run())

    def test_query_failure(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, version_error=OSError("connection reset"))

        with pytest.raises(ConnectivityError, match="connection reset"):
            asyncio.run(VersionCompatibilityCheck(context).run())

    def test_requires_connection(self, make_context):
        with pytest.raises(ConnectivityError):
            asyncio.run(VersionCompatibilityCheck(make_context()).run())

    def test_invalid_minimum(self, make_context, valid_url, database_factory_cls):
        context = connected_context(make_context, valid_url, database_factory_cls, settings={"min_server_version": "latest"})

        with pytest.raises(ConfigError, match="MIN_SERVER_VERSION"):
            asyncio.run(VersionCompatibilityCheck(context).run())
        assert context.database.version_queries == 0

    def test_custom_minimum(self, make_context, valid_url, database_factory_cls):
        context = connected_context(
            make_context, valid_url, database_factory_cls, settings={"min_server_version": "16"}, version="PostgreSQL 15.4"
        )

        with pytest.raises(CompatibilityError, match="upgrade to 16.0.0 or greater"):
            asyncio.run(VersionCompatibilityCheck(context).run())


class TestMigrationApplyCheck:
    """Test MigrationApplyCheck."""

    def test_applies_migrations(self, make_context, migration_runner):
        result = asyncio.run(MigrationApplyCheck(make_context()).run())

        assert result.status == CheckStatus.SUCCESS
        assert result.message == "Database is up to date."
        assert "output" not in result.details
        assert migration_runner.calls == 1

    def test_output_kept(self, make_context, migration_runner_cls):
        runner = migration_runner_cls(output="Applied 0002_add_orders\n")

        result = asyncio.run(MigrationApplyCheck(make_context(runner=runner)).run())

        assert result.details["output"] == "Applied 0002_add_orders"

    def test_skipped(self, make_context, migration_runner):
        result = asyncio.run(MigrationApplyCheck(make_context(skip_db_migration=True)).run())

        assert result.status == CheckStatus.SKIPPED
        assert migration_runner.calls == 0

    def test_failure_carries_output(self, make_context, migration_runner_cls):
        runner = migration_runner_cls(returncode=2, output="ERROR: relation \"orders\" already exists\n")

        with pytest.raises(MigrationError) as exc_info:
            asyncio.run(MigrationApplyCheck(make_context(runner=runner)).run())

        message = str(exc_info.value)
        assert message.startswith("Database migration failed with exit code 2:")
        assert 'relation "orders" already exists' in message
        assert exc_info.value.output == "ERROR: relation \"orders\" already exists\n"

    def test_failure_without_output(self, make_context, migration_runner_cls):
        runner = migration_runner_cls(returncode=1)

        with pytest.raises(MigrationError, match="^Database migration failed with exit code 1$"):
            asyncio.run(MigrationApplyCheck(make_context(runner=runner)).run())

    def test_runner_cannot_start(self, make_context, migration_runner_cls):
        runner = migration_runner_cls(error=FileNotFoundError("sh: not found"))

        with pytest.raises(MigrationError, match="Unable to run database migrations"):
            asyncio.run(MigrationApplyCheck(make_context(runner=runner)).run())
