"""Tests for the db-preflight command line."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from db_preflight.checks import run_preflight
from db_preflight.cli import app
from db_preflight.cli.app import _resolve_settings
from db_preflight.settings import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI from replacing the test process log handlers."""
    with patch("db_preflight.cli.app.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def fake_run(database_factory_cls, migration_runner_cls):
    """Route the CLI run through fake collaborators."""
    collaborators = {"factory": database_factory_cls(), "runner": migration_runner_cls(), "settings": []}

    async def fake_run_preflight(settings, on_result=None):
        collaborators["settings"].append(settings)
        return await run_preflight(settings, collaborators["factory"], collaborators["runner"], on_result)

    with patch("db_preflight.cli.runner.run_preflight", fake_run_preflight):
        yield collaborators


class TestCheckCommand:
    """Test the check command."""

    def test_success(self, fake_run, valid_url):
        result = runner.invoke(app, ["check"], env={"DATABASE_URL": valid_url, "REDIS_URL": "redis://cache:6379"})

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "✓ DATABASE_URL is defined.",
            "✓ REDIS_URL is defined.",
            "✓ Database connection successful.",
            "✓ Database version check successful.",
            "✓ Database is up to date.",
        ]

    def test_missing_database_url(self, fake_run):
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert result.stdout.splitlines() == ["✗ DATABASE_URL is not defined."]
        assert fake_run["factory"].created == []

    def test_skip_all(self, fake_run):
        result = runner.invoke(app, ["check"], env={"SKIP_DB_CHECK": "true"})

        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["Skipping database check."]

    def test_skip_all_ignores_blank_sibling_flags(self, fake_run):
        result = runner.invoke(app, ["check"], env={"SKIP_DB_CHECK": "1", "DATABASE_SSL": "", "SKIP_DB_MIGRATION": ""})

        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["Skipping database check."]
        assert fake_run["factory"].created == []

    def test_blank_skip_flag_runs_checks(self, fake_run, valid_url):
        result = runner.invoke(app, ["check"], env={"SKIP_DB_CHECK": "", "DATABASE_URL": valid_url})

        assert result.exit_code == 0
        assert "✓ Database is up to date." in result.stdout
        assert fake_run["runner"].calls == 1

    @pytest.mark.parametrize(
        "env,field",
        [({"LOG_LEVEL": "verbose"}, "LOG_LEVEL"), ({"CONNECT_TIMEOUT": "soon"}, "CONNECT_TIMEOUT")],
    )
    def test_invalid_configuration_reported(self, fake_run, env, field):
        result = runner.invoke(app, ["check"], env=env)

        assert result.exit_code == 1
        assert result.stdout.splitlines()[0].startswith(f"✗ Invalid configuration: {field}: ")
        assert isinstance(result.exception, SystemExit)
        assert fake_run["settings"] == []

    def test_skip_migration_flag(self, fake_run, valid_url):
        result = runner.invoke(app, ["check", "--database-url", valid_url, "--skip-migration"])

        assert result.exit_code == 0
        assert "- Database migration skipped." in result.stdout
        assert fake_run["runner"].calls == 0
        assert fake_run["settings"][0].skip_db_migration is True

    def test_migrate_flag_overrides_env(self, fake_run, valid_url):
        result = runner.invoke(app, ["check", "--migrate"], env={"DATABASE_URL": valid_url, "SKIP_DB_MIGRATION": "1"})

        assert result.exit_code == 0
        assert fake_run["runner"].calls == 1

    def test_min_version_flag(self, fake_run, valid_url):
        result = runner.invoke(app, ["check", "--database-url", valid_url, "--min-version", "17"])

        assert result.exit_code == 1
        assert "✗ Database version is not compatible. Please upgrade to 17.0.0 or greater." in result.stdout
        assert fake_run["runner"].calls == 0

    def test_failed_migration_output_printed(self, fake_run, valid_url, migration_runner_cls):
        fake_run["runner"] = migration_runner_cls(returncode=1, output="[error] relation exists")

        result = runner.invoke(app, ["check", "--database-url", valid_url])

        assert result.exit_code == 1
        assert "[error] relation exists" in result.stdout

    def test_logging_configured_from_option(self, fake_run, valid_url, no_logging_setup):
        runner.invoke(app, ["check", "--database-url", valid_url, "--log-level", "debug"])

        no_logging_setup.assert_called_once_with("DEBUG", compact=True)


class TestTlsCommand:
    """Test the tls command."""

    def test_missing_database_url(self):
        result = runner.invoke(app, ["tls"])

        assert result.exit_code == 1
        assert "DATABASE_URL is not defined." in result.stdout

    def test_invalid_url(self):
        result = runner.invoke(app, ["tls", "--database-url", "mysql://u@h/db"])

        assert result.exit_code == 1
        assert "PostgreSQL scheme" in result.stdout

    def test_tls_disabled(self):
        result = runner.invoke(app, ["tls", "--database-url", "postgresql://u:p@db/app"])

        assert result.exit_code == 0
        assert "enabled" in result.stdout
        assert "False" in result.stdout
        assert "verify" not in result.stdout

    def test_tls_without_verification(self):
        result = runner.invoke(
            app,
            ["tls", "--database-url", "postgresql://u:p@db/app?sslmode=verify-full"],
            env={"DATABASE_SSL_REJECT_UNAUTHORIZED": "false"},
        )

        assert result.exit_code == 0
        verify_line = next(line for line in result.stdout.splitlines() if "verify" in line and "sslmode" not in line)
        assert "False" in verify_line
        assert "verify-full" in result.stdout


class TestResolveSettings:
    """Test CLI overrides on top of environment settings."""

    def test_no_overrides_returns_cached_settings(self):
        assert _resolve_settings() is get_settings()

    def test_overrides_applied(self, monkeypatch, valid_url):
        monkeypatch.setenv("MIN_SERVER_VERSION", "12")

        settings = _resolve_settings(database_url=valid_url, skip_migration=True)

        assert settings.database_url == valid_url
        assert settings.skip_db_migration is True
        assert settings.min_server_version == "12"
