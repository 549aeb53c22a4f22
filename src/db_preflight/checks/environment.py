"""Environment configuration check for the pre-flight pipeline."""

from loguru import logger

from db_preflight.constants import CHECK_ENVIRONMENT
from db_preflight.database import TlsOverrides, derive_tls, parse_connection_url
from db_preflight.exceptions import ConfigError
from db_preflight.readiness_pipeline import CheckResult, PipelineState, PreflightCheck, PreflightContext


class EnvironmentCheck(PreflightCheck):
    """Validate required configuration and derive connection settings.

    Parses the connection URL and derives the TLS options once, storing both
    on the run context for the checks that follow.
    """

    state = PipelineState.ENVIRONMENT

    def __init__(self, context: PreflightContext, name: str = CHECK_ENVIRONMENT):
        super().__init__(context, name)

    async def _execute(self) -> CheckResult:
        if not self.settings.database_url:
            raise ConfigError("DATABASE_URL is not defined.")

        descriptor = parse_connection_url(self.settings.database_url)
        tls = derive_tls(descriptor, TlsOverrides.from_settings(self.settings))
        self.context.descriptor = descriptor
        self.context.tls = tls
        logger.debug("Target database {} (tls={})", descriptor.redacted(), "on" if tls else "off")

        notes = []
        if self.settings.redis_url:
            notes.append("REDIS_URL is defined.")

        return self.success(
            "DATABASE_URL is defined.",
            {
                "host": descriptor.host,
                "database": descriptor.database,
                "tls_enabled": tls is not None,
                "tls_verify": tls.verify if tls else None,
            },
            notes,
        )
