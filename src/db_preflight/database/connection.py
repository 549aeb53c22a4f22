"""Database connection handle for the pre-flight run.

A single ``DatabaseHandle`` is opened by the connectivity check and reused by
the later checks. The engine is created lazily from the parsed descriptor and
derived TLS options, uses no pool (one connection, one run) and is disposed
when the pipeline finishes.
"""

from collections.abc import Callable
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from db_preflight.database.descriptor import ConnectionDescriptor
from db_preflight.database.tls import TlsOptions, build_ssl_context


class DatabaseHandle:
    """Owns the engine and the live connection used by the checks."""

    def __init__(self, descriptor: ConnectionDescriptor, tls: TlsOptions | None, connect_timeout: float = 10.0):
        self.descriptor = descriptor
        self.tls = tls
        self.connect_timeout = connect_timeout
        self._engine: AsyncEngine | None = None
        self._connection: AsyncConnection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def _connect_args(self) -> dict[str, Any]:
        connect_args: dict[str, Any] = {
            "timeout": self.connect_timeout,
            "ssl": build_ssl_context(self.tls) if self.tls else False,
        }
        if self.descriptor.schema_name:
            connect_args["server_settings"] = {"search_path": self.descriptor.schema_name}
        return connect_args

    async def connect(self) -> None:
        """Open the connection.

        Raises:
            Any driver, network, authentication or TLS error, unchanged
        """
        if self._connection is not None:
            return

        logger.debug("Connecting to {}", self.descriptor.redacted())
        self._engine = create_async_engine(
            self.descriptor.to_sqlalchemy_url(),
            poolclass=NullPool,
            connect_args=self._connect_args(),
        )
        self._connection = await self._engine.connect()
        logger.debug("Connection to {} opened", self.descriptor.host)

    async def fetch_server_version(self) -> str:
        """Return the server's ``version()`` string."""
        if self._connection is None:
            raise RuntimeError("Database connection is not open")

        result = await self._connection.execute(text("select version() as version"))
        return str(result.scalar_one())

    async def close(self) -> None:
        """Close the connection and dispose of the engine, if they were created."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        if self._engine is not None:
            logger.trace("Disposing database engine")
            await self._engine.dispose()
            self._engine = None


DatabaseFactory = Callable[[ConnectionDescriptor, TlsOptions | None], DatabaseHandle]
