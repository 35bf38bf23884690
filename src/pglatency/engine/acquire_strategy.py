# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Connection acquisition strategies for the prober.

Two strategies, selected once at startup:

    - ClientAcquireStrategy: a brand-new asyncpg connection per cycle, closed
      unconditionally afterwards. Acquire latency is connect time.
    - PoolAcquireStrategy: a checkout from one process-wide asyncpg pool,
      released (not closed) afterwards. Acquire latency is checkout wait.

Contract with the prober:
    - ``acquire()`` either returns an AcquiredConnection or raises.
    - ``release()`` is called exactly once per successful ``acquire()`` on the
      success path; ``discard()`` is the best-effort equivalent on the failure
      path and never raises.
    - Neither is called after a failed ``acquire()``.

Example:
    >>> strategy = PoolAcquireStrategy(dsn=dsn, pool_size=10)
    >>> await strategy.initialize()
    >>> acquired = await strategy.acquire()
    >>> await acquired.connection.fetchval("SELECT 1")
    >>> await strategy.release(acquired)
    >>> await strategy.close()
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import Protocol

import asyncpg
from asyncpg import Connection, Pool

from pglatency.enums import EnumAcquireMode, EnumInfraTransportType
from pglatency.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ModelInfraErrorContext,
)
from pglatency.models import ModelBenchmarkConfig, ModelPoolSnapshot
from pglatency.utils.util_dsn import (
    build_ssl_context,
    mask_dsn,
    parse_host_port,
    strip_ssl_params,
)
from pglatency.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquiredConnection:
    """A usable connection plus the pool state observed at checkout."""

    connection: Connection
    pool_snapshot: ModelPoolSnapshot | None = None


class ProtocolAcquireStrategy(Protocol):
    """Interface the prober uses to obtain and give back connections."""

    @property
    def mode(self) -> EnumAcquireMode: ...

    @property
    def pool_size(self) -> int | None: ...

    async def initialize(self) -> None: ...

    async def acquire(self) -> AcquiredConnection: ...

    async def release(self, acquired: AcquiredConnection) -> None: ...

    async def discard(self, acquired: AcquiredConnection) -> None: ...

    async def close(self) -> None: ...


class _BaseAcquireStrategy:
    """Shared DSN/SSL handling for both strategies."""

    def __init__(
        self,
        dsn: str | None,
        *,
        ssl_mode: str = "require",
        connect_timeout: float = 5.0,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = strip_ssl_params(dsn) if dsn else None
        self._ssl: ssl.SSLContext | bool = build_ssl_context(ssl_mode)
        self._connect_timeout = connect_timeout
        self._command_timeout = command_timeout
        host_port = parse_host_port(self._dsn)
        self._target_name = (
            f"{host_port[0]}:{host_port[1]}" if host_port else "postgresql"
        )

    def _context(self, operation: str) -> ModelInfraErrorContext:
        return ModelInfraErrorContext.with_correlation(
            transport_type=EnumInfraTransportType.DATABASE,
            operation=operation,
            target_name=self._target_name,
        )

    def _require_dsn(self) -> str:
        if not self._dsn:
            raise InfraConnectionError(
                "DATABASE_URL is not configured",
                context=self._context("acquire"),
            )
        return self._dsn


class ClientAcquireStrategy(_BaseAcquireStrategy):
    """Open a fresh connection for every cycle."""

    @property
    def mode(self) -> EnumAcquireMode:
        return EnumAcquireMode.CLIENT

    @property
    def pool_size(self) -> int | None:
        return None

    async def initialize(self) -> None:
        """Nothing to prepare: connections are established per cycle."""
        logger.debug(
            "Client acquire strategy ready",
            extra={"dsn": mask_dsn(self._dsn)},
        )

    async def acquire(self) -> AcquiredConnection:
        dsn = self._require_dsn()
        try:
            connection = await asyncpg.connect(
                dsn=dsn,
                ssl=self._ssl,
                timeout=self._connect_timeout,
                command_timeout=self._command_timeout,
            )
        except TimeoutError as e:
            raise InfraTimeoutError(
                f"Connect exceeded {self._connect_timeout}s timeout",
                context=self._context("connect"),
                timeout_seconds=self._connect_timeout,
            ) from e
        return AcquiredConnection(connection=connection)

    async def release(self, acquired: AcquiredConnection) -> None:
        await acquired.connection.close(timeout=self._connect_timeout)

    async def discard(self, acquired: AcquiredConnection) -> None:
        try:
            await acquired.connection.close(timeout=self._connect_timeout)
        except Exception as e:
            logger.warning(
                "Graceful close failed, terminating connection: %s",
                sanitize_error_message(e),
            )
            acquired.connection.terminate()

    async def close(self) -> None:
        """Nothing to tear down: every connection is closed by its cycle."""


class PoolAcquireStrategy(_BaseAcquireStrategy):
    """Check connections out of one bounded, process-wide pool.

    The pool is created once by ``initialize()`` with ``min_size=0`` so that
    an unreachable database at startup surfaces as cycle Failures rather
    than a fatal startup error.
    """

    def __init__(
        self,
        dsn: str | None,
        *,
        pool_size: int = 10,
        idle_timeout: float = 30.0,
        ssl_mode: str = "require",
        connect_timeout: float = 5.0,
        command_timeout: float = 30.0,
    ) -> None:
        super().__init__(
            dsn,
            ssl_mode=ssl_mode,
            connect_timeout=connect_timeout,
            command_timeout=command_timeout,
        )
        self._pool_size = pool_size
        self._idle_timeout = idle_timeout
        self._pool: Pool | None = None
        self._init_lock = asyncio.Lock()
        self._waiting = 0

    @property
    def mode(self) -> EnumAcquireMode:
        return EnumAcquireMode.POOL

    @property
    def pool_size(self) -> int | None:
        return self._pool_size

    @property
    def is_initialized(self) -> bool:
        """Return True once the shared pool exists."""
        return self._pool is not None

    async def initialize(self) -> None:
        """Create the shared pool. Idempotent and safe under concurrent callers."""
        if self._pool is not None:
            return
        if not self._dsn:
            logger.warning("DATABASE_URL is not configured, pool not created")
            return

        async with self._init_lock:
            if self._pool is not None:
                return
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                ssl=self._ssl,
                min_size=0,
                max_size=self._pool_size,
                max_inactive_connection_lifetime=self._idle_timeout,
                timeout=self._connect_timeout,
                command_timeout=self._command_timeout,
            )
        logger.info(
            "Connection pool created",
            extra={
                "target": self._target_name,
                "max_size": self._pool_size,
                "idle_timeout_seconds": self._idle_timeout,
                "connect_timeout_seconds": self._connect_timeout,
            },
        )

    async def acquire(self) -> AcquiredConnection:
        self._require_dsn()
        if not self.is_initialized:
            # Startup creation failed; retry once per cycle.
            await self.initialize()
        if self._pool is None:
            raise InfraUnavailableError(
                "Connection pool is not initialized",
                context=self._context("acquire"),
            )

        self._waiting += 1
        try:
            connection = await self._pool.acquire(timeout=self._connect_timeout)
        except TimeoutError as e:
            raise InfraTimeoutError(
                f"Pool checkout exceeded {self._connect_timeout}s timeout",
                context=self._context("pool_checkout"),
                timeout_seconds=self._connect_timeout,
            ) from e
        finally:
            self._waiting -= 1

        snapshot = ModelPoolSnapshot(
            total=self._pool.get_size(),
            idle=self._pool.get_idle_size(),
            waiting=self._waiting,
        )
        return AcquiredConnection(connection=connection, pool_snapshot=snapshot)

    async def release(self, acquired: AcquiredConnection) -> None:
        if self._pool is None:
            return
        await self._pool.release(acquired.connection, timeout=self._connect_timeout)

    async def discard(self, acquired: AcquiredConnection) -> None:
        if self._pool is None:
            return
        try:
            await self._pool.release(
                acquired.connection, timeout=self._connect_timeout
            )
        except Exception as e:
            logger.warning(
                "Pool release failed after cycle error: %s",
                sanitize_error_message(e),
            )

    async def close(self) -> None:
        """Close the shared pool, terminating it if graceful close stalls."""
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        try:
            await asyncio.wait_for(pool.close(), timeout=self._connect_timeout)
        except TimeoutError:
            logger.warning("Pool close timed out, terminating connections")
            pool.terminate()


def build_acquire_strategy(config: ModelBenchmarkConfig) -> ProtocolAcquireStrategy:
    """Create the strategy selected by ``config.mode``."""
    if config.mode == EnumAcquireMode.POOL:
        return PoolAcquireStrategy(
            config.database_url,
            pool_size=config.pool_size,
            idle_timeout=config.idle_timeout_seconds,
            ssl_mode=config.ssl_mode,
            connect_timeout=config.connect_timeout_seconds,
            command_timeout=config.command_timeout_seconds,
        )
    return ClientAcquireStrategy(
        config.database_url,
        ssl_mode=config.ssl_mode,
        connect_timeout=config.connect_timeout_seconds,
        command_timeout=config.command_timeout_seconds,
    )


__all__: list[str] = [
    "AcquiredConnection",
    "ClientAcquireStrategy",
    "PoolAcquireStrategy",
    "ProtocolAcquireStrategy",
    "build_acquire_strategy",
]
