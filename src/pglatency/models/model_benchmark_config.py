# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Benchmark Configuration Model.

Read once at process startup and immutable for the lifetime of the process.

Environment Variables:
    PORT: HTTP listen port (default: 3000)
    DATABASE_URL: PostgreSQL DSN (default: unset, every cycle fails)
    APP_TYPE: App identity label used in output and logs (default: UNKNOWN)
    CONNECTION_MODE: ``client`` or ``pool`` (default: client)
    USE_POOL: ``true`` selects pool mode when CONNECTION_MODE is unset
    POOL_SIZE: Maximum pool size, pool mode only (default: 10)

Everything else (interval, buffer capacity, query shape, timeouts, SSL mode)
is a fixed constant exposed as a model default.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pglatency.enums import EnumAcquireMode, EnumInfraTransportType
from pglatency.errors import ModelInfraErrorContext, ProtocolConfigurationError
from pglatency.utils.util_dsn import SSL_MODES

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 3000
DEFAULT_APP_IDENTITY = "UNKNOWN"
DEFAULT_POOL_SIZE = 10
DEFAULT_INTERVAL_SECONDS = 45.0
DEFAULT_BUFFER_CAPACITY = 400
DEFAULT_BULK_ROW_COUNT = 1000
DEFAULT_ROUND_TRIP_COUNT = 10

MIN_PORT = 1
MAX_PORT = 65535

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class ModelBenchmarkConfig(BaseModel):
    """Startup configuration for the latency harness."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    port: int = Field(default=DEFAULT_HTTP_PORT, ge=MIN_PORT, le=MAX_PORT)
    host: str = "0.0.0.0"  # noqa: S104 - Required for container networking
    database_url: str | None = None
    app_identity: str = Field(default=DEFAULT_APP_IDENTITY, min_length=1)
    mode: EnumAcquireMode = EnumAcquireMode.CLIENT
    pool_size: int = Field(default=DEFAULT_POOL_SIZE, ge=1)

    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, gt=0.0)
    buffer_capacity: int = Field(default=DEFAULT_BUFFER_CAPACITY, ge=1)
    bulk_row_count: int = Field(default=DEFAULT_BULK_ROW_COUNT, ge=1)
    round_trip_count: int = Field(default=DEFAULT_ROUND_TRIP_COUNT, ge=1)

    connect_timeout_seconds: float = Field(default=5.0, gt=0.0)
    idle_timeout_seconds: float = Field(default=30.0, gt=0.0)
    command_timeout_seconds: float = Field(default=30.0, gt=0.0)
    ssl_mode: str = "require"

    @field_validator("ssl_mode")
    @classmethod
    def _validate_ssl_mode(cls, value: str) -> str:
        if value not in SSL_MODES:
            raise ValueError(
                f"ssl_mode must be one of {', '.join(sorted(SSL_MODES))}"
            )
        return value

    @property
    def use_pool(self) -> bool:
        """Return True when cycles check connections out of a shared pool."""
        return self.mode == EnumAcquireMode.POOL

    @property
    def database_configured(self) -> bool:
        """Return True when a DSN was supplied."""
        return bool(self.database_url)

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None
    ) -> ModelBenchmarkConfig:
        """Create configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (tests).

        Raises:
            ProtocolConfigurationError: If CONNECTION_MODE or POOL_SIZE is invalid.
        """
        env = os.environ if environ is None else environ
        context = ModelInfraErrorContext.with_correlation(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="load_config",
            target_name="environment",
        )

        return cls(
            port=_parse_port(env.get("PORT")),
            database_url=env.get("DATABASE_URL") or None,
            app_identity=env.get("APP_TYPE") or DEFAULT_APP_IDENTITY,
            mode=_parse_mode(env.get("CONNECTION_MODE"), env.get("USE_POOL"), context),
            pool_size=_parse_pool_size(env.get("POOL_SIZE"), context),
        )


def _parse_port(raw: str | None) -> int:
    """Parse PORT, falling back to the default with a warning when invalid."""
    if raw is None or raw == "":
        return DEFAULT_HTTP_PORT
    try:
        port = int(raw)
    except ValueError:
        logger.warning(
            "Invalid PORT value '%s', using default %d", raw, DEFAULT_HTTP_PORT
        )
        return DEFAULT_HTTP_PORT
    if not MIN_PORT <= port <= MAX_PORT:
        logger.warning(
            "PORT %d outside valid range %d-%d, using default %d",
            port,
            MIN_PORT,
            MAX_PORT,
            DEFAULT_HTTP_PORT,
        )
        return DEFAULT_HTTP_PORT
    return port


def _parse_mode(
    connection_mode: str | None,
    use_pool: str | None,
    context: ModelInfraErrorContext,
) -> EnumAcquireMode:
    if connection_mode:
        try:
            return EnumAcquireMode(connection_mode.strip().lower())
        except ValueError as e:
            raise ProtocolConfigurationError(
                "CONNECTION_MODE must be 'client' or 'pool'",
                context=context,
                parameter="CONNECTION_MODE",
                value=connection_mode,
            ) from e
    if use_pool is not None and use_pool.strip().lower() in _TRUTHY:
        return EnumAcquireMode.POOL
    return EnumAcquireMode.CLIENT


def _parse_pool_size(raw: str | None, context: ModelInfraErrorContext) -> int:
    if raw is None or raw == "":
        return DEFAULT_POOL_SIZE
    try:
        size = int(raw)
    except ValueError as e:
        raise ProtocolConfigurationError(
            "POOL_SIZE must be a positive integer",
            context=context,
            parameter="POOL_SIZE",
            value=raw,
        ) from e
    if size < 1:
        raise ProtocolConfigurationError(
            "POOL_SIZE must be a positive integer",
            context=context,
            parameter="POOL_SIZE",
            value=raw,
        )
    return size


__all__ = [
    "DEFAULT_APP_IDENTITY",
    "DEFAULT_BUFFER_CAPACITY",
    "DEFAULT_HTTP_PORT",
    "DEFAULT_INTERVAL_SECONDS",
    "DEFAULT_POOL_SIZE",
    "ModelBenchmarkConfig",
]
