# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Latency Harness Kernel - bootstrap and lifecycle for the long-running process.

The kernel is responsible for:
    1. Loading configuration from the environment (once, immutable)
    2. Building the acquisition strategy (and the shared pool in pool mode)
    3. Wiring prober, buffer, aggregator and scheduler
    4. Starting the HTTP metrics server
    5. Setting up graceful shutdown signal handlers
    6. Running until shutdown is requested

Usage:
    python -m pglatency.runtime.kernel

    # Or via the installed entrypoint
    pglatency-runtime

Environment Variables:
    PORT: HTTP listen port (default: 3000)
    DATABASE_URL: PostgreSQL DSN
    APP_TYPE: App identity label (default: UNKNOWN)
    CONNECTION_MODE: client or pool (default: client)
    POOL_SIZE: Pool size in pool mode (default: 10)
    LOG_LEVEL: Logging level (default: INFO)
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version

from pglatency.diagnostics.outbound_probe import OutboundProbe
from pglatency.engine.acquire_strategy import (
    ProtocolAcquireStrategy,
    build_acquire_strategy,
)
from pglatency.engine.prober import PostgresProber
from pglatency.engine.sample_buffer import SampleBuffer
from pglatency.engine.stats_aggregator import StatsAggregator
from pglatency.errors import ProtocolConfigurationError, RuntimeHostError
from pglatency.models import ModelBenchmarkConfig
from pglatency.runtime.metrics_server import MetricsServer
from pglatency.services.service_benchmark_scheduler import ServiceBenchmarkScheduler
from pglatency.utils.correlation import generate_correlation_id
from pglatency.utils.util_dsn import mask_dsn, parse_host_port

logger = logging.getLogger(__name__)

try:
    KERNEL_VERSION = get_package_version("pglatency")
except PackageNotFoundError:
    KERNEL_VERSION = "unknown"

SHUTDOWN_GRACE_PERIOD_SECONDS = 10.0


@dataclass
class HarnessComponents:
    """Everything the process owns, wired from one configuration."""

    config: ModelBenchmarkConfig
    strategy: ProtocolAcquireStrategy
    buffer: SampleBuffer
    aggregator: StatsAggregator
    prober: PostgresProber
    scheduler: ServiceBenchmarkScheduler
    server: MetricsServer


def build_components(config: ModelBenchmarkConfig) -> HarnessComponents:
    """Wire the measurement engine and HTTP layer from ``config``.

    Nothing is started; the caller owns the lifecycle.
    """
    strategy = build_acquire_strategy(config)
    buffer = SampleBuffer(capacity=config.buffer_capacity)
    aggregator = StatsAggregator.from_config(config)
    prober = PostgresProber(
        strategy,
        app_identity=config.app_identity,
        bulk_row_count=config.bulk_row_count,
        round_trip_count=config.round_trip_count,
    )
    scheduler = ServiceBenchmarkScheduler(
        prober,
        buffer,
        interval_seconds=config.interval_seconds,
        app_identity=config.app_identity,
    )
    server = MetricsServer(
        buffer,
        aggregator,
        outbound_probe=OutboundProbe(parse_host_port(config.database_url)),
        port=config.port,
        host=config.host,
        bulk_row_count=config.bulk_row_count,
        round_trip_count=config.round_trip_count,
    )
    return HarnessComponents(
        config=config,
        strategy=strategy,
        buffer=buffer,
        aggregator=aggregator,
        prober=prober,
        scheduler=scheduler,
        server=server,
    )


def startup_banner(config: ModelBenchmarkConfig) -> str:
    """Render the multi-line startup banner (no credentials)."""
    lines = [
        "=" * 60,
        f"{config.app_identity} App - PostgreSQL Latency Benchmark v{KERNEL_VERSION}",
        "=" * 60,
        f"  Connection mode:   {config.mode.value}",
        f"  Use pool:          {config.use_pool}",
    ]
    if config.use_pool:
        lines.append(f"  Pool size:         {config.pool_size}")
    lines.extend(
        [
            f"  Database:          {mask_dsn(config.database_url)}",
            f"  SSL mode:          {config.ssl_mode}",
            f"  Interval:          {config.interval_seconds:.0f}s",
            f"  Buffer capacity:   {config.buffer_capacity}",
            f"  HTTP:              http://{config.host}:{config.port}",
            "=" * 60,
        ]
    )
    return "\n".join(lines)


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event
) -> None:
    def handle_shutdown(sig: signal.Signals) -> None:
        logger.info("Received %s, initiating graceful shutdown...", sig.name)
        shutdown_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_shutdown, sig)
    else:

        def windows_handler(signum: int, frame: object) -> None:
            sig = signal.Signals(signum)
            logger.info("Received %s, initiating graceful shutdown...", sig.name)
            loop.call_soon_threadsafe(shutdown_event.set)

        signal.signal(signal.SIGINT, windows_handler)


async def shutdown(components: HarnessComponents) -> None:
    """Stop scheduler, HTTP server and pool, in that order. Never raises."""
    try:
        await asyncio.wait_for(
            components.scheduler.stop(), timeout=SHUTDOWN_GRACE_PERIOD_SECONDS
        )
    except Exception as e:
        logger.warning(
            "Failed to stop scheduler: %s",
            e,
            extra={"error_type": type(e).__name__},
        )

    try:
        await components.server.stop()
    except Exception as e:
        logger.warning(
            "Failed to stop metrics server: %s",
            e,
            extra={"error_type": type(e).__name__},
        )

    try:
        await components.strategy.close()
    except Exception as e:
        logger.warning(
            "Failed to close connection strategy: %s",
            e,
            extra={"error_type": type(e).__name__},
        )


async def bootstrap(shutdown_event: asyncio.Event | None = None) -> int:
    """Bootstrap the harness and run until a shutdown signal arrives.

    Args:
        shutdown_event: Event that ends the run when set. Signal handlers
            are installed only when the kernel creates its own event.

    Returns:
        Exit code: 0 after a clean shutdown, 1 on configuration, startup or
        unexpected failure.
    """
    correlation_id = generate_correlation_id()
    components: HarnessComponents | None = None

    try:
        config = ModelBenchmarkConfig.from_environment()
        if not config.database_configured:
            logger.warning(
                "DATABASE_URL is not set; every benchmark cycle will fail "
                "(correlation_id=%s)",
                correlation_id,
            )

        components = build_components(config)
        logger.info("\n%s", startup_banner(config))

        start = time.time()
        try:
            await components.strategy.initialize()
        except Exception as e:
            # Pool creation is retried by the next cycle's acquire.
            logger.warning(
                "Connection strategy initialization failed: %s (correlation_id=%s)",
                e,
                correlation_id,
                extra={"error_type": type(e).__name__},
            )

        if shutdown_event is None:
            shutdown_event = asyncio.Event()
            _install_signal_handlers(asyncio.get_running_loop(), shutdown_event)

        await components.server.start()
        await components.scheduler.start()
        logger.info(
            "[%s] Benchmark harness started in %.3fs (correlation_id=%s)",
            config.app_identity,
            time.time() - start,
            correlation_id,
        )

        await shutdown_event.wait()
        logger.info("Shutdown requested (correlation_id=%s)", correlation_id)
        await shutdown(components)
        components = None
        return 0

    except ProtocolConfigurationError as e:
        logger.exception(
            "Configuration failed (correlation_id=%s)",
            e.correlation_id or correlation_id,
            extra=e.to_log_extra(),
        )
        return 1

    except RuntimeHostError as e:
        logger.exception(
            "Runtime host error (correlation_id=%s)",
            e.correlation_id or correlation_id,
            extra=e.to_log_extra(),
        )
        return 1

    except Exception as e:
        logger.exception(
            "Harness failed with unexpected error: %s (correlation_id=%s)",
            e,
            correlation_id,
            extra={"error_type": type(e).__name__},
        )
        return 1

    finally:
        if components is not None:
            await shutdown(components)


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL (default: INFO)."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if log_level not in valid_levels:
        print(
            f"Warning: Invalid LOG_LEVEL '{log_level}', using INFO. "
            f"Valid levels: {', '.join(sorted(valid_levels))}",
            file=sys.stderr,
        )
        log_level = "INFO"

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main() -> None:
    """Entry point for ``pglatency-runtime``."""
    configure_logging()
    logger.info("pglatency kernel v%s initializing...", KERNEL_VERSION)
    exit_code = asyncio.run(bootstrap())
    sys.exit(exit_code)


if __name__ == "__main__":
    main()


__all__: list[str] = [
    "HarnessComponents",
    "bootstrap",
    "build_components",
    "configure_logging",
    "main",
    "shutdown",
    "startup_banner",
]
