# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""HTTP Metrics Server.

Read-only aiohttp route layer over the SampleBuffer and StatsAggregator.
Handlers only ever take snapshots; they never drive timing and never block
on an in-flight measurement cycle.

The server exposes:
    - GET /health: identity, uptime and current buffer length
    - GET /metrics: rolling summary plus the most recent measurement
    - GET /metrics/summary: the same summary as plain text
    - GET /metrics/history: every retained measurement, oldest first
    - GET /metrics/failures: only the failed measurements
    - GET /test-outbound: outbound reachability diagnostic

Example:
    >>> server = MetricsServer(buffer=buffer, aggregator=aggregator, port=3000)
    >>> await server.start()
    >>> # curl http://localhost:3000/metrics
    >>> await server.stop()
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from aiohttp import web

from pglatency.enums import EnumInfraTransportType
from pglatency.errors import ModelInfraErrorContext, RuntimeHostError
from pglatency.models import ModelFailure, ModelSample
from pglatency.runtime.summary_renderer import render_summary_text
from pglatency.utils.correlation import generate_correlation_id
from pglatency.utils.util_error_sanitization import sanitize_error_string

if TYPE_CHECKING:
    from pglatency.diagnostics.outbound_probe import OutboundProbe
    from pglatency.engine.sample_buffer import SampleBuffer
    from pglatency.engine.stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 3000
DEFAULT_HTTP_HOST = "0.0.0.0"  # noqa: S104 - Required for container networking

ENDPOINTS = (
    "/health",
    "/metrics",
    "/metrics/summary",
    "/metrics/history",
    "/metrics/failures",
    "/test-outbound",
)


def _json_response(body: object, status: int = 200) -> web.Response:
    return web.Response(
        text=json.dumps(body),
        status=status,
        content_type="application/json",
    )


def _dump(measurement: ModelSample | ModelFailure | None) -> dict[str, object] | None:
    if measurement is None:
        return None
    return measurement.model_dump(mode="json")


class MetricsServer:
    """aiohttp server exposing rolling latency statistics.

    Attributes:
        port: Port to listen on
        host: Host to bind to
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        aggregator: StatsAggregator,
        *,
        outbound_probe: OutboundProbe | None = None,
        port: int = DEFAULT_HTTP_PORT,
        host: str = DEFAULT_HTTP_HOST,
        bulk_row_count: int = 1000,
        round_trip_count: int = 10,
    ) -> None:
        self._buffer = buffer
        self._aggregator = aggregator
        self._outbound_probe = outbound_probe
        self._port = port
        self._host = host
        self._bulk_row_count = bulk_row_count
        self._round_trip_count = round_trip_count

        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def port(self) -> int:
        return self._port

    def build_app(self) -> web.Application:
        """Create the aiohttp application with every route registered."""
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        app.router.add_get("/metrics/summary", self._handle_summary)
        app.router.add_get("/metrics/history", self._handle_history)
        app.router.add_get("/metrics/failures", self._handle_failures)
        app.router.add_get("/test-outbound", self._handle_test_outbound)
        return app

    async def start(self) -> None:
        """Start listening.

        Idempotent: calling ``start()`` on a running server has no effect.

        Raises:
            RuntimeHostError: If the port cannot be bound or startup fails.
        """
        if self._is_running:
            logger.debug("MetricsServer already running, skipping start")
            return

        correlation_id = generate_correlation_id()
        context = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.HTTP,
            operation="start_metrics_server",
            target_name=f"{self._host}:{self._port}",
            correlation_id=correlation_id,
        )

        try:
            self._app = self.build_app()
            self._runner = web.AppRunner(self._app)
            await self._runner.setup()
            self._site = web.TCPSite(self._runner, self._host, self._port)
            await self._site.start()
            self._is_running = True

            logger.info(
                "MetricsServer started on %s:%d (correlation_id=%s)",
                self._host,
                self._port,
                correlation_id,
                extra={"endpoints": list(ENDPOINTS)},
            )

        except OSError as e:
            error_msg = (
                f"Failed to start metrics server on {self._host}:{self._port}: {e}"
            )
            logger.exception(
                "%s (correlation_id=%s)",
                error_msg,
                correlation_id,
                extra={"error_type": type(e).__name__, "errno": e.errno},
            )
            raise RuntimeHostError(error_msg, context=context) from e

        except Exception as e:
            error_msg = f"Unexpected error starting metrics server: {e}"
            logger.exception(
                "%s (correlation_id=%s)",
                error_msg,
                correlation_id,
                extra={"error_type": type(e).__name__},
            )
            raise RuntimeHostError(error_msg, context=context) from e

    async def stop(self) -> None:
        """Stop the server and release its socket. Never raises."""
        if not self._is_running:
            logger.debug("MetricsServer already stopped, skipping")
            return

        if self._site is not None:
            try:
                await self._site.stop()
            except Exception as e:
                logger.warning(
                    "Error stopping TCPSite during shutdown",
                    extra={"error_type": type(e).__name__, "error": str(e)},
                )
            self._site = None

        if self._runner is not None:
            try:
                await self._runner.cleanup()
            except Exception as e:
                logger.warning(
                    "Error cleaning up AppRunner during shutdown",
                    extra={"error_type": type(e).__name__, "error": str(e)},
                )
            self._runner = None

        self._app = None
        self._is_running = False
        logger.info("MetricsServer stopped")

    def _error_response(self, operation: str, error: Exception) -> web.Response:
        correlation_id = generate_correlation_id()
        logger.exception(
            "%s handler failed (correlation_id=%s)",
            operation,
            correlation_id,
            extra={"error_type": type(error).__name__},
        )
        return _json_response(
            {
                "error": sanitize_error_string(str(error)),
                "error_type": type(error).__name__,
                "correlation_id": str(correlation_id),
            },
            status=500,
        )

    async def _handle_health(self, request: web.Request) -> web.Response:
        try:
            return _json_response(
                {
                    "status": "healthy",
                    "app_identity": self._aggregator.app_identity,
                    "uptime": self._aggregator.uptime(),
                    "measurements": len(self._buffer),
                }
            )
        except Exception as e:
            return self._error_response("health", e)

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        try:
            snapshot = self._buffer.snapshot()
            summary = self._aggregator.summarize(snapshot)
            body = summary.model_dump(mode="json")
            body["last_measurement"] = _dump(snapshot[-1] if snapshot else None)
            return _json_response(body)
        except Exception as e:
            return self._error_response("metrics", e)

    async def _handle_summary(self, request: web.Request) -> web.Response:
        try:
            summary = self._aggregator.summarize(self._buffer.snapshot())
            text = render_summary_text(
                summary,
                bulk_row_count=self._bulk_row_count,
                round_trip_count=self._round_trip_count,
            )
            return web.Response(text=text, content_type="text/plain")
        except Exception as e:
            return self._error_response("metrics_summary", e)

    async def _handle_history(self, request: web.Request) -> web.Response:
        try:
            snapshot = self._buffer.snapshot()
            return _json_response(
                {
                    "app_identity": self._aggregator.app_identity,
                    "start_time": self._aggregator.start_time.isoformat(),
                    "total_results": len(snapshot),
                    "results": [_dump(m) for m in snapshot],
                }
            )
        except Exception as e:
            return self._error_response("metrics_history", e)

    async def _handle_failures(self, request: web.Request) -> web.Response:
        try:
            failures = self._buffer.failures()
            return _json_response(
                {
                    "app_identity": self._aggregator.app_identity,
                    "total_failures": len(failures),
                    "failures": [_dump(f) for f in failures],
                }
            )
        except Exception as e:
            return self._error_response("metrics_failures", e)

    async def _handle_test_outbound(self, request: web.Request) -> web.Response:
        if self._outbound_probe is None:
            return _json_response(
                {"error": "Outbound diagnostic is not configured"}, status=503
            )
        try:
            report = await self._outbound_probe.run()
            return _json_response(report.model_dump(mode="json"))
        except Exception as e:
            return self._error_response("test_outbound", e)


__all__: list[str] = [
    "DEFAULT_HTTP_HOST",
    "DEFAULT_HTTP_PORT",
    "ENDPOINTS",
    "MetricsServer",
]
