# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""PostgreSQL Latency Prober.

Executes exactly one measurement cycle and returns exactly one Measurement.
The cycle runs in a fixed order with a PhaseTimer checkpoint at every phase
boundary:

    1. acquire      connect or pool checkout
    2. ping         SELECT 1
    3. bulk_query   generate and return a fixed number of synthetic rows
    4. round_trip   N sequential parameterized SELECT $1::int
    5. release      close or return to pool

Error Handling:
    ``probe()`` never raises for database or network conditions. Any
    exception aborts the remaining phases, the connection (if one was
    acquired) is discarded best-effort, and a ModelFailure naming the phase
    is returned. Nothing is released after a failed acquire.

    A bulk query returning the wrong number of rows is not a failure: the
    sample records both counts and a warning is logged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from pglatency.engine.acquire_strategy import AcquiredConnection, ProtocolAcquireStrategy
from pglatency.engine.phase_timer import (
    CHECKPOINT_ACQUIRED,
    CHECKPOINT_BULK_DONE,
    CHECKPOINT_DONE,
    CHECKPOINT_PINGED,
    CHECKPOINT_START,
    PhaseTimer,
    round_trip_checkpoint,
)
from pglatency.enums import EnumAcquireMode, EnumProbePhase
from pglatency.models import ModelFailure, ModelPoolSnapshot, ModelSample
from pglatency.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)

PING_QUERY = "SELECT 1"

# Each row carries several hash-like strings and a timestamp so that the
# result set is large enough to expose network throughput differences.
BULK_QUERY = """
    SELECT
        gs.id,
        md5(random()::text) AS hash1,
        md5(random()::text) AS hash2,
        md5(random()::text) AS hash3,
        now() AS timestamp
    FROM generate_series(1, $1::int) AS gs(id)
"""

ROUND_TRIP_QUERY = "SELECT $1::int"


class PostgresProber:
    """Runs one timed probe cycle against PostgreSQL.

    Attributes:
        mode: Acquisition strategy mode (client or pool).
        bulk_row_count: Rows requested from the bulk query.
        round_trip_count: Sequential parameterized queries per cycle.
    """

    def __init__(
        self,
        strategy: ProtocolAcquireStrategy,
        *,
        app_identity: str = "UNKNOWN",
        bulk_row_count: int = 1000,
        round_trip_count: int = 10,
        clock: Callable[[], int] = time.perf_counter_ns,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the prober.

        Args:
            strategy: Connection acquisition strategy, fixed for the process.
            app_identity: Label included in log lines.
            bulk_row_count: Rows requested from the bulk query (>= 1).
            round_trip_count: Number of round-trip queries (>= 1).
            clock: Monotonic nanosecond clock for phase timing.
            now: Wall-clock source for measurement timestamps.
        """
        if bulk_row_count < 1:
            raise ValueError("bulk_row_count must be >= 1")
        if round_trip_count < 1:
            raise ValueError("round_trip_count must be >= 1")
        self._strategy = strategy
        self._app_identity = app_identity
        self._bulk_row_count = bulk_row_count
        self._round_trip_count = round_trip_count
        self._clock = clock
        self._now = now or (lambda: datetime.now(UTC))

    @property
    def mode(self) -> EnumAcquireMode:
        return self._strategy.mode

    @property
    def bulk_row_count(self) -> int:
        return self._bulk_row_count

    @property
    def round_trip_count(self) -> int:
        return self._round_trip_count

    async def probe(self) -> ModelSample | ModelFailure:
        """Execute one full cycle and return its Measurement."""
        timer = PhaseTimer(self._clock)
        timer.mark(CHECKPOINT_START)
        phase = EnumProbePhase.ACQUIRE
        acquired: AcquiredConnection | None = None

        try:
            acquired = await self._strategy.acquire()
            timer.mark(CHECKPOINT_ACQUIRED)
            pool_snapshot = acquired.pool_snapshot
            conn = acquired.connection

            phase = EnumProbePhase.PING
            await conn.fetchval(PING_QUERY)
            timer.mark(CHECKPOINT_PINGED)

            phase = EnumProbePhase.BULK_QUERY
            rows = await conn.fetch(BULK_QUERY, self._bulk_row_count)
            timer.mark(CHECKPOINT_BULK_DONE)

            phase = EnumProbePhase.ROUND_TRIP
            for index in range(self._round_trip_count):
                await conn.fetchval(ROUND_TRIP_QUERY, index)
                timer.mark(round_trip_checkpoint(index))

            phase = EnumProbePhase.RELEASE
            await self._strategy.release(acquired)
            acquired = None
            timer.mark(CHECKPOINT_DONE)

        except asyncio.CancelledError:
            if acquired is not None:
                await self._strategy.discard(acquired)
            raise

        except Exception as e:
            if acquired is not None:
                await self._strategy.discard(acquired)
            return self._failure(phase, e)

        return self._build_sample(timer, len(rows), pool_snapshot)

    def _build_sample(
        self,
        timer: PhaseTimer,
        row_count: int,
        pool_snapshot: ModelPoolSnapshot | None,
    ) -> ModelSample:
        round_trips: list[float] = []
        previous = CHECKPOINT_BULK_DONE
        for index in range(self._round_trip_count):
            checkpoint = round_trip_checkpoint(index)
            round_trips.append(timer.elapsed_ms(previous, checkpoint))
            previous = checkpoint

        sample = ModelSample(
            timestamp=self._now(),
            mode=self.mode,
            acquire_latency_ms=timer.elapsed_ms(CHECKPOINT_START, CHECKPOINT_ACQUIRED),
            ping_latency_ms=timer.elapsed_ms(CHECKPOINT_ACQUIRED, CHECKPOINT_PINGED),
            bulk_query_latency_ms=timer.elapsed_ms(
                CHECKPOINT_PINGED, CHECKPOINT_BULK_DONE
            ),
            bulk_query_row_count=row_count,
            bulk_query_expected_rows=self._bulk_row_count,
            round_trip_latencies_ms=tuple(round_trips),
            release_latency_ms=timer.elapsed_ms(previous, CHECKPOINT_DONE),
            total_latency_ms=timer.elapsed_ms(CHECKPOINT_START, CHECKPOINT_DONE),
            pool_snapshot=pool_snapshot,
        )

        if not sample.bulk_query_row_count_matches:
            logger.warning(
                "[%s] Bulk query returned %d rows, expected %d",
                self._app_identity,
                row_count,
                self._bulk_row_count,
            )

        logger.info(
            "[%s] Benchmark: acquire=%.2fms, ping=%.2fms, bulk=%.2fms (%d rows), "
            "%dx roundtrip=%.2fms (avg %.2fms), total=%.2fms",
            self._app_identity,
            sample.acquire_latency_ms,
            sample.ping_latency_ms,
            sample.bulk_query_latency_ms,
            sample.bulk_query_row_count,
            self._round_trip_count,
            sample.round_trip_total_ms,
            sample.avg_round_trip_ms,
            sample.total_latency_ms,
            extra={"mode": self.mode.value, "pool_snapshot": pool_snapshot},
        )
        return sample

    def _failure(self, phase: EnumProbePhase, error: Exception) -> ModelFailure:
        description = f"{phase.value} failed: {sanitize_error_message(error)}"
        logger.warning(
            "[%s] Benchmark FAILED: %s",
            self._app_identity,
            description,
            extra={
                "mode": self.mode.value,
                "phase": phase.value,
                "error_type": type(error).__name__,
            },
        )
        return ModelFailure(
            timestamp=self._now(),
            mode=self.mode,
            phase=phase,
            error_description=description,
        )


__all__: list[str] = [
    "BULK_QUERY",
    "PING_QUERY",
    "ROUND_TRIP_QUERY",
    "PostgresProber",
]
