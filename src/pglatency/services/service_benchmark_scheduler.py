# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Benchmark Scheduler Service.

Drives the prober on a fixed period and feeds every Measurement into the
SampleBuffer. The scheduler is the buffer's only writer.

Timing:
    One cycle fires immediately on ``start()``, then one per interval
    (default 45 s), forever. Ticks are fixed-rate: the next tick is
    scheduled from the previous tick, not from the end of the previous
    cycle. Each cycle runs as its own task so a slow cycle never delays the
    next tick.

Overlap:
    Overlapping cycles are not prevented. If a tick fires while an earlier
    cycle is still in flight a warning is logged and the new cycle starts
    anyway; the pool (pool mode) or the connect timeout (client mode)
    bounds the damage.

Failure policy:
    No backoff and no circuit breaking. A Failure is appended like any
    Sample and the next tick fires on schedule.
"""

from __future__ import annotations

import asyncio
import logging

from pglatency.engine.prober import PostgresProber
from pglatency.engine.sample_buffer import SampleBuffer
from pglatency.models import ModelFailure, ModelSample

logger = logging.getLogger(__name__)


class ServiceBenchmarkScheduler:
    """Periodic driver for ``PostgresProber.probe()``.

    Example:
        >>> scheduler = ServiceBenchmarkScheduler(prober, buffer, interval_seconds=45)
        >>> await scheduler.start()
        >>> ...
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        prober: PostgresProber,
        buffer: SampleBuffer,
        *,
        interval_seconds: float = 45.0,
        app_identity: str = "UNKNOWN",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._prober = prober
        self._buffer = buffer
        self._interval = interval_seconds
        self._app_identity = app_identity
        self._running = False
        self._tick_task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[ModelSample | ModelFailure]] = set()
        self._cycles_started = 0
        self._cycles_completed = 0
        self._overlaps = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def cycles_started(self) -> int:
        return self._cycles_started

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    @property
    def overlap_count(self) -> int:
        """Ticks that fired while a previous cycle was still running."""
        return self._overlaps

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        """Start the tick loop. Idempotent."""
        if self._running:
            return
        self._running = True
        self._tick_task = asyncio.create_task(
            self._tick_loop(), name="benchmark-scheduler"
        )
        logger.info(
            "[%s] Benchmark scheduler started (interval %.0fs, mode %s)",
            self._app_identity,
            self._interval,
            self._prober.mode.value,
        )

    async def stop(self) -> None:
        """Stop ticking and cancel any in-flight cycle. Idempotent."""
        if not self._running:
            return
        self._running = False
        if self._tick_task is not None:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None

        pending = list(self._in_flight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._in_flight.clear()

        logger.info(
            "[%s] Benchmark scheduler stopped after %d cycles",
            self._app_identity,
            self._cycles_completed,
        )

    async def run_cycle(self) -> ModelSample | ModelFailure:
        """Run one prober cycle and append its Measurement to the buffer."""
        self._cycles_started += 1
        measurement = await self._prober.probe()
        self._buffer.append(measurement)
        self._cycles_completed += 1
        return measurement

    def _spawn_cycle(self) -> None:
        if self._in_flight:
            self._overlaps += 1
            logger.warning(
                "[%s] Previous benchmark cycle still running, starting another",
                self._app_identity,
                extra={"in_flight": len(self._in_flight)},
            )
        task = asyncio.create_task(self.run_cycle(), name="benchmark-cycle")
        self._in_flight.add(task)
        task.add_done_callback(self._on_cycle_done)

    def _on_cycle_done(self, task: asyncio.Task[ModelSample | ModelFailure]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "[%s] Benchmark cycle raised unexpectedly",
                self._app_identity,
                exc_info=error,
            )

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._running:
            try:
                self._spawn_cycle()
            except Exception:
                logger.exception("Unexpected error scheduling benchmark cycle")

            next_tick += self._interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind (e.g. event loop stall): resume from now
                # instead of firing a burst of catch-up ticks.
                next_tick = loop.time()
                delay = 0.0
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                break


__all__: list[str] = ["ServiceBenchmarkScheduler"]
