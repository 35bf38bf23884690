# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Rolling statistics over a SampleBuffer snapshot.

Summaries are never cached: the buffer mutates continuously, so every query
recomputes from a fresh snapshot.

Percentiles use the nearest-rank method without interpolation::

    sorted ascending, index = ceil(p / 100 * n) - 1, clamped to >= 0

For ``[1..10]`` this yields p50 = 5, p95 = 10, p99 = 10.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from pglatency.enums import EnumAcquireMode
from pglatency.models import (
    ModelBenchmarkConfig,
    ModelFailure,
    ModelLatencyStats,
    ModelPhaseStats,
    ModelSample,
    ModelStatsSummary,
)

_PRECISION = 2


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of ``values``; 0.0 for an empty input."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil((p / 100) * len(ordered)) - 1
    return ordered[max(0, index)]


def compute_phase_stats(values: Sequence[float]) -> ModelPhaseStats | None:
    """Reduce one phase's values, or return None when there are none."""
    if not values:
        return None
    return ModelPhaseStats(
        min=round(min(values), _PRECISION),
        max=round(max(values), _PRECISION),
        avg=round(sum(values) / len(values), _PRECISION),
        p50=round(percentile(values, 50), _PRECISION),
        p95=round(percentile(values, 95), _PRECISION),
        p99=round(percentile(values, 99), _PRECISION),
    )


def format_uptime(seconds: float) -> str:
    """Render elapsed seconds as ``"<h>h <m>m <s>s"``."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"


def failure_rate(failed: int, total: int) -> float:
    """Failure percentage rounded to 2 places; 0.0 when ``total`` is 0."""
    if total == 0:
        return 0.0
    return round(failed / total * 100, _PRECISION)


class StatsAggregator:
    """Builds a ModelStatsSummary from a buffer snapshot.

    Holds only process-lifetime constants (identity, mode, start instant);
    all per-query state comes from the snapshot passed to ``summarize``.
    """

    def __init__(
        self,
        app_identity: str,
        mode: EnumAcquireMode,
        pool_size: int | None = None,
        start_time: datetime | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._app_identity = app_identity
        self._mode = mode
        self._pool_size = pool_size if mode == EnumAcquireMode.POOL else None
        self._start_time = start_time or datetime.now(UTC)
        self._monotonic = monotonic
        self._started_at = monotonic()

    @classmethod
    def from_config(cls, config: ModelBenchmarkConfig) -> StatsAggregator:
        return cls(
            app_identity=config.app_identity,
            mode=config.mode,
            pool_size=config.pool_size,
        )

    @property
    def app_identity(self) -> str:
        return self._app_identity

    @property
    def mode(self) -> EnumAcquireMode:
        return self._mode

    @property
    def start_time(self) -> datetime:
        return self._start_time

    def uptime_seconds(self) -> float:
        return max(0.0, self._monotonic() - self._started_at)

    def uptime(self) -> str:
        return format_uptime(self.uptime_seconds())

    def summarize(
        self, snapshot: Iterable[ModelSample | ModelFailure]
    ) -> ModelStatsSummary:
        """Compute counts, failure rate and per-phase distributions."""
        measurements = tuple(snapshot)
        samples = [m for m in measurements if isinstance(m, ModelSample)]
        failed = len(measurements) - len(samples)

        latency: ModelLatencyStats | None = None
        if samples:
            latency = ModelLatencyStats(
                acquire=compute_phase_stats([s.acquire_latency_ms for s in samples]),
                ping=compute_phase_stats([s.ping_latency_ms for s in samples]),
                bulk_query=compute_phase_stats(
                    [s.bulk_query_latency_ms for s in samples]
                ),
                avg_round_trip=compute_phase_stats(
                    [s.avg_round_trip_ms for s in samples]
                ),
                query=compute_phase_stats([s.query_latency_ms for s in samples]),
                total=compute_phase_stats([s.total_latency_ms for s in samples]),
            )

        uptime_seconds = self.uptime_seconds()
        return ModelStatsSummary(
            app_identity=self._app_identity,
            connection_mode=self._mode,
            use_pool=self._mode == EnumAcquireMode.POOL,
            pool_size=self._pool_size,
            total_measurements=len(measurements),
            successful_measurements=len(samples),
            failed_measurements=failed,
            failure_rate=failure_rate(failed, len(measurements)),
            row_count_mismatches=sum(
                1 for s in samples if not s.bulk_query_row_count_matches
            ),
            latency=latency,
            uptime=format_uptime(uptime_seconds),
            uptime_seconds=round(uptime_seconds, _PRECISION),
            start_time=self._start_time,
        )


__all__: list[str] = [
    "StatsAggregator",
    "compute_phase_stats",
    "failure_rate",
    "format_uptime",
    "percentile",
]
