# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Measurement engine: timer, acquisition strategies, prober, buffer, stats."""

from pglatency.engine.acquire_strategy import (
    AcquiredConnection,
    ClientAcquireStrategy,
    PoolAcquireStrategy,
    ProtocolAcquireStrategy,
    build_acquire_strategy,
)
from pglatency.engine.phase_timer import PhaseTimer
from pglatency.engine.prober import PostgresProber
from pglatency.engine.sample_buffer import SampleBuffer
from pglatency.engine.stats_aggregator import (
    StatsAggregator,
    compute_phase_stats,
    format_uptime,
    percentile,
)

__all__: list[str] = [
    "AcquiredConnection",
    "ClientAcquireStrategy",
    "PhaseTimer",
    "PoolAcquireStrategy",
    "PostgresProber",
    "ProtocolAcquireStrategy",
    "SampleBuffer",
    "StatsAggregator",
    "build_acquire_strategy",
    "compute_phase_stats",
    "format_uptime",
    "percentile",
]
