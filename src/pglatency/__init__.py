# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""PostgreSQL latency measurement harness.

A long-running service that periodically executes a fixed sequence of
database operations against a configured PostgreSQL endpoint, records a
per-phase timing breakdown for every cycle, and exposes rolling statistics
over HTTP.

Key Components:
    - PostgresProber: Runs one timed measurement cycle (acquire, ping, bulk
      query, round trips, release) and returns a Sample or a Failure
    - SampleBuffer: Bounded FIFO history of measurements
    - StatsAggregator: Nearest-rank percentile summaries over a snapshot
    - ServiceBenchmarkScheduler: Fixed-rate driver feeding the buffer
    - MetricsServer: aiohttp read-only route layer
"""

__all__: list[str] = []
