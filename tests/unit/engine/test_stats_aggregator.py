# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the statistics aggregator.

Percentiles use nearest rank: sorted ascending, index = ceil(p/100 * n) - 1,
clamped to >= 0, no interpolation.
"""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from pglatency.engine.sample_buffer import SampleBuffer
from pglatency.engine.stats_aggregator import (
    StatsAggregator,
    compute_phase_stats,
    failure_rate,
    format_uptime,
    percentile,
)
from pglatency.enums import EnumAcquireMode
from pglatency.models import ModelBenchmarkConfig

ONE_TO_TEN = [float(v) for v in range(1, 11)]


def _aggregator(**kwargs) -> StatsAggregator:
    return StatsAggregator(
        app_identity=kwargs.pop("app_identity", "VPC"),
        mode=kwargs.pop("mode", EnumAcquireMode.CLIENT),
        **kwargs,
    )


class TestPercentile:
    """Tests for the nearest-rank percentile."""

    def test_p50_of_one_to_ten(self) -> None:
        assert percentile(ONE_TO_TEN, 50) == 5.0

    def test_p95_of_one_to_ten(self) -> None:
        # ceil(0.95 * 10) - 1 = ceil(9.5) - 1 = 9 -> tenth value
        assert percentile(ONE_TO_TEN, 95) == 10.0

    def test_p99_of_one_to_ten(self) -> None:
        assert percentile(ONE_TO_TEN, 99) == 10.0

    def test_unsorted_input(self) -> None:
        assert percentile([9.0, 1.0, 5.0, 3.0, 7.0], 50) == 5.0

    def test_low_percentile_clamps_to_first(self) -> None:
        assert percentile([4.0, 2.0, 8.0], 0) == 2.0

    def test_single_value(self) -> None:
        assert percentile([3.5], 99) == 3.5

    def test_empty_input(self) -> None:
        assert percentile([], 50) == 0.0


class TestComputePhaseStats:
    """Tests for per-phase reductions."""

    def test_empty_returns_none(self) -> None:
        assert compute_phase_stats([]) is None

    def test_values_rounded_to_two_places(self) -> None:
        stats = compute_phase_stats([1.111, 2.222, 3.333])

        assert stats is not None
        assert stats.min == 1.11
        assert stats.max == 3.33
        assert stats.avg == 2.22
        assert stats.p50 == 2.22

    def test_one_to_ten(self) -> None:
        stats = compute_phase_stats(ONE_TO_TEN)

        assert stats is not None
        assert (stats.min, stats.max, stats.avg) == (1.0, 10.0, 5.5)
        assert (stats.p50, stats.p95, stats.p99) == (5.0, 10.0, 10.0)


class TestHelpers:
    """Tests for uptime formatting and failure rate."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "0h 0m 0s"), (59.9, "0h 0m 59s"), (3725, "1h 2m 5s"), (90061, "25h 1m 1s")],
    )
    def test_format_uptime(self, seconds: float, expected: str) -> None:
        assert format_uptime(seconds) == expected

    def test_failure_rate_zero_total(self) -> None:
        assert failure_rate(0, 0) == 0.0

    def test_failure_rate_rounded(self) -> None:
        assert failure_rate(1, 3) == 33.33


class TestStatsAggregatorSummarize:
    """Tests for ModelStatsSummary construction."""

    def test_empty_snapshot(self) -> None:
        summary = _aggregator().summarize(())

        assert summary.total_measurements == 0
        assert summary.failure_rate == 0.0
        assert summary.latency is None

    def test_only_failures(self, failure_factory) -> None:
        summary = _aggregator().summarize([failure_factory(), failure_factory()])

        assert summary.latency is None
        assert summary.failed_measurements == 2
        assert summary.failure_rate == 100.0

    def test_only_samples(self, sample_factory) -> None:
        summary = _aggregator().summarize(
            [sample_factory(total=t) for t in (10.0, 20.0, 30.0)]
        )

        assert summary.failure_rate == 0.0
        assert summary.successful_measurements == 3
        assert summary.latency is not None
        assert summary.latency.total is not None
        assert summary.latency.total.avg == 20.0

    def test_capacity_three_scenario(self, sample_factory, failure_factory) -> None:
        buffer = SampleBuffer(capacity=3)
        for measurement in (
            sample_factory(total=10.0),
            sample_factory(total=20.0),
            failure_factory(),
            sample_factory(total=40.0),
        ):
            buffer.append(measurement)

        summary = _aggregator().summarize(buffer.snapshot())

        assert summary.total_measurements == 3
        assert summary.failed_measurements == 1
        assert summary.failure_rate == 33.33
        assert summary.latency is not None
        assert summary.latency.total is not None
        assert summary.latency.total.min == 20.0
        assert summary.latency.total.max == 40.0

    def test_avg_round_trip_phase_uses_per_sample_mean(self, sample_factory) -> None:
        sample = sample_factory(round_trips=(1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0))

        summary = _aggregator().summarize([sample])

        assert summary.latency is not None
        assert summary.latency.avg_round_trip is not None
        assert summary.latency.avg_round_trip.avg == 5.5

    def test_counts_row_count_mismatches(self, sample_factory) -> None:
        summary = _aggregator().summarize(
            [sample_factory(row_count=999), sample_factory()]
        )

        assert summary.row_count_mismatches == 1

    def test_identity_and_mode_fields(self) -> None:
        start = datetime(2025, 1, 1, tzinfo=UTC)
        summary = _aggregator(
            app_identity="PUBLIC",
            mode=EnumAcquireMode.POOL,
            pool_size=5,
            start_time=start,
        ).summarize(())

        assert summary.app_identity == "PUBLIC"
        assert summary.connection_mode == EnumAcquireMode.POOL
        assert summary.use_pool is True
        assert summary.pool_size == 5
        assert summary.start_time == start

    def test_pool_size_hidden_in_client_mode(self) -> None:
        summary = _aggregator(pool_size=10).summarize(())

        assert summary.pool_size is None
        assert summary.use_pool is False


class TestStatsAggregatorUptime:
    """Tests for uptime tracking."""

    def test_uptime_from_monotonic_clock(self) -> None:
        monotonic = MagicMock(side_effect=[100.0, 3825.0])
        aggregator = _aggregator(monotonic=monotonic)

        assert aggregator.uptime() == "1h 2m 5s"

    def test_from_config(self) -> None:
        config = ModelBenchmarkConfig(
            app_identity="VPC", mode=EnumAcquireMode.POOL, pool_size=7
        )

        aggregator = StatsAggregator.from_config(config)

        assert aggregator.app_identity == "VPC"
        assert aggregator.mode == EnumAcquireMode.POOL
        assert aggregator.summarize(()).pool_size == 7
