# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for pglatency tests.

No fixture here touches a real database or the network: asyncpg
connections and acquisition strategies are replaced with AsyncMock objects
that return canned results.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from pglatency.engine.acquire_strategy import AcquiredConnection
from pglatency.enums import EnumAcquireMode, EnumProbePhase
from pglatency.models import ModelFailure, ModelPoolSnapshot, ModelSample

FIXED_NOW = datetime(2025, 1, 15, 10, 30, 45, tzinfo=UTC)


class StepClock:
    """Deterministic nanosecond clock advancing a fixed step per reading."""

    def __init__(self, step_ms: float = 1.0, start_ns: int = 0) -> None:
        self._step_ns = int(step_ms * 1_000_000)
        self._now = start_ns

    def __call__(self) -> int:
        self._now += self._step_ns
        return self._now


@pytest.fixture
def step_clock() -> StepClock:
    """Clock where every consecutive checkpoint is exactly 1 ms apart."""
    return StepClock(step_ms=1.0)


@pytest.fixture
def sample_factory() -> Callable[..., ModelSample]:
    """Factory building a valid client-mode Sample with a given total."""

    def _make(
        total: float = 10.0,
        *,
        mode: EnumAcquireMode = EnumAcquireMode.CLIENT,
        acquire: float = 1.0,
        ping: float = 1.0,
        bulk: float = 1.0,
        round_trips: tuple[float, ...] = (1.0,) * 10,
        release: float = 0.5,
        row_count: int = 1000,
        pool_snapshot: ModelPoolSnapshot | None = None,
    ) -> ModelSample:
        return ModelSample(
            timestamp=FIXED_NOW,
            mode=mode,
            acquire_latency_ms=acquire,
            ping_latency_ms=ping,
            bulk_query_latency_ms=bulk,
            bulk_query_row_count=row_count,
            bulk_query_expected_rows=1000,
            round_trip_latencies_ms=round_trips,
            release_latency_ms=release,
            total_latency_ms=total,
            pool_snapshot=pool_snapshot,
        )

    return _make


@pytest.fixture
def failure_factory() -> Callable[..., ModelFailure]:
    """Factory building a Failure at a given phase."""

    def _make(
        phase: EnumProbePhase = EnumProbePhase.ACQUIRE,
        description: str = "acquire failed: ConnectionRefusedError",
        *,
        mode: EnumAcquireMode = EnumAcquireMode.CLIENT,
    ) -> ModelFailure:
        return ModelFailure(
            timestamp=FIXED_NOW,
            mode=mode,
            phase=phase,
            error_description=description,
        )

    return _make


@pytest.fixture
def mock_connection() -> MagicMock:
    """asyncpg-like connection answering every probe query successfully."""
    connection = MagicMock()
    connection.fetchval = AsyncMock(return_value=1)
    connection.fetch = AsyncMock(return_value=[{"id": i} for i in range(1, 1001)])
    connection.close = AsyncMock()
    connection.terminate = MagicMock()
    return connection


@pytest.fixture
def mock_strategy(mock_connection: MagicMock) -> Iterator[MagicMock]:
    """Client-mode acquisition strategy handing out ``mock_connection``."""
    strategy = MagicMock()
    strategy.mode = EnumAcquireMode.CLIENT
    strategy.pool_size = None
    strategy.initialize = AsyncMock()
    strategy.acquire = AsyncMock(
        return_value=AcquiredConnection(connection=mock_connection)
    )
    strategy.release = AsyncMock()
    strategy.discard = AsyncMock()
    strategy.close = AsyncMock()
    yield strategy
