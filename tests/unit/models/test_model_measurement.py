# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the Sample/Failure measurement models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pglatency.enums import EnumAcquireMode, EnumProbePhase
from pglatency.models import (
    MeasurementAdapter,
    ModelFailure,
    ModelPoolSnapshot,
    ModelSample,
)


class TestModelSample:
    """Tests for Sample invariants and derived fields."""

    def test_derived_fields(self, sample_factory) -> None:
        sample = sample_factory(
            ping=2.0, bulk=3.0, round_trips=(1.0, 2.0, 3.0, 4.0), release=0.5
        )

        assert sample.round_trip_total_ms == 10.0
        assert sample.avg_round_trip_ms == 2.5
        assert sample.query_latency_ms == 15.0
        assert sample.bulk_query_row_count_matches is True

    def test_pool_snapshot_rejected_in_client_mode(self, sample_factory) -> None:
        with pytest.raises(ValidationError, match="pool_snapshot"):
            sample_factory(pool_snapshot=ModelPoolSnapshot(total=1, idle=0, waiting=0))

    def test_pool_snapshot_allowed_in_pool_mode(self, sample_factory) -> None:
        snapshot = ModelPoolSnapshot(total=1, idle=0, waiting=0)

        sample = sample_factory(mode=EnumAcquireMode.POOL, pool_snapshot=snapshot)

        assert sample.pool_snapshot == snapshot

    def test_requires_at_least_one_round_trip(self, sample_factory) -> None:
        with pytest.raises(ValidationError):
            sample_factory(round_trips=())

    def test_negative_latency_rejected(self, sample_factory) -> None:
        with pytest.raises(ValidationError):
            sample_factory(acquire=-1.0)

    def test_immutable(self, sample_factory) -> None:
        sample = sample_factory()

        with pytest.raises(ValidationError):
            sample.total_latency_ms = 0.0  # type: ignore[misc]

    def test_json_dump_includes_derived_fields(self, sample_factory) -> None:
        dumped = sample_factory().model_dump(mode="json")

        assert dumped["kind"] == "sample"
        assert dumped["success"] is True
        assert dumped["mode"] == "client"
        assert "avg_round_trip_ms" in dumped
        assert dumped["pool_snapshot"] is None


class TestModelFailure:
    """Tests for Failure."""

    def test_carries_no_latency_fields(self, failure_factory) -> None:
        dumped = failure_factory().model_dump(mode="json")

        assert dumped["success"] is False
        assert dumped["phase"] == "acquire"
        assert not any(key.endswith("_ms") for key in dumped)

    def test_requires_description(self, failure_factory) -> None:
        with pytest.raises(ValidationError):
            failure_factory(description="")


class TestMeasurementUnion:
    """Tests for the discriminated Measurement union."""

    def test_discriminates_failure(self) -> None:
        measurement = MeasurementAdapter.validate_python(
            {
                "kind": "failure",
                "timestamp": "2025-01-15T10:00:00Z",
                "mode": "pool",
                "phase": "ping",
                "error_description": "ping failed: OSError",
            }
        )

        assert isinstance(measurement, ModelFailure)
        assert measurement.phase == EnumProbePhase.PING

    def test_discriminates_sample(self) -> None:
        measurement = MeasurementAdapter.validate_python(
            {
                "kind": "sample",
                "timestamp": "2025-01-15T10:00:00Z",
                "mode": "client",
                "acquire_latency_ms": 1.0,
                "ping_latency_ms": 1.0,
                "bulk_query_latency_ms": 1.0,
                "bulk_query_row_count": 1000,
                "bulk_query_expected_rows": 1000,
                "round_trip_latencies_ms": [1.0],
                "release_latency_ms": 1.0,
                "total_latency_ms": 5.0,
            }
        )

        assert isinstance(measurement, ModelSample)

    def test_reads_back_served_sample_json(self, sample_factory) -> None:
        sample = sample_factory(
            mode=EnumAcquireMode.POOL,
            pool_snapshot=ModelPoolSnapshot(total=3, idle=1, waiting=0),
        )

        measurement = MeasurementAdapter.validate_python(sample.model_dump(mode="json"))

        assert isinstance(measurement, ModelSample)
        assert measurement == sample

    def test_reads_back_served_failure_json(self, failure_factory) -> None:
        failure = failure_factory()

        measurement = MeasurementAdapter.validate_python(
            failure.model_dump(mode="json")
        )

        assert measurement == failure
