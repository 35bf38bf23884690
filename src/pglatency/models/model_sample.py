# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Successful measurement model.

A Sample is produced by the prober at the end of a cycle that completed every
phase. It is immutable once created and carries the full per-phase latency
breakdown in milliseconds.

Phase accounting:
    total_latency_ms spans the whole cycle, from the start of acquisition to
    the end of release, and therefore equals (within clock tolerance)::

        acquire + ping + bulk_query + sum(round_trips) + release
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from pglatency.enums import EnumAcquireMode
from pglatency.models.model_pool_snapshot import ModelPoolSnapshot


# Serialized by computed_field; recomputed on validation.
_DERIVED_FIELDS = frozenset(
    {
        "round_trip_total_ms",
        "avg_round_trip_ms",
        "query_latency_ms",
        "bulk_query_row_count_matches",
    }
)


class ModelSample(BaseModel):
    """Successful measurement with per-phase latencies (milliseconds)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["sample"] = "sample"
    success: Literal[True] = True
    timestamp: datetime
    mode: EnumAcquireMode
    acquire_latency_ms: float = Field(
        ge=0.0,
        description="Connect time (client mode) or pool checkout wait (pool mode)",
    )
    ping_latency_ms: float = Field(ge=0.0, description="SELECT 1 round trip")
    bulk_query_latency_ms: float = Field(
        ge=0.0, description="Fixed-size result set query"
    )
    bulk_query_row_count: int = Field(ge=0, description="Rows actually returned")
    bulk_query_expected_rows: int = Field(ge=0, description="Rows requested")
    round_trip_latencies_ms: tuple[float, ...] = Field(
        min_length=1,
        description="Individual parameterized query durations, in issue order",
    )
    release_latency_ms: float = Field(
        ge=0.0, description="Close (client mode) or pool release (pool mode)"
    )
    total_latency_ms: float = Field(ge=0.0, description="Cycle start to cycle end")
    pool_snapshot: ModelPoolSnapshot | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_derived_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in _DERIVED_FIELDS}
        return data

    @model_validator(mode="after")
    def _check_mode_fields(self) -> ModelSample:
        if self.pool_snapshot is not None and self.mode != EnumAcquireMode.POOL:
            raise ValueError("pool_snapshot is only valid for pool-mode samples")
        if any(value < 0 for value in self.round_trip_latencies_ms):
            raise ValueError("round trip latencies must be non-negative")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def round_trip_total_ms(self) -> float:
        """Sum of all round-trip durations."""
        return sum(self.round_trip_latencies_ms)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def avg_round_trip_ms(self) -> float:
        """Arithmetic mean of the round-trip durations."""
        return self.round_trip_total_ms / len(self.round_trip_latencies_ms)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def query_latency_ms(self) -> float:
        """Time spent in queries: ping + bulk query + all round trips."""
        return (
            self.ping_latency_ms + self.bulk_query_latency_ms + self.round_trip_total_ms
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def bulk_query_row_count_matches(self) -> bool:
        """Whether the bulk query returned exactly the requested row count."""
        return self.bulk_query_row_count == self.bulk_query_expected_rows


__all__ = ["ModelSample"]
