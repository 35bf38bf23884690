# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Derived statistics models.

These are never stored: a summary is recomputed from a buffer snapshot on
every query. All numeric latency values are rounded to 2 decimal places.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pglatency.enums import EnumAcquireMode


class ModelPhaseStats(BaseModel):
    """Distribution of one phase's latencies (milliseconds)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    min: float
    max: float
    avg: float
    p50: float
    p95: float
    p99: float


class ModelLatencyStats(BaseModel):
    """Per-phase distributions. A phase with no values is ``None``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    acquire: ModelPhaseStats | None = None
    ping: ModelPhaseStats | None = None
    bulk_query: ModelPhaseStats | None = None
    avg_round_trip: ModelPhaseStats | None = None
    query: ModelPhaseStats | None = None
    total: ModelPhaseStats | None = None


class ModelStatsSummary(BaseModel):
    """Rolling statistics over the current buffer contents."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    app_identity: str
    connection_mode: EnumAcquireMode
    use_pool: bool
    pool_size: int | None = None
    total_measurements: int = Field(ge=0)
    successful_measurements: int = Field(ge=0)
    failed_measurements: int = Field(ge=0)
    failure_rate: float = Field(
        ge=0.0, le=100.0, description="Failures / total as a percentage"
    )
    row_count_mismatches: int = Field(ge=0)
    latency: ModelLatencyStats | None = None
    uptime: str
    uptime_seconds: float = Field(ge=0.0)
    start_time: datetime


__all__ = ["ModelLatencyStats", "ModelPhaseStats", "ModelStatsSummary"]
