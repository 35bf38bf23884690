# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Outbound connectivity diagnostic result models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pglatency.enums import EnumOutboundProbeStatus


class ModelOutboundProbeResult(BaseModel):
    """Outcome of one reachability probe."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    test: str
    target: str
    status: EnumOutboundProbeStatus
    latency_ms: float | None = None
    error: str | None = None
    result: list[str] | None = None


class ModelOutboundSummary(BaseModel):
    """Pass/fail counts over a probe battery."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    passed: int = Field(ge=0)
    failed: int = Field(ge=0)
    total: int = Field(ge=0)


class ModelOutboundReport(BaseModel):
    """Full outbound diagnostic report served by ``GET /test-outbound``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime
    tests: tuple[ModelOutboundProbeResult, ...]
    summary: ModelOutboundSummary


__all__ = ["ModelOutboundProbeResult", "ModelOutboundReport", "ModelOutboundSummary"]
