# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pydantic models for measurements, statistics, configuration and diagnostics."""

from pglatency.models.model_benchmark_config import ModelBenchmarkConfig
from pglatency.models.model_failure import ModelFailure
from pglatency.models.model_measurement import Measurement, MeasurementAdapter
from pglatency.models.model_outbound_report import (
    ModelOutboundProbeResult,
    ModelOutboundReport,
    ModelOutboundSummary,
)
from pglatency.models.model_pool_snapshot import ModelPoolSnapshot
from pglatency.models.model_sample import ModelSample
from pglatency.models.model_stats_summary import (
    ModelLatencyStats,
    ModelPhaseStats,
    ModelStatsSummary,
)

__all__: list[str] = [
    "Measurement",
    "MeasurementAdapter",
    "ModelBenchmarkConfig",
    "ModelFailure",
    "ModelLatencyStats",
    "ModelOutboundProbeResult",
    "ModelOutboundReport",
    "ModelOutboundSummary",
    "ModelPhaseStats",
    "ModelPoolSnapshot",
    "ModelSample",
    "ModelStatsSummary",
]
