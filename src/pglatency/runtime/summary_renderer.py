# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Plain-text rendering of a ModelStatsSummary for ``GET /metrics/summary``."""

from __future__ import annotations

from pglatency.enums import EnumAcquireMode
from pglatency.models import ModelPhaseStats, ModelStatsSummary


def _acquire_label(mode: EnumAcquireMode) -> str:
    if mode == EnumAcquireMode.POOL:
        return "Pool Acquire Latency"
    return "Connect Latency"


def _total_label(mode: EnumAcquireMode) -> str:
    if mode == EnumAcquireMode.POOL:
        return "Total (Acquire + All Queries + Release)"
    return "Total (Connect + All Queries + Close)"


def format_phase_block(name: str, stats: ModelPhaseStats | None) -> str:
    """Render one ``--- name ---`` block, or nothing for an absent phase."""
    if stats is None:
        return ""
    return (
        f"--- {name} ---\n"
        f"  Min: {stats.min:.2f} ms\n"
        f"  Max: {stats.max:.2f} ms\n"
        f"  Avg: {stats.avg:.2f} ms\n"
        f"  P50: {stats.p50:.2f} ms\n"
        f"  P95: {stats.p95:.2f} ms\n"
        f"  P99: {stats.p99:.2f} ms\n\n"
    )


def render_summary_text(
    summary: ModelStatsSummary,
    *,
    bulk_row_count: int = 1000,
    round_trip_count: int = 10,
) -> str:
    """Render the summary as human-readable text with per-phase blocks."""
    mode = summary.connection_mode
    lines = [
        f"=== {summary.app_identity} App Benchmark Summary ===",
        "",
        f"Start Time: {summary.start_time.isoformat()}",
        f"Uptime: {summary.uptime}",
        f"Connection Mode: {mode.value}",
    ]
    if summary.pool_size is not None:
        lines.append(f"Pool Size: {summary.pool_size}")
    lines.extend(
        [
            f"Total Measurements: {summary.total_measurements}",
            f"Successful: {summary.successful_measurements}",
            f"Failed: {summary.failed_measurements}",
            f"Failure Rate: {summary.failure_rate:.2f}%",
        ]
    )
    if summary.row_count_mismatches:
        lines.append(f"Row Count Mismatches: {summary.row_count_mismatches}")
    text = "\n".join(lines) + "\n\n"

    latency = summary.latency
    if latency is None:
        return text + "No successful measurements yet.\n"

    text += format_phase_block(_acquire_label(mode), latency.acquire)
    text += format_phase_block("Ping (SELECT 1)", latency.ping)
    text += format_phase_block(f"Bulk Query ({bulk_row_count} rows)", latency.bulk_query)
    text += format_phase_block(
        f"Avg Round Trip ({round_trip_count}x queries)", latency.avg_round_trip
    )
    text += format_phase_block("Total Query Time", latency.query)
    text += format_phase_block(_total_label(mode), latency.total)
    return text


__all__: list[str] = ["format_phase_block", "render_summary_text"]
