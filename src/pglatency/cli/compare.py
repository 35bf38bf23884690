# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Two-instance benchmark comparison CLI.

Fetches ``/metrics`` from two running harness instances (typically one
reaching the database over a private network and one over the public
internet) and prints configuration and average-latency comparison tables.

Usage:
    pglatency-compare https://vpc-app.example.com https://public-app.example.com
    pglatency-compare URL_A URL_B --label-a VPC --label-b Public --raw
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime

import click
import httpx
from rich.console import Console
from rich.table import Table

console = Console()

DEFAULT_TIMEOUT_SECONDS = 10.0

# (row label, latency section key) in display order
LATENCY_ROWS: tuple[tuple[str, str], ...] = (
    ("Acquire / Connect", "acquire"),
    ("Ping (SELECT 1)", "ping"),
    ("Avg Round Trip", "avg_round_trip"),
    ("Bulk Query", "bulk_query"),
    ("Total Query Time", "query"),
    ("Total", "total"),
)

CONFIG_ROWS: tuple[tuple[str, str], ...] = (
    ("Connection Mode", "connection_mode"),
    ("Use Pool", "use_pool"),
    ("Pool Size", "pool_size"),
    ("Measurements", "total_measurements"),
    ("Failure Rate", "failure_rate"),
)

NOT_AVAILABLE = "N/A"


def fetch_metrics(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, object]:
    """GET ``<base_url>/metrics`` and return the decoded JSON body.

    Raises:
        httpx.HTTPError: On connection failure or a non-2xx response.
    """
    with httpx.Client(timeout=timeout, transport=transport) as client:
        response = client.get(f"{base_url.rstrip('/')}/metrics")
        response.raise_for_status()
        return response.json()


def average_latency(metrics: Mapping[str, object], section: str) -> float | None:
    """Return ``latency.<section>.avg`` or None when absent."""
    latency = metrics.get("latency")
    if not isinstance(latency, Mapping):
        return None
    stats = latency.get(section)
    if not isinstance(stats, Mapping):
        return None
    value = stats.get("avg")
    return float(value) if isinstance(value, int | float) else None


def percent_difference(value_a: float, value_b: float) -> float | None:
    """``(b - a) / b * 100``, or None when ``b`` is zero."""
    if value_b == 0:
        return None
    return (value_b - value_a) / value_b * 100


def conclusion(
    metrics_a: Mapping[str, object],
    metrics_b: Mapping[str, object],
    label_a: str,
    label_b: str,
) -> str | None:
    """Name the faster instance on average round-trip latency."""
    rt_a = average_latency(metrics_a, "avg_round_trip")
    rt_b = average_latency(metrics_b, "avg_round_trip")
    if rt_a is None or rt_b is None:
        return None
    if rt_a == rt_b:
        return f"{label_a} and {label_b} are equal on average round-trip latency"
    if rt_a < rt_b:
        faster, slower, faster_label = rt_a, rt_b, label_a
    else:
        faster, slower, faster_label = rt_b, rt_a, label_b
    pct = percent_difference(faster, slower) or 0.0
    return f"{faster_label} is faster by {pct:.1f}% on average round-trip latency"


def _display(value: object) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def build_config_table(
    metrics_a: Mapping[str, object],
    metrics_b: Mapping[str, object],
    label_a: str,
    label_b: str,
) -> Table:
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column(label_a)
    table.add_column(label_b)
    for title, key in CONFIG_ROWS:
        value_a, value_b = metrics_a.get(key), metrics_b.get(key)
        if key == "failure_rate":
            row_a = f"{_display(value_a)}%" if value_a is not None else NOT_AVAILABLE
            row_b = f"{_display(value_b)}%" if value_b is not None else NOT_AVAILABLE
        else:
            row_a, row_b = _display(value_a), _display(value_b)
        table.add_row(title, row_a, row_b)
    return table


def build_latency_table(
    metrics_a: Mapping[str, object],
    metrics_b: Mapping[str, object],
    label_a: str,
    label_b: str,
) -> Table:
    """Average latency per phase with the difference relative to B."""
    table = Table(title="Latency Comparison (Average, ms)")
    table.add_column("Metric", style="cyan")
    table.add_column(label_a, justify="right")
    table.add_column(label_b, justify="right")
    table.add_column("Difference", justify="right")
    for title, section in LATENCY_ROWS:
        avg_a = average_latency(metrics_a, section)
        avg_b = average_latency(metrics_b, section)
        if avg_a is None or avg_b is None:
            continue
        pct = percent_difference(avg_a, avg_b)
        diff = f"{avg_b - avg_a:.2f}"
        if pct is not None:
            diff += f" ({pct:.1f}%)"
        table.add_row(title, f"{avg_a:.2f}", f"{avg_b:.2f}", diff)
    return table


@click.command()
@click.argument("url_a")
@click.argument("url_b")
@click.option("--label-a", default="VPC", show_default=True, help="Label for URL_A")
@click.option("--label-b", default="Public", show_default=True, help="Label for URL_B")
@click.option(
    "--timeout",
    default=DEFAULT_TIMEOUT_SECONDS,
    show_default=True,
    type=float,
    help="HTTP timeout in seconds",
)
@click.option("--raw", is_flag=True, help="Also print the raw latency JSON")
def cli(
    url_a: str,
    url_b: str,
    label_a: str,
    label_b: str,
    timeout: float,
    raw: bool,
) -> None:
    """Compare benchmark metrics from two running harness instances."""
    console.print(
        f"[bold blue]=== {label_a} vs {label_b} Database Benchmark Results ===[/bold blue]"
    )
    console.print(f"Collected at: {datetime.now().isoformat(timespec='seconds')}\n")

    fetched: list[dict[str, object]] = []
    for label, url in ((label_a, url_a), (label_b, url_b)):
        console.print(f"Fetching {label} metrics from {url}...")
        try:
            fetched.append(fetch_metrics(url, timeout=timeout))
        except (httpx.HTTPError, ValueError) as e:
            console.print(
                f"[bold red]Failed to fetch {label} metrics: "
                f"{type(e).__name__}: {e}[/bold red]"
            )
            raise SystemExit(1) from e

    metrics_a, metrics_b = fetched
    console.print()
    console.print(build_config_table(metrics_a, metrics_b, label_a, label_b))
    console.print()
    console.print(build_latency_table(metrics_a, metrics_b, label_a, label_b))

    summary_line = conclusion(metrics_a, metrics_b, label_a, label_b)
    if summary_line is not None:
        console.print(f"\n[bold green]{summary_line}[/bold green]")
    else:
        console.print("\n[yellow]Not enough successful measurements to compare[/yellow]")

    if raw:
        for label, metrics in ((label_a, metrics_a), (label_b, metrics_b)):
            console.print(f"\n[bold]{label} latency:[/bold]")
            console.print_json(json.dumps(metrics.get("latency")))


if __name__ == "__main__":
    cli()


__all__: list[str] = [
    "average_latency",
    "build_config_table",
    "build_latency_table",
    "cli",
    "conclusion",
    "fetch_metrics",
    "percent_difference",
]
