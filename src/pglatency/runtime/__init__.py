# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Process runtime: HTTP route layer, text rendering and the kernel entry point."""

from pglatency.runtime.metrics_server import MetricsServer
from pglatency.runtime.summary_renderer import render_summary_text

__all__: list[str] = ["MetricsServer", "render_summary_text"]
