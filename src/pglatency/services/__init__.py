# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Long-running services."""

from pglatency.services.service_benchmark_scheduler import ServiceBenchmarkScheduler

__all__: list[str] = ["ServiceBenchmarkScheduler"]
