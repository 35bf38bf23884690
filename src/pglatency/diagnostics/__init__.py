# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Network diagnostics served alongside the metrics endpoints."""

from pglatency.diagnostics.outbound_probe import OutboundProbe

__all__: list[str] = ["OutboundProbe"]
