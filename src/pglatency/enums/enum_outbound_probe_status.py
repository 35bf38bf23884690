# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Outbound probe result status."""

from enum import Enum


class EnumOutboundProbeStatus(str, Enum):
    """Outcome of a single outbound reachability probe."""

    OK = "OK"
    FAILED = "FAILED"


__all__ = ["EnumOutboundProbeStatus"]
