# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Probe Phase Enumeration.

Names the timed segments of a measurement cycle, in execution order.
"""

from enum import Enum


class EnumProbePhase(str, Enum):
    """Timed phases of one measurement cycle.

    Attributes:
        ACQUIRE: Connect (client mode) or pool checkout (pool mode).
        PING: Trivial ``SELECT 1`` round trip.
        BULK_QUERY: Query computing and returning a fixed-size result set.
        ROUND_TRIP: Sequential parameterized trivial queries.
        RELEASE: Close (client mode) or return to pool (pool mode).
    """

    ACQUIRE = "acquire"
    PING = "ping"
    BULK_QUERY = "bulk_query"
    ROUND_TRIP = "round_trip"
    RELEASE = "release"


__all__ = ["EnumProbePhase"]
