# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Connection Acquisition Mode Enumeration.

Defines how a measurement cycle obtains its database connection.
"""

from enum import Enum


class EnumAcquireMode(str, Enum):
    """Connection acquisition strategy for a measurement cycle.

    Attributes:
        CLIENT: Open a brand-new connection per cycle and close it afterwards.
        POOL: Check a connection out of a shared bounded pool and release it.
    """

    CLIENT = "client"
    POOL = "pool"


__all__ = ["EnumAcquireMode"]
