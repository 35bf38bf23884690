# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Defines the transport types used in error context and log records.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Infrastructure transport types.

    Attributes:
        HTTP: HTTP transport (metrics server, outbound diagnostics, compare CLI)
        DATABASE: PostgreSQL transport
        RUNTIME: Process-internal runtime operations
    """

    HTTP = "http"
    DATABASE = "db"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]
