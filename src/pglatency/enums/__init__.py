# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enumerations for the latency harness.

Exports:
    EnumAcquireMode: Connection acquisition strategy (CLIENT, POOL)
    EnumInfraTransportType: Transport type for error context
    EnumOutboundProbeStatus: Outbound diagnostic probe outcome (OK, FAILED)
    EnumProbePhase: Timed phases of a measurement cycle
"""

from pglatency.enums.enum_acquire_mode import EnumAcquireMode
from pglatency.enums.enum_infra_transport_type import EnumInfraTransportType
from pglatency.enums.enum_outbound_probe_status import EnumOutboundProbeStatus
from pglatency.enums.enum_probe_phase import EnumProbePhase

__all__: list[str] = [
    "EnumAcquireMode",
    "EnumInfraTransportType",
    "EnumOutboundProbeStatus",
    "EnumProbePhase",
]
