# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Failed measurement model.

A Failure carries no latency fields at all: an aborted cycle contributes
nothing to any phase distribution, only to the failure count.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pglatency.enums import EnumAcquireMode, EnumProbePhase


class ModelFailure(BaseModel):
    """Unsuccessful measurement with a sanitized, human-readable error."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["failure"] = "failure"
    success: Literal[False] = False
    timestamp: datetime
    mode: EnumAcquireMode
    phase: EnumProbePhase = Field(description="Phase at which the cycle aborted")
    error_description: str = Field(min_length=1)


__all__ = ["ModelFailure"]
