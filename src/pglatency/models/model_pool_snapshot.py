# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Connection pool occupancy observed at checkout time."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelPoolSnapshot(BaseModel):
    """Pool counters captured right after a successful checkout.

    Informational only: carried on pool-mode samples and never aggregated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total: int = Field(ge=0, description="Connections currently open in the pool")
    idle: int = Field(ge=0, description="Open connections not checked out")
    waiting: int = Field(ge=0, description="Checkouts blocked waiting for a connection")


__all__ = ["ModelPoolSnapshot"]
