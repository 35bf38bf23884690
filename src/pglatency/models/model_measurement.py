# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Measurement tagged union: exactly one per cycle."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, TypeAdapter

from pglatency.models.model_failure import ModelFailure
from pglatency.models.model_sample import ModelSample

Measurement = Annotated[ModelSample | ModelFailure, Field(discriminator="kind")]

MeasurementAdapter: TypeAdapter[ModelSample | ModelFailure] = TypeAdapter(Measurement)


__all__ = ["Measurement", "MeasurementAdapter"]
