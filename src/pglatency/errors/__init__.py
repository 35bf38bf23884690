# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Errors Module.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    RuntimeHostError: Base infrastructure error class
    ProtocolConfigurationError: Startup configuration validation errors
    InfraConnectionError: Database connection errors
    InfraTimeoutError: Infrastructure timeout errors
    InfraUnavailableError: Resource unavailable errors

Error Sanitization Guidelines:
    NEVER include in error messages or context:
        - Passwords or full connection strings with credentials

    SAFE to include:
        - Host names and ports
        - Operation and phase names
        - Correlation IDs
"""

from pglatency.errors.infra_errors import (
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from pglatency.errors.model_infra_error_context import ModelInfraErrorContext

__all__: list[str] = [
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "ModelInfraErrorContext",
    "ProtocolConfigurationError",
    "RuntimeHostError",
]
