# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure-Specific Error Classes.

Error Hierarchy:
    RuntimeHostError (base infrastructure error)
    ├── ProtocolConfigurationError
    ├── InfraConnectionError
    ├── InfraTimeoutError
    └── InfraUnavailableError

All errors:
    - Support proper error chaining with `raise ... from e`
    - Carry structured context (ModelInfraErrorContext plus extra kwargs)
    - Expose a stable ``error_code`` string for log records and responses

None of these errors ever escapes a measurement cycle: the prober converts
them (and every other exception) into Failure measurements.
"""

from __future__ import annotations

from uuid import UUID

from pglatency.errors.model_infra_error_context import ModelInfraErrorContext


class RuntimeHostError(Exception):
    """Base error class for harness infrastructure errors.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.HTTP,
        ...     operation="start_metrics_server",
        ...     target_name="0.0.0.0:3000",
        ... )
        >>> raise RuntimeHostError("Operation failed", context=context)
    """

    error_code: str = "OPERATION_FAILED"

    def __init__(
        self,
        message: str,
        context: ModelInfraErrorContext | None = None,
        **extra_context: object,
    ) -> None:
        """Initialize RuntimeHostError with structured fields.

        Args:
            message: Human-readable error message
            context: Bundled infrastructure context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context
        self.extra_context: dict[str, object] = dict(extra_context)

    @property
    def correlation_id(self) -> UUID | None:
        """Return the correlation ID from the bundled context, if any."""
        return self.context.correlation_id if self.context is not None else None

    def to_log_extra(self) -> dict[str, object]:
        """Flatten the structured context into a logging ``extra`` mapping."""
        extra: dict[str, object] = {"error_code": self.error_code}
        if self.context is not None:
            extra.update(
                {
                    key: (value.value if hasattr(value, "value") else str(value))
                    for key, value in self.context.model_dump().items()
                    if value is not None
                }
            )
        extra.update(self.extra_context)
        return extra


class ProtocolConfigurationError(RuntimeHostError):
    """Raised when startup configuration validation fails.

    Example:
        >>> raise ProtocolConfigurationError(
        ...     "CONNECTION_MODE must be 'client' or 'pool'",
        ...     parameter="CONNECTION_MODE",
        ... )
    """

    error_code = "INVALID_CONFIGURATION"


class InfraConnectionError(RuntimeHostError):
    """Raised when a database connection cannot be obtained.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.DATABASE,
        ...     operation="acquire",
        ... )
        >>> raise InfraConnectionError("DATABASE_URL is not configured", context=context)
    """

    error_code = "DATABASE_CONNECTION_ERROR"


class InfraTimeoutError(RuntimeHostError):
    """Raised when an infrastructure operation exceeds its timeout.

    Example:
        >>> raise InfraTimeoutError(
        ...     "Pool checkout exceeded timeout",
        ...     context=context,
        ...     timeout_seconds=5.0,
        ... )
    """

    error_code = "TIMEOUT_ERROR"


class InfraUnavailableError(RuntimeHostError):
    """Raised when a required resource is not available (e.g. pool not initialized)."""

    error_code = "SERVICE_UNAVAILABLE"


__all__ = [
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "ProtocolConfigurationError",
    "RuntimeHostError",
]
