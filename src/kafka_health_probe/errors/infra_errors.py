# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure-Specific Error Classes.

Error Hierarchy:
    RuntimeHostError (base infrastructure error)
    ├── ProtocolConfigurationError
    ├── InfraConnectionError
    ├── InfraTimeoutError
    ├── InfraUnavailableError
    └── HealthCheckInitializationError

All errors:
    - Use EnumInfraErrorCode for error classification
    - Support proper error chaining with `raise ... from e`
    - Include structured context for debugging
    - Support correlation IDs for probe tracking
    - Accept ModelInfraErrorContext for bundled context parameters

Only HealthCheckInitializationError is fatal. The others are recorded as the
current communication result and folded into the DOWN verdict of a probe.
"""

from typing import Optional
from uuid import UUID

from kafka_health_probe.enums import EnumInfraErrorCode
from kafka_health_probe.errors.model_infra_error_context import ModelInfraErrorContext


class RuntimeHostError(Exception):
    """Base error class for health probe infrastructure errors.

    Structured Fields (via ModelInfraErrorContext):
        transport_type: Type of transport (kafka, runtime)
        operation: Operation being performed
        correlation_id: Correlation ID for tracking
        target_name: Target resource/endpoint name

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.KAFKA,
        ...     operation="send",
        ...     target_name="kafka.health-checks",
        ... )
        >>> raise RuntimeHostError("Operation failed", context=context)

        # Or with extra context:
        >>> raise RuntimeHostError(
        ...     "Operation failed",
        ...     context=context,
        ...     topic="health-checks",
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumInfraErrorCode] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize RuntimeHostError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to OPERATION_FAILED)
            context: Bundled infrastructure context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        structured_context: dict[str, object] = dict(extra_context)

        correlation_id: Optional[UUID] = None
        if context is not None:
            if context.transport_type is not None:
                structured_context["transport_type"] = context.transport_type
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
            correlation_id = context.correlation_id

        self.message = message
        self.error_code = error_code or EnumInfraErrorCode.OPERATION_FAILED
        self.correlation_id = correlation_id
        self.context = structured_context

    def __str__(self) -> str:
        return self.message


class ProtocolConfigurationError(RuntimeHostError):
    """Raised when health probe configuration validation fails.

    Example:
        >>> raise ProtocolConfigurationError(
        ...     "send_receive_timeout must be positive",
        ...     parameter="send_receive_timeout",
        ...     value=-1,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumInfraErrorCode.INVALID_CONFIGURATION,
            context=context,
            **extra_context,
        )


class InfraConnectionError(RuntimeHostError):
    """Raised when the broker rejects or fails a delivery.

    Example:
        >>> raise InfraConnectionError(
        ...     "Failed to send health check message",
        ...     context=context,
        ...     topic="health-checks",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumInfraErrorCode.CONNECTION_ERROR,
            context=context,
            **extra_context,
        )


class InfraTimeoutError(RuntimeHostError):
    """Raised when a broker operation or a round trip exceeds its deadline.

    Example:
        >>> raise InfraTimeoutError(
        ...     "Sending and receiving took longer than 2.5s",
        ...     context=context,
        ...     timeout_seconds=2.5,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumInfraErrorCode.TIMEOUT_ERROR,
            context=context,
            **extra_context,
        )


class InfraUnavailableError(RuntimeHostError):
    """Raised when the health check cannot serve a verdict yet (or anymore).

    Used for the initial "starting" communication result, probes issued
    before start() or after close(), and a dead consume loop.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumInfraErrorCode.SERVICE_UNAVAILABLE,
            context=context,
            **extra_context,
        )


class HealthCheckInitializationError(RuntimeHostError):
    """Raised when the health check cannot come into service.

    Fatal: the subscription was never confirmed within the subscription
    timeout, the client connections could not be started, or the host
    address needed for the instance identity could not be resolved.

    Example:
        >>> raise HealthCheckInitializationError(
        ...     "Subscription to kafka failed, topic=health-checks",
        ...     context=context,
        ...     timeout_seconds=5.0,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumInfraErrorCode.INITIALIZATION_FAILED,
            context=context,
            **extra_context,
        )


__all__ = [
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "HealthCheckInitializationError",
]
