# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka Health Probe Errors Module.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    RuntimeHostError: Base infrastructure error class
    ProtocolConfigurationError: Configuration validation errors
    InfraConnectionError: Broker delivery/connection errors
    InfraTimeoutError: Send and round-trip timeouts
    InfraUnavailableError: Health check not (or no longer) serving
    HealthCheckInitializationError: Fatal bootstrap failure

Error Sanitization Guidelines:
    Error text ends up in health details served to external callers, so
    anything derived from a broker exception goes through
    ``sanitize_error_message`` before it is placed in a response.

    NEVER include:
        - SASL usernames/passwords or tokens
        - Bootstrap server strings with embedded credentials

    SAFE to include:
        - Topic names and consumer group ids
        - Correlation IDs
        - Timeout values
"""

from kafka_health_probe.errors.infra_errors import (
    HealthCheckInitializationError,
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from kafka_health_probe.errors.model_infra_error_context import ModelInfraErrorContext

__all__: list[str] = [
    "ModelInfraErrorContext",
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "HealthCheckInitializationError",
]
