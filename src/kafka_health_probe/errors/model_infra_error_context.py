# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Error Context Configuration Model.

Bundles the structured fields shared by all infrastructure errors so that
error constructors stay small while keeping strong typing.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from kafka_health_probe.enums import EnumInfraTransportType


class ModelInfraErrorContext(BaseModel):
    """Configuration model for infrastructure error context.

    Attributes:
        transport_type: Type of infrastructure transport (KAFKA, RUNTIME)
        operation: Operation being performed (subscribe, send, poll, ...)
        target_name: Target resource name, usually the health check topic
        correlation_id: Correlation ID of the probe or lifecycle operation

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.KAFKA,
        ...     operation="send",
        ...     target_name="kafka.health-checks",
        ...     correlation_id=uuid4(),
        ... )
        >>> raise InfraConnectionError("Delivery failed", context=context)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    transport_type: Optional[EnumInfraTransportType] = Field(
        default=None,
        description="Type of infrastructure transport (KAFKA, RUNTIME)",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed (subscribe, send, poll, ...)",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Target resource or endpoint name",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Correlation ID for tracing a probe or lifecycle operation",
    )


__all__ = ["ModelInfraErrorContext"]
