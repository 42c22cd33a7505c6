# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enumerations for the Kafka health probe.

Exports:
    EnumHealthStatus: Binary health verdict (UP, DOWN)
    EnumInfraErrorCode: Classification codes for infrastructure errors
    EnumInfraTransportType: Transport type for error context
"""

from kafka_health_probe.enums.enum_health_status import EnumHealthStatus
from kafka_health_probe.enums.enum_infra_error_code import EnumInfraErrorCode
from kafka_health_probe.enums.enum_infra_transport_type import EnumInfraTransportType

__all__: list[str] = [
    "EnumHealthStatus",
    "EnumInfraErrorCode",
    "EnumInfraTransportType",
]
