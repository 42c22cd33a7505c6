# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka round-trip liveness probe.

Publishes a uniquely keyed message to a health check topic and reports UP
once this process consumes it back within a deadline.

Exports:
    KafkaConsumingHealthIndicator: The health indicator
    ModelKafkaHealthConfig: Its configuration
    ModelKafkaHealthResult: The verdict returned by each probe
    EnumHealthStatus: UP / DOWN
"""

from kafka_health_probe.enums import EnumHealthStatus
from kafka_health_probe.health import KafkaConsumingHealthIndicator
from kafka_health_probe.models import ModelKafkaHealthConfig, ModelKafkaHealthResult

__version__ = "0.1.0"

__all__: list[str] = [
    "EnumHealthStatus",
    "KafkaConsumingHealthIndicator",
    "ModelKafkaHealthConfig",
    "ModelKafkaHealthResult",
    "__version__",
]
