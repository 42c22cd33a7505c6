# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pydantic models for the Kafka health probe.

Exports:
    ModelCacheStats: Correlation cache counters snapshot
    ModelCommunicationResult: Latest broker communication outcome
    ModelKafkaHealthCacheConfig: Correlation cache sizing
    ModelKafkaHealthConfig: Health check configuration
    ModelKafkaHealthResult: Binary verdict with details
"""

from kafka_health_probe.models.model_cache_stats import ModelCacheStats
from kafka_health_probe.models.model_communication_result import (
    ModelCommunicationResult,
)
from kafka_health_probe.models.model_kafka_health_cache_config import (
    DEFAULT_CACHE_MAXIMUM_SIZE,
    ModelKafkaHealthCacheConfig,
)
from kafka_health_probe.models.model_kafka_health_config import ModelKafkaHealthConfig
from kafka_health_probe.models.model_kafka_health_result import ModelKafkaHealthResult

__all__: list[str] = [
    "DEFAULT_CACHE_MAXIMUM_SIZE",
    "ModelCacheStats",
    "ModelCommunicationResult",
    "ModelKafkaHealthCacheConfig",
    "ModelKafkaHealthConfig",
    "ModelKafkaHealthResult",
]
