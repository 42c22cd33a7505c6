# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Round-trip health indicator and its shared state.

Exports:
    CommunicationResultHolder: Swappable cell for the latest broker outcome
    KafkaConsumingHealthIndicator: Publish/consume round-trip health check
"""

from kafka_health_probe.health.communication_result_holder import (
    CommunicationResultHolder,
)
from kafka_health_probe.health.kafka_consuming_health_indicator import (
    KafkaConsumingHealthIndicator,
)

__all__: list[str] = [
    "CommunicationResultHolder",
    "KafkaConsumingHealthIndicator",
]
