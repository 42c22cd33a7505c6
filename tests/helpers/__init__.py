# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Test helpers for kafka_health_probe unit tests.

Exports:
    FakeKafkaBroker: Shared single-topic log driving the fake clients
    FakeConsumer: Stand-in for AIOKafkaConsumer
    FakeProducer: Stand-in for AIOKafkaProducer
    FakeRecord: Deserialized consumer record
"""

from tests.helpers.fake_kafka import (
    FakeConsumer,
    FakeKafkaBroker,
    FakeProducer,
    FakeRecord,
)

__all__ = [
    "FakeConsumer",
    "FakeKafkaBroker",
    "FakeProducer",
    "FakeRecord",
]
