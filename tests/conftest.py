"""Pytest configuration and shared fixtures for kafka_health_probe tests."""

from __future__ import annotations

import socket
from collections.abc import AsyncGenerator, Iterator
from unittest.mock import patch

import pytest

from kafka_health_probe.health import KafkaConsumingHealthIndicator
from kafka_health_probe.models import ModelKafkaHealthConfig
from tests.helpers import FakeKafkaBroker

TEST_TOPIC = "health-checks-test"
TEST_HOST_ADDRESS = "10.1.2.3"

_INDICATOR_MODULE = "kafka_health_probe.health.kafka_consuming_health_indicator"

_CONFIG_ENV_VARS = (
    "KAFKA_BOOTSTRAP_SERVERS",
    "KAFKA_HEALTH_TOPIC",
    "KAFKA_HEALTH_GROUP_ID",
    "KAFKA_HEALTH_SEND_RECEIVE_TIMEOUT",
    "KAFKA_HEALTH_POLL_TIMEOUT",
    "KAFKA_HEALTH_SUBSCRIPTION_TIMEOUT",
    "KAFKA_HEALTH_CACHE_MAXIMUM_SIZE",
)


@pytest.fixture(autouse=True)
def clean_health_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's KAFKA_* environment out of every test."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixed_host_address(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pin host address resolution used by the instance identity."""
    monkeypatch.setattr(socket, "gethostname", lambda: "probe-host")
    monkeypatch.setattr(socket, "gethostbyname", lambda _host: TEST_HOST_ADDRESS)
    return TEST_HOST_ADDRESS


@pytest.fixture
def fast_config() -> ModelKafkaHealthConfig:
    """Config with short deadlines so failing probes finish quickly."""
    return ModelKafkaHealthConfig(
        bootstrap_servers="localhost:9092",
        topic=TEST_TOPIC,
        group_id="unit",
        send_receive_timeout=0.3,
        poll_timeout=0.02,
        subscription_timeout=0.3,
        cache_poll_interval=0.002,
        connect_timeout=0.5,
    )


@pytest.fixture
def broker() -> FakeKafkaBroker:
    return FakeKafkaBroker(TEST_TOPIC)


@pytest.fixture
def patched_clients(broker: FakeKafkaBroker) -> Iterator[FakeKafkaBroker]:
    """Route AIOKafkaProducer/AIOKafkaConsumer construction to the fake broker."""
    with (
        patch(f"{_INDICATOR_MODULE}.AIOKafkaProducer", side_effect=broker.producer_factory),
        patch(f"{_INDICATOR_MODULE}.AIOKafkaConsumer", side_effect=broker.consumer_factory),
    ):
        yield broker


@pytest.fixture
def indicator(
    fast_config: ModelKafkaHealthConfig,
    fixed_host_address: str,
    patched_clients: FakeKafkaBroker,
) -> KafkaConsumingHealthIndicator:
    """Indicator wired to the fake broker, not yet started."""
    return KafkaConsumingHealthIndicator(fast_config)


@pytest.fixture
async def started_indicator(
    indicator: KafkaConsumingHealthIndicator,
) -> AsyncGenerator[KafkaConsumingHealthIndicator, None]:
    """Started indicator; closed after the test even if the test fails."""
    await indicator.start()
    yield indicator
    try:
        await indicator.close()
    except Exception:
        pass  # Best effort cleanup
