# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for KafkaConsumingHealthIndicator.

Covers the bootstrap, the consume loop, the probe verdicts and their
failure attribution, send exclusivity, and shutdown, against the in-process
fake broker from tests.helpers.
"""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
from aiokafka.errors import KafkaError
from aiokafka.structs import TopicPartition

from kafka_health_probe.enums import EnumHealthStatus
from kafka_health_probe.errors import (
    HealthCheckInitializationError,
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
)
from kafka_health_probe.health import KafkaConsumingHealthIndicator
from kafka_health_probe.models import ModelKafkaHealthConfig
from tests.conftest import TEST_HOST_ADDRESS, TEST_TOPIC
from tests.helpers import FakeKafkaBroker


async def _wait_until(predicate, timeout: float = 1.0) -> bool:  # type: ignore[no-untyped-def]
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.005)
    return predicate()


class TestKafkaConsumingHealthIndicatorIdentity:
    """Test suite for instance identity and client wiring."""

    def test_consumer_group_id_includes_group_and_host(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test identity = prefix + configured group + host address."""
        assert indicator.consumer_group_id == f"health-check-unit-{TEST_HOST_ADDRESS}"

    def test_group_id_from_consumer_options(
        self,
        fast_config: ModelKafkaHealthConfig,
        fixed_host_address: str,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test consumer_options group_id is used when the config has none."""
        config = fast_config.model_copy(update={"group_id": None})
        indicator = KafkaConsumingHealthIndicator(
            config, consumer_options={"group_id": "billing"}
        )
        assert indicator.consumer_group_id == f"health-check-billing-{fixed_host_address}"

    def test_generated_group_id_when_unconfigured(
        self,
        fast_config: ModelKafkaHealthConfig,
        fixed_host_address: str,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a UUID base id is generated per instance."""
        config = fast_config.model_copy(update={"group_id": None})
        first = KafkaConsumingHealthIndicator(config)
        second = KafkaConsumingHealthIndicator(config)

        assert first.consumer_group_id != second.consumer_group_id
        base = first.consumer_group_id.removeprefix("health-check-").removesuffix(
            f"-{fixed_host_address}"
        )
        UUID(base)

    @pytest.mark.asyncio
    async def test_consumer_uses_identity_as_group(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test the consumer subscribes under the instance identity."""
        consumer = patched_clients.consumers[0]
        assert consumer.kwargs["group_id"] == started_indicator.consumer_group_id
        assert consumer.subscribed_topics == [TEST_TOPIC]

    @pytest.mark.asyncio
    async def test_extra_client_options_are_forwarded(
        self,
        fast_config: ModelKafkaHealthConfig,
        fixed_host_address: str,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test consumer/producer options reach the broker clients."""
        indicator = KafkaConsumingHealthIndicator(
            fast_config,
            consumer_options={"security_protocol": "SSL", "group_id": "ignored"},
            producer_options={"linger_ms": 5},
        )
        await indicator.start()
        try:
            consumer_kwargs = patched_clients.consumers[0].kwargs
            assert consumer_kwargs["security_protocol"] == "SSL"
            assert consumer_kwargs["group_id"] == indicator.consumer_group_id
            assert patched_clients.producers[0].kwargs["linger_ms"] == 5
        finally:
            await indicator.close()

    @pytest.mark.parametrize(
        ("consumer_options", "producer_options", "conflict"),
        [
            ({"bootstrap_servers": "other:9092"}, None, "bootstrap_servers"),
            ({"key_deserializer": str}, None, "key_deserializer"),
            (None, {"acks": 1}, "acks"),
            (None, {"key_serializer": str}, "key_serializer"),
        ],
    )
    def test_managed_client_options_are_rejected(
        self,
        fast_config: ModelKafkaHealthConfig,
        fixed_host_address: str,
        patched_clients: FakeKafkaBroker,
        consumer_options: dict[str, object] | None,
        producer_options: dict[str, object] | None,
        conflict: str,
    ) -> None:
        """Test options the indicator sets itself cannot be overridden."""
        with pytest.raises(ProtocolConfigurationError, match=conflict) as exc_info:
            KafkaConsumingHealthIndicator(
                fast_config,
                consumer_options=consumer_options,
                producer_options=producer_options,
            )

        assert exc_info.value.context["conflicts"] == [conflict]


class TestKafkaConsumingHealthIndicatorBootstrap:
    """Test suite for subscription bootstrap and startup."""

    def test_communication_result_starts_as_failure(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test the initial communication result reports 'starting'."""
        result = indicator.communication_result
        assert result.is_failure
        assert isinstance(result.error, InfraUnavailableError)
        assert "starting" in str(result.error)

    @pytest.mark.asyncio
    async def test_start_records_success_and_becomes_ready(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test confirmed assignment records success and marks ready."""
        await indicator.start()
        try:
            assert indicator.is_ready is True
            assert indicator.communication_result.is_failure is False
        finally:
            await indicator.close()

    @pytest.mark.asyncio
    async def test_start_polls_once_before_waiting(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test the bootstrap polls to trigger assignment callbacks."""
        assert patched_clients.consumers[0].poll_count >= 1

    @pytest.mark.asyncio
    async def test_multiple_start_calls(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test that multiple start calls are safe (idempotent)."""
        await started_indicator.start()

        assert len(patched_clients.producers) == 1
        assert len(patched_clients.consumers) == 1

    @pytest.mark.asyncio
    async def test_subscription_timeout_is_fatal(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test no assignment within the timeout aborts startup."""
        patched_clients.assign_partitions = False

        with pytest.raises(HealthCheckInitializationError) as exc_info:
            await indicator.start()

        assert TEST_TOPIC in str(exc_info.value)
        assert indicator.is_ready is False
        assert patched_clients.producers[0].stopped is True
        assert patched_clients.consumers[0].stopped is True

        result = await indicator.health_check()
        assert result.status is EnumHealthStatus.DOWN
        assert result.details["error_type"] == "InfraUnavailableError"

    @pytest.mark.asyncio
    async def test_producer_start_failure_is_fatal(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a broker error while connecting aborts startup."""
        patched_clients.producer_start_error = KafkaError("no brokers available")

        with pytest.raises(HealthCheckInitializationError) as exc_info:
            await indicator.start()

        assert isinstance(exc_info.value.__cause__, KafkaError)
        assert indicator.is_ready is False

    @pytest.mark.asyncio
    async def test_start_after_close_is_rejected(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test a closed indicator cannot be restarted."""
        await indicator.start()
        await indicator.close()

        with pytest.raises(InfraUnavailableError):
            await indicator.start()

    @pytest.mark.asyncio
    async def test_cancelled_start_releases_clients(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test cancelling start() while awaiting assignment stops both clients."""
        patched_clients.assign_partitions = False

        task = asyncio.create_task(indicator.start())
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert indicator.is_ready is False
        assert patched_clients.events.calls == [
            "producer.start",
            "consumer.start",
            "producer.stop",
            "consumer.stop",
        ]

    @pytest.mark.asyncio
    async def test_start_timeout_from_caller_releases_clients(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        patched_clients.assign_partitions = False

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(indicator.start(), timeout=0.05)

        assert patched_clients.producers[0].stopped is True
        assert patched_clients.consumers[0].stopped is True

    @pytest.mark.asyncio
    async def test_start_resolves_fetch_positions(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test every assigned partition has a fetch position before ready."""
        consumer = patched_clients.consumers[0]

        assert consumer.position_requests == [TopicPartition(TEST_TOPIC, 0)]
        assert started_indicator.is_ready is True

    @pytest.mark.asyncio
    async def test_unresolved_fetch_positions_are_fatal(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test assignment alone does not bring the indicator into service."""
        patched_clients.resolve_positions = False

        with pytest.raises(HealthCheckInitializationError, match="Fetch positions"):
            await indicator.start()

        assert indicator.is_ready is False
        assert indicator.communication_result.is_failure is True
        assert patched_clients.consumers[0].stopped is True

    @pytest.mark.asyncio
    async def test_subscribe_without_consumer_is_unavailable(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        with pytest.raises(InfraUnavailableError, match="consumer is not available"):
            await indicator._subscribe_to_topic(uuid4())


class TestKafkaConsumingHealthIndicatorProbe:
    """Test suite for probe verdicts."""

    @pytest.mark.asyncio
    async def test_health_check_before_start_is_down(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test probing an unstarted indicator reports DOWN."""
        result = await indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN
        assert result.details["topic"] == TEST_TOPIC
        assert "not started" in str(result.details["error"])

    @pytest.mark.asyncio
    async def test_round_trip_is_up(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a delivered probe message yields UP within the deadline."""
        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.UP
        assert result.is_up is True
        assert result.details["topic"] == TEST_TOPIC
        assert "error" not in result.details
        elapsed_ms = result.details["elapsed_ms"]
        assert isinstance(elapsed_ms, float)
        assert elapsed_ms <= started_indicator.config.send_receive_timeout * 1000

    @pytest.mark.asyncio
    async def test_probe_key_embeds_message_and_identity(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test each probe sends key = message + '-' + identity."""
        await started_indicator.health_check()
        await started_indicator.health_check()

        assert len(patched_clients.sent) == 2
        first, second = patched_clients.sent
        assert first.topic == TEST_TOPIC
        assert first.key == f"{first.value}-{started_indicator.consumer_group_id}"
        assert first.value != second.value

    @pytest.mark.asyncio
    async def test_delayed_delivery_scenario(
        self,
        fast_config: ModelKafkaHealthConfig,
        fixed_host_address: str,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test 2000ms deadline, 100ms poll, 50ms delivery -> UP in ~50ms."""
        config = fast_config.model_copy(
            update={"send_receive_timeout": 2.0, "poll_timeout": 0.1}
        )
        patched_clients.delivery_delay = 0.05

        async with KafkaConsumingHealthIndicator(config) as indicator:
            result = await indicator.health_check()

        assert result.status is EnumHealthStatus.UP
        elapsed_ms = result.details["elapsed_ms"]
        assert isinstance(elapsed_ms, float)
        assert 40.0 <= elapsed_ms < 1000.0

    @pytest.mark.asyncio
    async def test_undelivered_message_times_out(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a message that never comes back yields a timeout naming the topic."""
        patched_clients.drop_messages = True

        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN
        assert result.details["topic"] == TEST_TOPIC
        assert result.details["error_type"] == "InfraTimeoutError"
        error = str(result.details["error"])
        assert "Sending and receiving took longer than 0.3s" in error
        assert TEST_TOPIC in error
        elapsed_ms = result.details["elapsed_ms"]
        assert isinstance(elapsed_ms, float)
        assert elapsed_ms >= 300.0

    @pytest.mark.asyncio
    async def test_send_failure_is_down_immediately(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a delivery error reports DOWN without entering the wait."""
        patched_clients.send_error = KafkaError("leader not available")

        started = time.monotonic()
        result = await started_indicator.health_check()
        duration = time.monotonic() - started

        assert result.status is EnumHealthStatus.DOWN
        assert result.details["error_type"] == "InfraConnectionError"
        assert "leader not available" in str(result.details["error"])
        assert "elapsed_ms" not in result.details
        assert duration < started_indicator.config.send_receive_timeout

        communication = started_indicator.communication_result
        assert communication.is_failure
        assert isinstance(communication.error, InfraConnectionError)

    @pytest.mark.asyncio
    async def test_send_timeout_is_down(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a send that never completes reports a send timeout."""
        patched_clients.send_hang = True

        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN
        assert result.details["error_type"] == "InfraTimeoutError"
        assert "Timeout sending health check message" in str(result.details["error"])
        assert "elapsed_ms" not in result.details

    @pytest.mark.asyncio
    async def test_recorded_send_failure_keeps_broker_cause(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test the stored failure chains the original broker exception."""
        broker_error = KafkaError("leader not available")
        patched_clients.send_error = broker_error

        await started_indicator.health_check()

        error = started_indicator.communication_result.error
        assert isinstance(error, InfraConnectionError)
        assert error.__cause__ is broker_error

    @pytest.mark.asyncio
    async def test_recorded_send_timeout_keeps_cause(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        patched_clients.send_hang = True

        await started_indicator.health_check()

        error = started_indicator.communication_result.error
        assert isinstance(error, InfraTimeoutError)
        assert isinstance(error.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_timeout_attributed_to_failed_communication(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a timeout reports the last communication failure's cause."""
        patched_clients.drop_messages = True
        holder = started_indicator._communication_result
        asyncio.get_running_loop().call_later(
            0.05,
            holder.record_failure,
            InfraConnectionError("broker unreachable"),
        )

        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN
        assert result.details["error"] == "InfraConnectionError: broker unreachable"

    @pytest.mark.asyncio
    async def test_recovers_after_send_failure(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a successful send after a failure clears the failure."""
        patched_clients.send_error = KafkaError("transient")
        failed = await started_indicator.health_check()
        assert failed.status is EnumHealthStatus.DOWN

        patched_clients.send_error = None
        recovered = await started_indicator.health_check()

        assert recovered.status is EnumHealthStatus.UP
        assert started_indicator.communication_result.is_failure is False


class TestKafkaConsumingHealthIndicatorSendExclusivity:
    """Test suite for the instance-wide single in-flight send."""

    @pytest.mark.asyncio
    async def test_concurrent_probe_is_skipped(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a probe overlapping an in-flight send does not send."""
        patched_clients.send_delay = 0.05

        first, second = await asyncio.gather(
            started_indicator.health_check(),
            started_indicator.health_check(),
        )

        assert len(patched_clients.sent) == 1
        assert first.status is EnumHealthStatus.UP
        assert second.status is EnumHealthStatus.DOWN
        assert "already in progress" in str(second.details["error"])

    @pytest.mark.asyncio
    async def test_skipped_probe_returns_previous_verdict(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a skipped probe leaves the reported status unchanged."""
        previous = await started_indicator.health_check()
        patched_clients.send_delay = 0.05

        _, skipped = await asyncio.gather(
            started_indicator.health_check(),
            started_indicator.health_check(),
        )

        assert skipped is previous

    @pytest.mark.asyncio
    async def test_skipped_probe_leaves_communication_result(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test only the in-flight send writes the communication result."""
        patched_clients.send_delay = 0.05
        holder = started_indicator._communication_result

        with patch.object(holder, "set", wraps=holder.set) as spy:
            await asyncio.gather(
                started_indicator.health_check(),
                started_indicator.health_check(),
                started_indicator.health_check(),
            )

        assert spy.call_count == 1
        assert len(patched_clients.sent) == 1

    @pytest.mark.asyncio
    async def test_sequential_probes_all_send(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test exclusivity only applies while a send is in flight."""
        for _ in range(3):
            result = await started_indicator.health_check()
            assert result.status is EnumHealthStatus.UP

        assert len(patched_clients.sent) == 3


class TestKafkaConsumingHealthIndicatorConsumeLoop:
    """Test suite for the background consume loop."""

    @pytest.mark.asyncio
    async def test_foreign_records_are_not_cached(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test records from other instances never reach the cache."""
        cache = started_indicator._cache
        foreign_key = "probe-health-check-other-10.9.9.9"
        own_key = f"probe-{started_indicator.consumer_group_id}"

        patched_clients.inject(foreign_key, "probe")
        patched_clients.inject(None, "keyless")
        patched_clients.inject(own_key, "probe")

        assert await _wait_until(lambda: own_key in cache)
        assert foreign_key not in cache
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_receive_failure_keeps_loop_alive(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test a failed receive is logged and the loop keeps consuming."""
        patched_clients.poll_errors.append(KafkaError("fetch failed"))

        assert await _wait_until(lambda: started_indicator.receive_failures == 1)
        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.UP

    @pytest.mark.asyncio
    async def test_dead_loop_reports_down(
        self,
        started_indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test probes fail fast once the consume loop is gone."""
        task = started_indicator._consume_task
        assert task is not None
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        result = await started_indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN
        assert "consume loop is not running" in str(result.details["error"])
        assert patched_clients.sent == []


class TestKafkaConsumingHealthIndicatorShutdown:
    """Test suite for lifecycle shutdown."""

    @pytest.mark.asyncio
    async def test_close_stops_loop_then_producer_then_consumer(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test close cancels the loop and releases clients in order."""
        await indicator.start()
        task = indicator._consume_task
        assert task is not None

        await indicator.close()

        assert task.done()
        assert indicator.is_ready is False
        assert patched_clients.events.calls[-2:] == ["producer.stop", "consumer.stop"]

    @pytest.mark.asyncio
    async def test_consumer_released_even_if_producer_stop_fails(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test cleanup is best effort, not abort-on-first-error."""
        await indicator.start()
        patched_clients.producers[0].stop_error = KafkaError("already closed")

        await indicator.close()

        assert patched_clients.consumers[0].stopped is True

    @pytest.mark.asyncio
    async def test_multiple_close_calls(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test that multiple close calls are safe (idempotent)."""
        await indicator.start()
        await indicator.close()
        await indicator.shutdown()

        assert patched_clients.events.calls.count("producer.stop") == 1

    @pytest.mark.asyncio
    async def test_health_check_after_close_is_down(
        self, indicator: KafkaConsumingHealthIndicator
    ) -> None:
        """Test probes report DOWN once closed."""
        await indicator.start()
        await indicator.close()

        result = await indicator.health_check()

        assert result.status is EnumHealthStatus.DOWN

    @pytest.mark.asyncio
    async def test_async_context_manager(
        self,
        indicator: KafkaConsumingHealthIndicator,
        patched_clients: FakeKafkaBroker,
    ) -> None:
        """Test async with starts and closes the indicator."""
        async with indicator as running:
            assert running.is_ready is True

        assert indicator.is_ready is False
        assert patched_clients.consumers[0].stopped is True
