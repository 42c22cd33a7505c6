# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka round-trip health indicator.

Proves that this process can both publish to and consume from a designated
topic within a bounded time. Each probe publishes a fresh UUID keyed with
this instance's consumer group id, then waits for its own consume loop to
see the message come back.

Moving Parts:
    - Subscription bootstrap: subscribes the consumer and waits until the
      broker assigns at least one partition and its fetch position is
      known (fatal on timeout).
    - Consume loop: one background task pulling bounded batches and caching
      every record whose key carries this instance's identity.
    - Correlation cache: joins sent probes with received records.
    - Communication result: latest broker outcome, used to attribute a
      round-trip timeout to a broker failure or to plain slowness.
    - Probe (health_check): send, then poll the cache until found or the
      send/receive timeout elapses.

Verdicts:
    UP: the probe message came back within ``send_receive_timeout``.
    DOWN: the send failed (cause attached immediately), the round trip
        timed out (cause = last failed communication, else a timeout naming
        the topic), or the indicator is not serving (not started, closed,
        consume loop dead).

A probe issued while another probe's send is still in flight is skipped and
returns the previous verdict unchanged.

Usage:
    ```python
    from kafka_health_probe.health import KafkaConsumingHealthIndicator
    from kafka_health_probe.models import ModelKafkaHealthConfig

    indicator = KafkaConsumingHealthIndicator(
        ModelKafkaHealthConfig(bootstrap_servers="kafka:9092", topic="health-checks")
    )
    await indicator.start()  # raises HealthCheckInitializationError if not subscribed

    result = await indicator.health_check()
    print(result.status, result.details)

    await indicator.close()
    ```
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from uuid import UUID, uuid4

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.abc import ConsumerRebalanceListener
from aiokafka.errors import KafkaError

from kafka_health_probe.cache import CorrelationCache
from kafka_health_probe.enums import EnumInfraTransportType
from kafka_health_probe.errors import (
    HealthCheckInitializationError,
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)
from kafka_health_probe.health.communication_result_holder import (
    CommunicationResultHolder,
)
from kafka_health_probe.models import (
    ModelCacheStats,
    ModelCommunicationResult,
    ModelKafkaHealthConfig,
    ModelKafkaHealthResult,
)
from kafka_health_probe.utils import (
    build_consumer_group_id,
    build_correlation_key,
    is_own_key,
    sanitize_bootstrap_servers,
    sanitize_error_message,
)

logger = logging.getLogger(__name__)

# Client arguments set by the indicator; callers may not override them.
_MANAGED_PRODUCER_OPTIONS = frozenset(
    {"bootstrap_servers", "acks", "key_serializer", "value_serializer"}
)
_MANAGED_CONSUMER_OPTIONS = frozenset(
    {
        "bootstrap_servers",
        "auto_offset_reset",
        "enable_auto_commit",
        "key_deserializer",
        "value_deserializer",
    }
)


def _encode(value: str | None) -> bytes | None:
    return value.encode("utf-8") if value is not None else None


def _decode(value: bytes | None) -> str | None:
    return value.decode("utf-8") if value is not None else None


class _PartitionAssignmentListener(ConsumerRebalanceListener):
    """Sets an event once the broker assigns at least one partition."""

    def __init__(self, assigned: asyncio.Event, topic: str) -> None:
        self._assigned = assigned
        self._topic = topic

    def on_partitions_revoked(self, revoked: Iterable[object]) -> None:
        pass

    def on_partitions_assigned(self, assigned: Iterable[object]) -> None:
        partitions = list(assigned)
        logger.debug(
            f"Got partitions = {partitions}",
            extra={"topic": self._topic, "partition_count": len(partitions)},
        )
        if partitions:
            self._assigned.set()


class KafkaConsumingHealthIndicator:
    """Round-trip publish/consume health indicator for a Kafka cluster.

    Attributes:
        topic: Topic probed by this indicator
        consumer_group_id: Instance identity, embedded in every probe key
        is_ready: Whether start() completed and close() was not called
        cache_stats: Snapshot of the correlation cache counters

    Concurrency:
        Runs on one asyncio event loop. Any number of health_check() calls
        may overlap; they share nothing but the correlation cache and the
        communication result, and only one send is in flight at a time.
    """

    def __init__(
        self,
        config: ModelKafkaHealthConfig | None = None,
        *,
        consumer_options: Mapping[str, object] | None = None,
        producer_options: Mapping[str, object] | None = None,
    ) -> None:
        """Initialize the health indicator.

        The broker clients are created by start(), inside the running loop.

        Args:
            config: Health check configuration. Defaults to
                ModelKafkaHealthConfig.default() (environment overrides).
            consumer_options: Extra AIOKafkaConsumer keyword arguments
                (security settings and the like). A ``group_id`` entry is
                used as the base of the instance identity when the config
                has none.
            producer_options: Extra AIOKafkaProducer keyword arguments.

        Raises:
            HealthCheckInitializationError: If the host address needed for
                the instance identity cannot be resolved
            ProtocolConfigurationError: If client options override a setting
                the indicator manages itself
        """
        if config is None:
            config = ModelKafkaHealthConfig.default()

        self._config = config
        self._topic = config.topic
        self._send_receive_timeout = config.send_receive_timeout
        self._poll_timeout_ms = max(1, int(config.poll_timeout * 1000))

        consumer_kwargs = dict(consumer_options or {})
        configured_group = consumer_kwargs.pop("group_id", None)
        base_group_id = config.group_id or (
            str(configured_group) if configured_group else None
        )
        self._consumer_options = consumer_kwargs
        self._producer_options = dict(producer_options or {})
        self._reject_managed_options(
            "consumer_options", self._consumer_options, _MANAGED_CONSUMER_OPTIONS
        )
        self._reject_managed_options(
            "producer_options", self._producer_options, _MANAGED_PRODUCER_OPTIONS
        )

        self._consumer_group_id = build_consumer_group_id(base_group_id)

        logger.info(
            f"Initializing kafka health check with properties: {config.safe_summary()}",
            extra={
                "topic": self._topic,
                "consumer_group_id": self._consumer_group_id,
            },
        )

        self._cache = CorrelationCache(
            maximum_size=config.cache.maximum_size,
            expire_after_write=config.send_receive_timeout,
        )
        self._communication_result = CommunicationResultHolder(
            ModelCommunicationResult.failure(
                InfraUnavailableError(
                    "Kafka health check is starting.",
                    context=self._context("start"),
                )
            )
        )

        self._producer: AIOKafkaProducer | None = None
        self._consumer: AIOKafkaConsumer | None = None
        self._consume_task: asyncio.Task[None] | None = None

        self._lifecycle_lock = asyncio.Lock()
        # Instance-wide: at most one probe send in flight
        self._send_lock = asyncio.Lock()

        self._running = False
        self._ready = False
        self._closed = False
        self._last_verdict: ModelKafkaHealthResult | None = None
        self._receive_failures = 0

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_config(
        cls, config: ModelKafkaHealthConfig
    ) -> KafkaConsumingHealthIndicator:
        return cls(config=config)

    @classmethod
    def from_yaml(cls, path: Path) -> KafkaConsumingHealthIndicator:
        """Create an indicator from a YAML configuration file."""
        return cls(config=ModelKafkaHealthConfig.from_yaml(path))

    @classmethod
    def default(cls) -> KafkaConsumingHealthIndicator:
        """Create an indicator from defaults with environment overrides."""
        return cls(config=ModelKafkaHealthConfig.default())

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> ModelKafkaHealthConfig:
        return self._config

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def consumer_group_id(self) -> str:
        return self._consumer_group_id

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def cache_stats(self) -> ModelCacheStats:
        return self._cache.stats()

    @property
    def communication_result(self) -> ModelCommunicationResult:
        return self._communication_result.get()

    @property
    def receive_failures(self) -> int:
        """Number of background receive calls that raised so far."""
        return self._receive_failures

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Connect, subscribe, and launch the consume loop.

        Safe to call more than once; later calls are no-ops.

        Raises:
            HealthCheckInitializationError: If the clients cannot be started
                or no partition is assigned within ``subscription_timeout``.
                The indicator never becomes ready in that case.
            InfraUnavailableError: If the indicator was already closed
        """
        if self._ready:
            logger.debug("Kafka health check already started")
            return

        correlation_id = uuid4()

        async with self._lifecycle_lock:
            if self._ready:
                return
            if self._closed:
                raise InfraUnavailableError(
                    "Kafka health check is closed and cannot be restarted",
                    context=self._context("start", correlation_id),
                )

            try:
                await self._start_clients(correlation_id)
                await self._subscribe_to_topic(correlation_id)
            except BaseException:
                # Includes cancellation while waiting for assignment
                await self._release_clients()
                raise

            self._running = True
            self._consume_task = asyncio.create_task(
                self._consume_loop(correlation_id),
                name=f"kafka-health-consume-{self._topic}",
            )
            self._ready = True

            logger.info(
                "Kafka health check started",
                extra={
                    "topic": self._topic,
                    "consumer_group_id": self._consumer_group_id,
                    "correlation_id": str(correlation_id),
                },
            )

    async def close(self) -> None:
        """Stop the consume loop and release the broker connections.

        The producer is released before the consumer; a failure releasing
        one does not prevent releasing the other. Safe to call more than once.
        """
        async with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
            self._ready = False
            self._running = False

        task = self._consume_task
        self._consume_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._release_clients()

        logger.info(
            "Kafka health check closed",
            extra={
                "topic": self._topic,
                "consumer_group_id": self._consumer_group_id,
            },
        )

    async def shutdown(self) -> None:
        """Alias of close()."""
        await self.close()

    async def __aenter__(self) -> KafkaConsumingHealthIndicator:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _start_clients(self, correlation_id: UUID) -> None:
        """Create and start the producer and the consumer.

        Raises:
            HealthCheckInitializationError: On timeout or broker error
        """
        self._producer = AIOKafkaProducer(
            bootstrap_servers=self._config.bootstrap_servers,
            acks=self._config.acks if self._config.acks == "all" else int(self._config.acks),
            key_serializer=_encode,
            value_serializer=_encode,
            **self._producer_options,
        )
        self._consumer = AIOKafkaConsumer(
            bootstrap_servers=self._config.bootstrap_servers,
            group_id=self._consumer_group_id,
            auto_offset_reset=self._config.auto_offset_reset,
            enable_auto_commit=True,
            key_deserializer=_decode,
            value_deserializer=_decode,
            **self._consumer_options,
        )

        servers = sanitize_bootstrap_servers(self._config.bootstrap_servers)
        for name, client in (("producer", self._producer), ("consumer", self._consumer)):
            try:
                await asyncio.wait_for(
                    client.start(), timeout=self._config.connect_timeout
                )
            except TimeoutError as e:
                logger.warning(
                    f"Timeout starting kafka health check {name} after "
                    f"{self._config.connect_timeout}s",
                    extra={
                        "topic": self._topic,
                        "servers": servers,
                        "correlation_id": str(correlation_id),
                    },
                )
                raise HealthCheckInitializationError(
                    f"Timeout starting kafka health check {name} after "
                    f"{self._config.connect_timeout}s",
                    context=self._context(f"start_{name}", correlation_id),
                    servers=servers,
                    timeout_seconds=self._config.connect_timeout,
                ) from e
            except Exception as e:
                logger.warning(
                    f"Failed to start kafka health check {name}: "
                    f"{sanitize_error_message(e)}",
                    extra={
                        "topic": self._topic,
                        "servers": servers,
                        "correlation_id": str(correlation_id),
                    },
                )
                raise HealthCheckInitializationError(
                    f"Failed to start kafka health check {name}",
                    context=self._context(f"start_{name}", correlation_id),
                    servers=servers,
                ) from e

    async def _subscribe_to_topic(self, correlation_id: UUID) -> None:
        """Subscribe and wait for the first partition assignment.

        Assignment callbacks only fire as a side effect of fetching, so one
        bounded receive call is made right after subscribing.

        Raises:
            HealthCheckInitializationError: If no partition is assigned, or
                the assigned partitions have no fetch position, within
                ``subscription_timeout``
            InfraUnavailableError: If the consumer was not created
        """
        consumer = self._consumer
        if consumer is None:
            raise InfraUnavailableError(
                "Kafka health check consumer is not available",
                context=self._context("subscribe", correlation_id),
            )

        started = time.monotonic()
        assigned = asyncio.Event()
        logger.info(
            f"Subscribe to health check topic={self._topic}",
            extra={
                "topic": self._topic,
                "consumer_group_id": self._consumer_group_id,
                "correlation_id": str(correlation_id),
            },
        )
        consumer.subscribe(
            topics=[self._topic],
            listener=_PartitionAssignmentListener(assigned, self._topic),
        )

        try:
            await consumer.getmany(timeout_ms=self._poll_timeout_ms)
        except KafkaError as e:
            logger.warning(
                f"Initial health check poll failed: {sanitize_error_message(e)}",
                extra={"topic": self._topic, "correlation_id": str(correlation_id)},
            )

        try:
            await asyncio.wait_for(
                assigned.wait(), timeout=self._config.subscription_timeout
            )
        except TimeoutError as e:
            raise HealthCheckInitializationError(
                f"Subscription to kafka failed, topic={self._topic}",
                context=self._context("subscribe", correlation_id),
                topic=self._topic,
                timeout_seconds=self._config.subscription_timeout,
            ) from e

        # Assignment fires before offsets are reset. A message sent before
        # "latest" resolves would sit ahead of the fetch position, unread.
        remaining = self._config.subscription_timeout - (time.monotonic() - started)
        try:
            await asyncio.wait_for(
                self._resolve_positions(consumer), timeout=max(remaining, 0.0)
            )
        except TimeoutError as e:
            raise HealthCheckInitializationError(
                f"Fetch positions not resolved for kafka health check, topic={self._topic}",
                context=self._context("resolve_positions", correlation_id),
                topic=self._topic,
                timeout_seconds=self._config.subscription_timeout,
            ) from e

        self._communication_result.record_success()

    async def _resolve_positions(self, consumer: AIOKafkaConsumer) -> None:
        for partition in consumer.assignment():
            offset = await consumer.position(partition)
            logger.debug(
                f"Health check fetch position resolved for {partition}",
                extra={"topic": self._topic, "offset": offset},
            )

    async def _release_clients(self) -> None:
        producer, self._producer = self._producer, None
        consumer, self._consumer = self._consumer, None

        if producer is not None:
            try:
                await producer.stop()
            except Exception as e:
                logger.warning(f"Error stopping health check producer: {e}")

        if consumer is not None:
            try:
                await consumer.stop()
            except Exception as e:
                logger.warning(f"Error stopping health check consumer: {e}")

    # =========================================================================
    # Consume Loop
    # =========================================================================

    async def _consume_loop(self, correlation_id: UUID) -> None:
        """Pull bounded batches until stopped, caching this instance's records.

        A failed receive call is logged and retried after ``poll_timeout``;
        it never ends the loop, since the loop is the only way probes can
        succeed again.
        """
        consumer = self._consumer
        if consumer is None:
            logger.warning(
                "Consumer not available in health check consume loop",
                extra={"topic": self._topic, "correlation_id": str(correlation_id)},
            )
            return

        logger.info(
            f"Health check consume loop started for topic {self._topic}",
            extra={"topic": self._topic, "correlation_id": str(correlation_id)},
        )

        try:
            while self._running:
                try:
                    batches = await consumer.getmany(timeout_ms=self._poll_timeout_ms)
                except Exception as e:
                    self._receive_failures += 1
                    logger.exception(
                        f"Health check receive failed for topic {self._topic}: "
                        f"{sanitize_error_message(e)}",
                        extra={
                            "topic": self._topic,
                            "correlation_id": str(correlation_id),
                            "error_type": type(e).__name__,
                            "receive_failures": self._receive_failures,
                        },
                    )
                    await asyncio.sleep(self._config.poll_timeout)
                    continue

                for records in batches.values():
                    self._accept_records(records)

        except asyncio.CancelledError:
            logger.info(
                f"Health check consume loop cancelled for topic {self._topic}",
                extra={"topic": self._topic, "correlation_id": str(correlation_id)},
            )
            raise

        finally:
            logger.info(
                f"Health check consume loop exiting for topic {self._topic}",
                extra={"topic": self._topic, "correlation_id": str(correlation_id)},
            )

    def _accept_records(self, records: Iterable[object]) -> None:
        for record in records:
            key = getattr(record, "key", None)
            if not is_own_key(key, self._consumer_group_id):
                continue
            value = getattr(record, "value", None)
            if value is None:
                logger.debug(
                    "Skipping health check record without value",
                    extra={"topic": self._topic, "key": key},
                )
                continue
            self._cache.put(key, value)

    # =========================================================================
    # Probe
    # =========================================================================

    async def health_check(self) -> ModelKafkaHealthResult:
        """Run one round-trip probe and return the verdict.

        Never raises for broker problems: every failure is folded into a
        DOWN verdict with the cause in ``details["error"]``. Bounded by
        roughly twice ``send_receive_timeout`` (send, then wait).
        """
        if not self._ready:
            return ModelKafkaHealthResult.down(
                self._topic,
                InfraUnavailableError(
                    "Kafka health check is not started",
                    context=self._context("health_check"),
                ),
            )

        task = self._consume_task
        if task is None or task.done():
            return ModelKafkaHealthResult.down(
                self._topic,
                InfraUnavailableError(
                    "Kafka health check consume loop is not running",
                    context=self._context("health_check"),
                ),
            )

        if self._send_lock.locked():
            logger.debug(
                "Ignore health check, already running...",
                extra={"topic": self._topic},
            )
            if self._last_verdict is not None:
                return self._last_verdict
            return ModelKafkaHealthResult.down(
                self._topic,
                InfraUnavailableError(
                    "Kafka health check already in progress",
                    context=self._context("health_check"),
                ),
            )

        correlation_id = uuid4()
        async with self._send_lock:
            expected = await self._send_message(correlation_id)

        if expected is None:
            verdict = ModelKafkaHealthResult.down(
                self._topic, self._communication_result.get().error
            )
        else:
            verdict = await self._await_round_trip(expected, correlation_id)

        self._last_verdict = verdict
        return verdict

    async def _send_message(self, correlation_id: UUID) -> str | None:
        """Publish a fresh probe message.

        REQUIRES: self._send_lock held by caller.

        Returns:
            The probe message on success, None after recording a failure
            as the communication result.
        """
        message = str(uuid4())
        key = build_correlation_key(message, self._consumer_group_id)

        producer = self._producer
        if producer is None:
            self._communication_result.record_failure(
                InfraUnavailableError(
                    "Kafka health check producer is not available",
                    context=self._context("send", correlation_id),
                )
            )
            return None

        logger.debug(
            f"Send health check message = {message}",
            extra={"topic": self._topic, "correlation_id": str(correlation_id)},
        )

        try:
            await asyncio.wait_for(
                producer.send_and_wait(self._topic, key=key, value=message),
                timeout=self._send_receive_timeout,
            )
        except TimeoutError as e:
            logger.warning(
                "Kafka health check timed out.",
                extra={"topic": self._topic, "correlation_id": str(correlation_id)},
            )
            error = InfraTimeoutError(
                f"Timeout sending health check message to topic {self._topic} "
                f"after {self._send_receive_timeout}s",
                context=self._context("send", correlation_id),
                topic=self._topic,
                timeout_seconds=self._send_receive_timeout,
            )
            error.__cause__ = e
            self._communication_result.record_failure(error)
            return None
        except Exception as e:
            logger.warning(
                f"Kafka health check execution failed: {sanitize_error_message(e)}",
                extra={
                    "topic": self._topic,
                    "correlation_id": str(correlation_id),
                    "error_type": type(e).__name__,
                },
            )
            error = InfraConnectionError(
                f"Failed to send health check message to topic {self._topic}: "
                f"{sanitize_error_message(e)}",
                context=self._context("send", correlation_id),
                topic=self._topic,
            )
            error.__cause__ = e
            self._communication_result.record_failure(error)
            return None

        self._communication_result.record_success()
        return message

    async def _await_round_trip(
        self, expected: str, correlation_id: UUID
    ) -> ModelKafkaHealthResult:
        key = build_correlation_key(expected, self._consumer_group_id)
        started = time.monotonic()

        while True:
            received = self._cache.get(key)
            elapsed = time.monotonic() - started

            if received == expected:
                logger.debug(
                    "Kafka health check round trip completed",
                    extra={
                        "topic": self._topic,
                        "correlation_id": str(correlation_id),
                        "elapsed_ms": elapsed * 1000,
                    },
                )
                return ModelKafkaHealthResult.up(
                    self._topic, elapsed_ms=round(elapsed * 1000, 3)
                )

            if elapsed > self._send_receive_timeout:
                elapsed_ms = round(elapsed * 1000, 3)
                result = self._communication_result.get()
                if result.is_failure:
                    return ModelKafkaHealthResult.down(
                        self._topic, result.error, elapsed_ms=elapsed_ms
                    )

                logger.warning(
                    f"Kafka health check round trip timed out on topic {self._topic}",
                    extra={
                        "topic": self._topic,
                        "correlation_id": str(correlation_id),
                        "elapsed_ms": elapsed_ms,
                    },
                )
                return ModelKafkaHealthResult.down(
                    self._topic,
                    InfraTimeoutError(
                        "Sending and receiving took longer than "
                        f"{self._send_receive_timeout}s, topic={self._topic}",
                        context=self._context("round_trip", correlation_id),
                        topic=self._topic,
                        timeout_seconds=self._send_receive_timeout,
                    ),
                    elapsed_ms=elapsed_ms,
                )

            await asyncio.sleep(self._config.cache_poll_interval)

    def _reject_managed_options(
        self, name: str, options: Mapping[str, object], managed: frozenset[str]
    ) -> None:
        conflicts = sorted(managed.intersection(options))
        if conflicts:
            raise ProtocolConfigurationError(
                f"{name} cannot override {', '.join(conflicts)}; "
                "set them through ModelKafkaHealthConfig",
                context=self._context("configure"),
                parameter=name,
                conflicts=conflicts,
            )

    def _context(
        self, operation: str, correlation_id: UUID | None = None
    ) -> ModelInfraErrorContext:
        return ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.KAFKA,
            operation=operation,
            target_name=f"kafka.{self._topic}",
            correlation_id=correlation_id or uuid4(),
        )


__all__ = ["KafkaConsumingHealthIndicator"]
