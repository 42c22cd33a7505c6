# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka consuming health check configuration model.

Environment Variables:
    All variables are optional and override both defaults and YAML values.

    KAFKA_BOOTSTRAP_SERVERS: Kafka broker addresses (comma-separated)
        Default: "localhost:9092"
    KAFKA_HEALTH_TOPIC: Topic used for both publishing and consuming probes
        Default: "health-checks"
    KAFKA_HEALTH_GROUP_ID: Base of the per-instance consumer group id
        Default: unset (a UUID4 is generated per instance)
    KAFKA_HEALTH_SEND_RECEIVE_TIMEOUT: Round-trip deadline in seconds
        Default: 2.5
    KAFKA_HEALTH_POLL_TIMEOUT: Wait per background receive call in seconds
        Default: 0.2
    KAFKA_HEALTH_SUBSCRIPTION_TIMEOUT: Deadline for partition assignment in seconds
        Default: 5.0
    KAFKA_HEALTH_CACHE_MAXIMUM_SIZE: Correlation cache capacity
        Default: 200

Example:
    ```yaml
    # kafka-health.yaml
    bootstrap_servers: kafka1:9092,kafka2:9092
    topic: platform.health-checks
    send_receive_timeout: 2.0
    poll_timeout: 0.1
    cache:
      maximum_size: 500
    ```

    ```python
    config = ModelKafkaHealthConfig.from_yaml(Path("kafka-health.yaml"))
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from uuid import uuid4

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kafka_health_probe.enums import EnumInfraTransportType
from kafka_health_probe.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from kafka_health_probe.models.model_kafka_health_cache_config import (
    ModelKafkaHealthCacheConfig,
)
from kafka_health_probe.utils.util_env_parsing import (
    parse_env_float,
    parse_env_int,
    parse_env_str,
)
from kafka_health_probe.utils.util_error_sanitization import sanitize_bootstrap_servers
from kafka_health_probe.utils.util_topic_validation import validate_topic_name

ENV_BOOTSTRAP_SERVERS = "KAFKA_BOOTSTRAP_SERVERS"
ENV_TOPIC = "KAFKA_HEALTH_TOPIC"
ENV_GROUP_ID = "KAFKA_HEALTH_GROUP_ID"
ENV_SEND_RECEIVE_TIMEOUT = "KAFKA_HEALTH_SEND_RECEIVE_TIMEOUT"
ENV_POLL_TIMEOUT = "KAFKA_HEALTH_POLL_TIMEOUT"
ENV_SUBSCRIPTION_TIMEOUT = "KAFKA_HEALTH_SUBSCRIPTION_TIMEOUT"
ENV_CACHE_MAXIMUM_SIZE = "KAFKA_HEALTH_CACHE_MAXIMUM_SIZE"


class ModelKafkaHealthConfig(BaseModel):
    """Configuration for KafkaConsumingHealthIndicator.

    All durations are in seconds.

    Attributes:
        bootstrap_servers: Kafka broker addresses (comma-separated)
        topic: Topic used for both publishing and consuming probe messages
        group_id: Base of the per-instance consumer group id (None = UUID4)
        send_receive_timeout: Deadline for the send and for the round trip;
            also the expiry of correlation cache entries
        poll_timeout: Bounded wait of each background receive call
        subscription_timeout: Deadline for the first partition assignment
        cache_poll_interval: Interval between correlation cache checks while
            a probe waits for its message
        connect_timeout: Deadline for starting the producer and consumer
        auto_offset_reset: Consumer offset reset policy
        acks: Producer acknowledgment policy
        cache: Correlation cache sizing
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    bootstrap_servers: str = Field(
        default="localhost:9092",
        min_length=1,
        description="Kafka broker addresses (comma-separated)",
    )
    topic: str = Field(
        default="health-checks",
        description="Topic used for both publishing and consuming probes",
    )
    group_id: str | None = Field(
        default=None,
        description="Base of the per-instance consumer group id",
    )
    send_receive_timeout: float = Field(
        default=2.5,
        gt=0.0,
        description="Send and round-trip deadline; correlation entry expiry",
    )
    poll_timeout: float = Field(
        default=0.2,
        gt=0.0,
        description="Bounded wait of each background receive call",
    )
    subscription_timeout: float = Field(
        default=5.0,
        gt=0.0,
        description="Deadline for the first partition assignment",
    )
    cache_poll_interval: float = Field(
        default=0.005,
        gt=0.0,
        description="Interval between correlation cache checks during a probe",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Deadline for starting the producer and the consumer",
    )
    auto_offset_reset: Literal["earliest", "latest"] = Field(
        default="latest",
        description="Consumer offset reset policy",
    )
    acks: Literal["all", "0", "1"] = Field(
        default="all",
        description="Producer acknowledgment policy",
    )
    cache: ModelKafkaHealthCacheConfig = Field(
        default_factory=ModelKafkaHealthCacheConfig,
        description="Correlation cache sizing",
    )

    @field_validator("topic", mode="after")
    @classmethod
    def validate_topic(cls, v: str) -> str:
        """Validate the topic against Kafka naming rules."""
        try:
            validate_topic_name(v)
        except RuntimeHostError as e:
            raise ValueError(e.message) from e
        return v

    @classmethod
    def default(cls) -> ModelKafkaHealthConfig:
        """Create a configuration from defaults with environment overrides.

        Raises:
            ProtocolConfigurationError: If an override is invalid
        """
        return cls._build({})

    @classmethod
    def from_yaml(cls, path: Path) -> ModelKafkaHealthConfig:
        """Load a configuration from YAML, then apply environment overrides.

        Args:
            path: Path to a YAML file holding a mapping of config fields

        Raises:
            FileNotFoundError: If the YAML file does not exist
            ProtocolConfigurationError: If the content is not a valid config
        """
        if not path.exists():
            raise FileNotFoundError(f"Kafka health config not found: {path}")

        with path.open(encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ProtocolConfigurationError(
                    f"Invalid YAML in {path}",
                    context=_config_context("load_yaml"),
                    path=str(path),
                ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ProtocolConfigurationError(
                f"Kafka health config in {path} must be a mapping, got {type(data).__name__}",
                context=_config_context("load_yaml"),
                path=str(path),
            )

        return cls._build(data)

    @classmethod
    def _build(cls, values: dict[str, object]) -> ModelKafkaHealthConfig:
        merged = dict(values)

        for field_name, value in (
            ("bootstrap_servers", parse_env_str(ENV_BOOTSTRAP_SERVERS)),
            ("topic", parse_env_str(ENV_TOPIC)),
            ("group_id", parse_env_str(ENV_GROUP_ID)),
            ("send_receive_timeout", parse_env_float(ENV_SEND_RECEIVE_TIMEOUT)),
            ("poll_timeout", parse_env_float(ENV_POLL_TIMEOUT)),
            ("subscription_timeout", parse_env_float(ENV_SUBSCRIPTION_TIMEOUT)),
        ):
            if value is not None:
                merged[field_name] = value

        maximum_size = parse_env_int(ENV_CACHE_MAXIMUM_SIZE)
        if maximum_size is not None:
            cache_values = merged.get("cache") or {}
            if not isinstance(cache_values, dict):
                cache_values = {}
            merged["cache"] = {**cache_values, "maximum_size": maximum_size}

        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            raise ProtocolConfigurationError(
                f"Invalid Kafka health configuration: {e.error_count()} error(s)",
                context=_config_context("validate_config"),
                errors=[
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
            ) from e

    def safe_summary(self) -> dict[str, object]:
        """Return the configuration as a dict safe for logging."""
        summary = self.model_dump(mode="json")
        summary["bootstrap_servers"] = sanitize_bootstrap_servers(
            self.bootstrap_servers
        )
        return summary


def _config_context(operation: str) -> ModelInfraErrorContext:
    return ModelInfraErrorContext(
        transport_type=EnumInfraTransportType.RUNTIME,
        operation=operation,
        target_name="kafka_health_config",
        correlation_id=uuid4(),
    )


__all__ = [
    "ENV_BOOTSTRAP_SERVERS",
    "ENV_CACHE_MAXIMUM_SIZE",
    "ENV_GROUP_ID",
    "ENV_POLL_TIMEOUT",
    "ENV_SEND_RECEIVE_TIMEOUT",
    "ENV_SUBSCRIPTION_TIMEOUT",
    "ENV_TOPIC",
    "ModelKafkaHealthConfig",
]
