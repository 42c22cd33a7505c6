# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Utility modules for the Kafka health probe.

    - util_env_parsing: Type-safe environment variable parsing
    - util_error_sanitization: Error message sanitization for health details and logs
    - util_instance_identity: Consumer group identity and correlation keys
    - util_logging: Root logging configuration for entry points
    - util_topic_validation: Kafka topic name validation
"""

from kafka_health_probe.utils.util_env_parsing import (
    parse_env_float,
    parse_env_int,
    parse_env_str,
)
from kafka_health_probe.utils.util_error_sanitization import (
    SENSITIVE_PATTERNS,
    sanitize_bootstrap_servers,
    sanitize_error_message,
    sanitize_error_string,
)
from kafka_health_probe.utils.util_instance_identity import (
    CONSUMER_GROUP_PREFIX,
    build_consumer_group_id,
    build_correlation_key,
    is_own_key,
)
from kafka_health_probe.utils.util_logging import configure_logging
from kafka_health_probe.utils.util_topic_validation import validate_topic_name

__all__: list[str] = [
    "CONSUMER_GROUP_PREFIX",
    "SENSITIVE_PATTERNS",
    "build_consumer_group_id",
    "build_correlation_key",
    "configure_logging",
    "is_own_key",
    "parse_env_float",
    "parse_env_int",
    "parse_env_str",
    "sanitize_bootstrap_servers",
    "sanitize_error_message",
    "sanitize_error_string",
    "validate_topic_name",
]
