# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka topic name validation utility.

Validation rules (per the Kafka documentation):
    - Non-empty string
    - Maximum 255 characters
    - Not the reserved names ``"."`` or ``".."``
    - Contains only: ``a-z``, ``A-Z``, ``0-9``, ``.`` (period), ``_`` (underscore),
      ``-`` (hyphen)

Example:
    >>> from kafka_health_probe.utils.util_topic_validation import validate_topic_name
    >>> validate_topic_name("health-checks")      # passes silently
    >>> validate_topic_name("bad topic!")         # raises ProtocolConfigurationError
"""

from __future__ import annotations

import re
from uuid import UUID, uuid4

from kafka_health_probe.enums import EnumInfraTransportType
from kafka_health_probe.errors import ModelInfraErrorContext, ProtocolConfigurationError

# Characters allowed in a Kafka topic name.
_VALID_TOPIC_RE = re.compile(r"^[a-zA-Z0-9._-]+$")

# Maximum topic name length enforced by the Kafka broker.
_MAX_TOPIC_LENGTH = 255


def validate_topic_name(
    topic: str,
    correlation_id: UUID | None = None,
) -> None:
    """Validate a Kafka topic name.

    Args:
        topic: The Kafka topic name to validate.
        correlation_id: Optional correlation ID for error context. When
            ``None``, a new correlation ID is generated automatically.

    Raises:
        ProtocolConfigurationError: If the topic name violates any of the
            rules listed above.
    """
    context = ModelInfraErrorContext(
        transport_type=EnumInfraTransportType.KAFKA,
        operation="validate_topic",
        correlation_id=correlation_id or uuid4(),
    )

    if not topic:
        raise ProtocolConfigurationError(
            "Topic name cannot be empty",
            context=context,
            parameter="topic",
            value=topic,
        )

    if len(topic) > _MAX_TOPIC_LENGTH:
        raise ProtocolConfigurationError(
            f"Topic name '{topic}' exceeds maximum length of {_MAX_TOPIC_LENGTH} characters",
            context=context,
            parameter="topic",
            value=topic,
        )

    if topic in (".", ".."):
        raise ProtocolConfigurationError(
            f"Topic name '{topic}' is reserved and cannot be used",
            context=context,
            parameter="topic",
            value=topic,
        )

    if not _VALID_TOPIC_RE.match(topic):
        raise ProtocolConfigurationError(
            f"Topic name '{topic}' contains invalid characters. "
            "Only alphanumeric characters, periods (.), underscores (_), "
            "and hyphens (-) are allowed",
            context=context,
            parameter="topic",
            value=topic,
        )


__all__ = ["validate_topic_name"]
