# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Instance identity and correlation key derivation.

Every health check instance consumes with its own consumer group, named
``health-check-<base id>-<host address>``. The same string is embedded in
every probe key, which is how the consume loop tells its own probe messages
apart from those published by other instances sharing the topic.
"""

from __future__ import annotations

import socket
from uuid import uuid4

from kafka_health_probe.enums import EnumInfraTransportType
from kafka_health_probe.errors import (
    HealthCheckInitializationError,
    ModelInfraErrorContext,
)

CONSUMER_GROUP_PREFIX = "health-check-"


def resolve_host_address() -> str:
    """Return this host's network address.

    Raises:
        HealthCheckInitializationError: If the host name cannot be resolved.
    """
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as e:
        raise HealthCheckInitializationError(
            "Unable to resolve local host address for the health check consumer group",
            context=ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.RUNTIME,
                operation="resolve_host_address",
            ),
        ) from e


def build_consumer_group_id(group_id: str | None = None) -> str:
    """Build the unique consumer group id used as the instance identity.

    Args:
        group_id: Configured base group id. A random UUID4 is used when None.

    Returns:
        ``"health-check-" + group_id + "-" + host_address``

    Raises:
        HealthCheckInitializationError: If the host address cannot be resolved.
    """
    base = group_id if group_id else str(uuid4())
    return f"{CONSUMER_GROUP_PREFIX}{base}-{resolve_host_address()}"


def build_correlation_key(message: str, consumer_group_id: str) -> str:
    """Derive the message key joining a probe message to its instance."""
    return f"{message}-{consumer_group_id}"


def is_own_key(key: str | None, consumer_group_id: str) -> bool:
    """Whether a received record key was produced by this instance."""
    return key is not None and consumer_group_id in key


__all__: list[str] = [
    "CONSUMER_GROUP_PREFIX",
    "build_consumer_group_id",
    "build_correlation_key",
    "is_own_key",
    "resolve_host_address",
]
