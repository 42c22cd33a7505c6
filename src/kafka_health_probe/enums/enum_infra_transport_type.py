# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Defines the transport types attached to error context so that failures can
be attributed to the broker or to the local runtime.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Infrastructure transport types used in error context.

    Attributes:
        KAFKA: Kafka message broker transport
        RUNTIME: Local runtime (identity derivation, lifecycle state)
    """

    KAFKA = "kafka"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]
