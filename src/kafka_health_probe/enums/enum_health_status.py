# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Health status enumeration for the round-trip health probe."""

from enum import Enum


class EnumHealthStatus(str, Enum):
    """Binary health verdict reported by the Kafka consuming health indicator.

    Attributes:
        UP: The probe message round-tripped within the deadline.
        DOWN: The probe failed, timed out, or the component is not serving.
    """

    UP = "up"
    DOWN = "down"


__all__ = ["EnumHealthStatus"]
