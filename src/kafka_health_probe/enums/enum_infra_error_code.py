# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error code enumeration for infrastructure errors."""

from enum import Enum


class EnumInfraErrorCode(str, Enum):
    """Classification codes carried by every RuntimeHostError."""

    OPERATION_FAILED = "operation_failed"
    INVALID_CONFIGURATION = "invalid_configuration"
    CONNECTION_ERROR = "connection_error"
    TIMEOUT_ERROR = "timeout_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INITIALIZATION_FAILED = "initialization_failed"


__all__ = ["EnumInfraErrorCode"]
