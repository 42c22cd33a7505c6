# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Type-safe environment variable parsing.

Invalid values raise ProtocolConfigurationError naming the variable, so a
misconfigured deployment fails at startup instead of probing with defaults.
"""

from __future__ import annotations

import os

from kafka_health_probe.enums import EnumInfraTransportType
from kafka_health_probe.errors import ModelInfraErrorContext, ProtocolConfigurationError


def _invalid(name: str, raw: str, expected: str) -> ProtocolConfigurationError:
    return ProtocolConfigurationError(
        f"Environment variable {name} must be {expected}, got {raw!r}",
        context=ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="parse_env",
        ),
        parameter=name,
        value=raw,
    )


def parse_env_float(name: str, default: float | None = None) -> float | None:
    """Read a float from the environment, returning ``default`` when unset."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise _invalid(name, raw, "a number") from e


def parse_env_int(name: str, default: int | None = None) -> int | None:
    """Read an integer from the environment, returning ``default`` when unset."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise _invalid(name, raw, "an integer") from e


def parse_env_str(name: str, default: str | None = None) -> str | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


__all__: list[str] = [
    "parse_env_float",
    "parse_env_int",
    "parse_env_str",
]
