# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Correlation cache shared by the consume loop and probes."""

from kafka_health_probe.cache.correlation_cache import CorrelationCache

__all__: list[str] = ["CorrelationCache"]
