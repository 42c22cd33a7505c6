# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Command line interface for the Kafka health probe."""

from kafka_health_probe.cli.commands import cli

__all__: list[str] = ["cli"]
