# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Logging configuration for the health probe entry points."""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "KAFKA_HEALTH_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from ``KAFKA_HEALTH_LOG_LEVEL``.

    Library code only creates module loggers; handlers are installed here,
    by the CLI, or by the embedding application.

    Args:
        level: Explicit level name. Overrides the environment when given.

    Example:
        >>> configure_logging()
        >>> logger.info("Probe completed", extra={"elapsed_ms": 12.5})
    """
    log_level = (level or os.getenv(ENV_LOG_LEVEL, "INFO")).upper()

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if log_level not in valid_levels:
        print(
            f"Warning: Invalid {ENV_LOG_LEVEL} '{log_level}', using INFO. "
            f"Valid levels: {', '.join(sorted(valid_levels))}",
            file=sys.stderr,
        )
        log_level = "INFO"

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


__all__: list[str] = ["ENV_LOG_LEVEL", "configure_logging"]
