# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Correlation cache configuration model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CACHE_MAXIMUM_SIZE = 200


class ModelKafkaHealthCacheConfig(BaseModel):
    """Sizing of the correlation cache.

    Expiry is not configured here: entries live for the send/receive timeout
    of the owning health check, since a probe never waits longer than that.

    Attributes:
        maximum_size: Maximum number of resident correlation entries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    maximum_size: int = Field(
        default=DEFAULT_CACHE_MAXIMUM_SIZE,
        ge=1,
        description="Maximum number of resident correlation entries",
    )


__all__ = ["DEFAULT_CACHE_MAXIMUM_SIZE", "ModelKafkaHealthCacheConfig"]
