# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Correlation cache statistics snapshot."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelCacheStats(BaseModel):
    """Point-in-time counters of a CorrelationCache.

    Attributes:
        size: Resident entry count at snapshot time
        hits: get() calls that returned a live entry
        misses: get() calls that found nothing (absent or expired)
        evictions: Entries dropped to respect the capacity bound
        expirations: Entries dropped because they outlived their expiry
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    size: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    expirations: int = Field(default=0, ge=0)

    @property
    def request_count(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that hit; 1.0 when nothing was looked up."""
        if self.request_count == 0:
            return 1.0
        return self.hits / self.request_count


__all__ = ["ModelCacheStats"]
