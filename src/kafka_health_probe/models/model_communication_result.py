# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Latest known outcome of communicating with the broker."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelCommunicationResult(BaseModel):
    """Either success or a failure carrying its cause.

    Instances are immutable; a new outcome replaces the previous one as a
    whole (see CommunicationResultHolder).

    Example:
        >>> ModelCommunicationResult.success().is_failure
        False
        >>> ModelCommunicationResult.failure(TimeoutError("no ack")).is_failure
        True
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    error: BaseException | None = Field(
        default=None,
        description="Cause of the failure, None on success",
    )

    @classmethod
    def success(cls) -> ModelCommunicationResult:
        return cls()

    @classmethod
    def failure(cls, error: BaseException) -> ModelCommunicationResult:
        return cls(error=error)

    @property
    def is_failure(self) -> bool:
        return self.error is not None


__all__ = ["ModelCommunicationResult"]
