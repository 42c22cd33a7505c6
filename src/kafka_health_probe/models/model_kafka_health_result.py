# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Health verdict returned by a probe."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from kafka_health_probe.enums import EnumHealthStatus
from kafka_health_probe.utils.util_error_sanitization import sanitize_error_message

HealthDetailValue = str | int | float | bool | None


class ModelKafkaHealthResult(BaseModel):
    """Binary verdict plus diagnostic details.

    Details always carry ``topic``. Failures add ``error`` (sanitized
    "{Type}: {message}") and ``error_type``. Verdicts reached after a send
    add ``elapsed_ms``.

    Example:
        >>> result = ModelKafkaHealthResult.up("health-checks", elapsed_ms=42.0)
        >>> result.to_dict()
        {'status': 'up', 'details': {'topic': 'health-checks', 'elapsed_ms': 42.0}}
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: EnumHealthStatus = Field(..., description="Binary health verdict")
    details: dict[str, HealthDetailValue] = Field(
        default_factory=dict,
        description="Diagnostic details (topic, error, elapsed_ms)",
    )

    @classmethod
    def up(cls, topic: str, **details: HealthDetailValue) -> ModelKafkaHealthResult:
        return cls(status=EnumHealthStatus.UP, details={"topic": topic, **details})

    @classmethod
    def down(
        cls,
        topic: str,
        error: BaseException | None = None,
        **details: HealthDetailValue,
    ) -> ModelKafkaHealthResult:
        """Build a DOWN verdict, attaching the sanitized cause when known."""
        values: dict[str, HealthDetailValue] = {"topic": topic}
        if error is not None:
            values["error"] = sanitize_error_message(error)
            values["error_type"] = type(error).__name__
        values.update(details)
        return cls(status=EnumHealthStatus.DOWN, details=values)

    @property
    def is_up(self) -> bool:
        return self.status is EnumHealthStatus.UP

    def to_dict(self) -> dict[str, object]:
        """Render the verdict for an external health reporting framework."""
        return {"status": self.status.value, "details": dict(self.details)}


__all__ = ["HealthDetailValue", "ModelKafkaHealthResult"]
