# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Atomically swappable cell for the latest broker communication outcome.

Written by the subscription bootstrap and by every send attempt, read by
probes whose round trip timed out. Each write replaces the whole value, so
last-writer-wins; a reader may see the outcome of a concurrent probe's send,
which only changes the diagnostic attached to a DOWN verdict, never the
verdict itself.
"""

from __future__ import annotations

import threading

from kafka_health_probe.models.model_communication_result import (
    ModelCommunicationResult,
)


class CommunicationResultHolder:
    """Lock-guarded reference to an immutable ModelCommunicationResult."""

    def __init__(self, initial: ModelCommunicationResult) -> None:
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> ModelCommunicationResult:
        with self._lock:
            return self._value

    def set(self, value: ModelCommunicationResult) -> None:
        with self._lock:
            self._value = value

    def record_success(self) -> None:
        self.set(ModelCommunicationResult.success())

    def record_failure(self, error: BaseException) -> None:
        self.set(ModelCommunicationResult.failure(error))


__all__ = ["CommunicationResultHolder"]
