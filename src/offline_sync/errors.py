# src/offline_sync/errors.py

from __future__ import annotations


class OfflineSyncError(Exception):
    """Base class for errors raised by this package."""


class UnknownQueueError(OfflineSyncError, KeyError):
    """Queue names are fixed at startup; this one was never configured."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown queue: {self.name!r}"


class DeliveryError(OfflineSyncError):
    """An executor failed to deliver a task (counts as one failed attempt)."""


class UnknownOperationError(DeliveryError):
    """No executor is registered for the task kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"No executor registered for kind {kind!r}")
        self.kind = kind


class ExecutorTimeoutError(DeliveryError):
    """The executor did not finish within the configured timeout."""
