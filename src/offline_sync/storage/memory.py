# src/offline_sync/storage/memory.py

from __future__ import annotations

import threading
from dataclasses import replace

from ..queue.models import FailedTask, Task


class InMemoryQueueStore:
    """
    Process-local DurableStore.

    Keeps per-task copies so later mutation of live tasks (retry counters)
    does not leak into "persisted" state. Payloads are shared, not copied.
    Useful for tests and for embedding apps that do not need durability
    across restarts.
    """

    def __init__(self) -> None:
        self._records: dict[str, list[Task]] = {}
        self._lock = threading.Lock()

    def save(self, queue_name: str, tasks: list[Task]) -> None:
        snapshot = [replace(t) for t in tasks]
        with self._lock:
            self._records[queue_name] = snapshot

    def load(self, queue_name: str) -> list[Task] | None:
        with self._lock:
            tasks = self._records.get(queue_name)
        return [replace(t) for t in tasks] if tasks is not None else None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class InMemoryFailedTaskLog:
    def __init__(self) -> None:
        self._records: list[FailedTask] = []
        self._lock = threading.Lock()

    def append_failed(self, record: FailedTask) -> None:
        with self._lock:
            self._records.append(record)

    def list_failed(self) -> list[FailedTask]:
        with self._lock:
            return list(self._records)
