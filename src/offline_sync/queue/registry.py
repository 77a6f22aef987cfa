# src/offline_sync/queue/registry.py

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from ..errors import UnknownQueueError
from .task_queue import TaskQueue


class QueueRegistry:
    """
    Owns the named queues of one process.

    Names are fixed at construction; there is no way to add a queue later,
    so a typo in a caller surfaces as UnknownQueueError instead of a silently
    created queue nobody processes.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self._lock = threading.Lock()
        self._queues: dict[str, TaskQueue] = {}
        for name in names:
            name = name.strip()
            if not name:
                continue
            if name in self._queues:
                raise ValueError(f"duplicate queue name: {name!r}")
            self._queues[name] = TaskQueue(name)
        if not self._queues:
            raise ValueError("at least one queue name is required")

    def __iter__(self) -> Iterator[TaskQueue]:
        with self._lock:
            return iter(list(self._queues.values()))

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._queues

    def names(self) -> list[str]:
        with self._lock:
            return list(self._queues)

    def get(self, name: str) -> TaskQueue:
        with self._lock:
            queue = self._queues.get(name)
        if queue is None:
            raise UnknownQueueError(name)
        return queue
