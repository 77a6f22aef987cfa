# src/offline_sync/queue/task_queue.py

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace

from .models import Task

logger = logging.getLogger(__name__)


class TaskQueue:
    """
    Pending tasks for one operation family, in insertion (= attempt) order.

    The queue itself never persists anything; the SyncManager flushes it
    after every mutation it cares about.

    Thread-safety:
    - list mutations are guarded by a lock, so a connector thread may append
      while the event loop is processing
    - `is_processing` is a reentrancy flag, not a lock: the SyncManager must
      check it before calling begin_processing()
    """

    def __init__(self, name: str, tasks: Iterable[Task] | None = None) -> None:
        if not name or not name.strip():
            raise ValueError("queue name is required")
        self.name = name
        self._tasks: list[Task] = list(tasks or [])
        self._lock = threading.Lock()
        self.is_processing = False
        self.last_processed_at: int | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return self.get(task_id) is not None if isinstance(task_id, str) else False

    def append(self, task: Task) -> None:
        with self._lock:
            self._tasks.append(task)

    def snapshot(self) -> list[Task]:
        """
        Copy of the current tasks.

        Used to bound one processing pass: tasks appended after the snapshot
        are only seen by the next pass.
        """
        with self._lock:
            return [replace(t) for t in self._tasks]

    def get(self, task_id: str) -> Task | None:
        """Live task by id (the same object the queue holds), or None."""
        with self._lock:
            for t in self._tasks:
                if t.id == task_id:
                    return t
        return None

    def remove(self, task_id: str) -> bool:
        """Remove by id. Returns False (and changes nothing) if absent."""
        with self._lock:
            for i, t in enumerate(self._tasks):
                if t.id == task_id:
                    del self._tasks[i]
                    return True
        return False

    def replace_all(self, tasks: Iterable[Task]) -> None:
        with self._lock:
            self._tasks = list(tasks)

    def remove_older_than(self, cutoff_ms: int) -> list[Task]:
        """Drop tasks enqueued before cutoff_ms; returns the removed tasks."""
        with self._lock:
            keep: list[Task] = []
            dropped: list[Task] = []
            for t in self._tasks:
                (dropped if t.enqueued_at < cutoff_ms else keep).append(t)
            self._tasks = keep
        return dropped

    def begin_processing(self) -> None:
        if self.is_processing:
            raise RuntimeError(f"queue {self.name!r} is already processing")
        self.is_processing = True

    def end_processing(self, *, at: int) -> None:
        self.is_processing = False
        self.last_processed_at = at
