# src/offline_sync/queue/models.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_MAX_RETRIES = 3


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def new_task_id(now: int | None = None) -> str:
    """
    Unique, roughly time-ordered task id: "<13-digit epoch ms>-<12 hex chars>".
    """
    ts = now_ms() if now is None else int(now)
    return f"{ts:013d}-{uuid.uuid4().hex[:12]}"


class TaskState(StrEnum):
    """
    Task lifecycle.

    Only PENDING tasks live in a queue. DELIVERED tasks are removed;
    FAILED tasks are removed and appended to the failed-task log.
    """

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(slots=True)
class Task:
    id: str
    kind: str
    payload: Any
    enqueued_at: int

    retry_count: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES
    last_error: str | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "payload": self.payload,
            "enqueued_at": self.enqueued_at,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Task:
        if not isinstance(data, dict):
            raise ValueError(f"task record must be an object, got {type(data).__name__}")

        task_id = data.get("id")
        kind = data.get("kind")
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("task record is missing 'id'")
        if not isinstance(kind, str) or not kind:
            raise ValueError(f"task {task_id} is missing 'kind'")

        try:
            enqueued_at = int(data.get("enqueued_at", 0))
            retry_count = int(data.get("retry_count", 0))
            max_retries = int(data.get("max_retries", DEFAULT_MAX_RETRIES))
        except (TypeError, ValueError) as e:
            raise ValueError(f"task {task_id} has a non-numeric counter") from e

        if retry_count < 0 or max_retries < 1:
            raise ValueError(f"task {task_id} has invalid retry counters")

        last_error = data.get("last_error")
        return cls(
            id=task_id,
            kind=kind,
            payload=data.get("payload"),
            enqueued_at=enqueued_at,
            # Clamp so a hand-edited record cannot break 0 <= retry_count <= max_retries.
            retry_count=min(retry_count, max_retries),
            max_retries=max_retries,
            last_error=str(last_error) if last_error is not None else None,
        )


@dataclass(slots=True, frozen=True)
class FailedTask:
    """A task that exhausted its retry budget, kept for operator inspection."""

    queue_name: str
    task: Task
    error: str | None
    failed_at: int

    @property
    def state(self) -> TaskState:
        return TaskState.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "queue_name": self.queue_name,
            "task": self.task.to_dict(),
            "error": self.error,
            "failed_at": self.failed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FailedTask:
        return cls(
            queue_name=str(data["queue_name"]),
            task=Task.from_dict(data["task"]),
            error=data.get("error"),
            failed_at=int(data.get("failed_at") or 0),
        )


@dataclass(slots=True, frozen=True)
class QueueStatus:
    pending: int
    last_processed_at: int | None
    is_processing: bool = False
