# tests/test_task_queue.py

from __future__ import annotations

import pytest

from offline_sync.errors import UnknownQueueError
from offline_sync.queue.models import Task, new_task_id
from offline_sync.queue.registry import QueueRegistry
from offline_sync.queue.task_queue import TaskQueue


def _task(task_id: str, enqueued_at: int = 1000) -> Task:
    return Task(id=task_id, kind="k", payload={"n": task_id}, enqueued_at=enqueued_at)


def test_append_keeps_fifo_order() -> None:
    q = TaskQueue("q")
    for i in ("a", "b", "c"):
        q.append(_task(i))

    assert [t.id for t in q.snapshot()] == ["a", "b", "c"]
    assert len(q) == 3
    assert "b" in q
    assert "z" not in q


def test_snapshot_is_a_copy() -> None:
    q = TaskQueue("q")
    q.append(_task("a"))

    snap = q.snapshot()
    snap[0].retry_count = 2
    snap.append(_task("b"))

    assert len(q) == 1
    live = q.get("a")
    assert live is not None and live.retry_count == 0


def test_remove_is_idempotent() -> None:
    q = TaskQueue("q")
    q.append(_task("a"))
    q.append(_task("b"))

    assert q.remove("a") is True
    assert q.remove("a") is False
    assert q.remove("unknown") is False
    assert [t.id for t in q.snapshot()] == ["b"]


def test_begin_processing_twice_is_a_caller_error() -> None:
    q = TaskQueue("q")
    q.begin_processing()
    with pytest.raises(RuntimeError):
        q.begin_processing()

    q.end_processing(at=42)
    assert q.is_processing is False
    assert q.last_processed_at == 42


def test_remove_older_than_returns_dropped() -> None:
    q = TaskQueue("q", [_task("old", 10), _task("new", 100)])

    dropped = q.remove_older_than(50)

    assert [t.id for t in dropped] == ["old"]
    assert [t.id for t in q.snapshot()] == ["new"]


def test_registry_names_are_fixed() -> None:
    reg = QueueRegistry(["a", "b"])

    assert reg.names() == ["a", "b"]
    assert reg.get("a").name == "a"
    assert "b" in reg
    with pytest.raises(UnknownQueueError):
        reg.get("c")
    # still a KeyError for callers that catch that
    with pytest.raises(KeyError):
        reg.get("c")


def test_registry_rejects_duplicates_and_empty() -> None:
    with pytest.raises(ValueError):
        QueueRegistry(["a", "a"])
    with pytest.raises(ValueError):
        QueueRegistry([" ", ""])


def test_task_ids_are_unique_and_time_prefixed() -> None:
    ids = {new_task_id(1_700_000_000_000) for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith("1700000000000-") for i in ids)


def test_task_from_dict_rejects_broken_records() -> None:
    ok = Task.from_dict({"id": "t", "kind": "k", "payload": [1], "enqueued_at": 5})
    assert ok.retry_count == 0 and ok.max_retries == 3 and ok.payload == [1]

    with pytest.raises(ValueError):
        Task.from_dict({"kind": "k"})
    with pytest.raises(ValueError):
        Task.from_dict({"id": "t", "kind": "k", "retry_count": -1})
    with pytest.raises(ValueError):
        Task.from_dict({"id": "t", "kind": "k", "max_retries": "many"})
    with pytest.raises(ValueError):
        Task.from_dict(["not", "a", "dict"])


def test_task_from_dict_clamps_retry_count() -> None:
    t = Task.from_dict({"id": "t", "kind": "k", "retry_count": 9, "max_retries": 3})
    assert t.retry_count == 3
    assert t.is_exhausted
