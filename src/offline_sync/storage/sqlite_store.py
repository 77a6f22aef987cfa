# src/offline_sync/storage/sqlite_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path

from ..queue.models import FailedTask, Task

logger = logging.getLogger(__name__)


class SqliteQueueStore:
    """
    SQLite queue store (DurableStore + FailedTaskLog).

    One row per queue holding the whole {name, tasks} snapshot as JSON, so a
    save is a single-row upsert inside one transaction and readers never see
    half of a queue.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "queues.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteQueueStore ready db=%s", self._db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS queue_snapshots (
                    name TEXT PRIMARY KEY,
                    body TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS failed_tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    queue_name TEXT NOT NULL,
                    task_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    body TEXT NOT NULL,
                    error TEXT,
                    failed_at INTEGER NOT NULL
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_failed_queue ON failed_tasks(queue_name, failed_at)")
            conn.commit()
        finally:
            conn.close()

    # ---- DurableStore ----

    def save(self, queue_name: str, tasks: list[Task]) -> None:
        body = json.dumps(
            {"name": queue_name, "tasks": [t.to_dict() for t in tasks]},
            ensure_ascii=False,
        )
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO queue_snapshots(name, body, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
                """,
                (queue_name, body, time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Saved queue %s (%d tasks)", queue_name, len(tasks))

    def load(self, queue_name: str) -> list[Task] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT body FROM queue_snapshots WHERE name = ?",
                (queue_name,),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None

        try:
            data = json.loads(row["body"])
        except json.JSONDecodeError as e:
            raise ValueError(f"queue {queue_name!r} snapshot is not valid JSON") from e
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise ValueError(f"queue {queue_name!r} snapshot has no task list")
        return [Task.from_dict(item) for item in data["tasks"]]

    # ---- FailedTaskLog ----

    def append_failed(self, record: FailedTask) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO failed_tasks(queue_name, task_id, kind, body, error, failed_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.queue_name,
                    record.task.id,
                    record.task.kind,
                    json.dumps(record.task.to_dict(), ensure_ascii=False),
                    record.error,
                    int(record.failed_at),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def list_failed(self) -> list[FailedTask]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT queue_name, body, error, failed_at FROM failed_tasks ORDER BY id ASC"
            ).fetchall()
        finally:
            conn.close()

        out: list[FailedTask] = []
        for r in rows:
            try:
                task = Task.from_dict(json.loads(r["body"]))
            except ValueError:
                # json.JSONDecodeError is a ValueError too.
                logger.warning("Skipping unreadable failed-task row in queue %s", r["queue_name"])
                continue
            out.append(
                FailedTask(
                    queue_name=r["queue_name"],
                    task=task,
                    error=r["error"],
                    failed_at=int(r["failed_at"]),
                )
            )
        return out
