# src/offline_sync/storage/json_store.py

from __future__ import annotations

"""
Plain-file queue store: one <queue>-<digest>.json file per queue plus
failed.jsonl. The digest of the raw queue name keeps two names that sanitize
to the same text in separate files.

Snapshots are written to a .tmp sibling and os.replace()d into place, so a
reader sees either the old or the new file, never a partial one.
"""

import hashlib
import json
import logging
import os
import re
import threading
from pathlib import Path

from ..queue.models import FailedTask, Task

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileQueueStore:
    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._failed_path = self._dir / "failed.jsonl"
        self._lock = threading.Lock()

    def _path_for(self, queue_name: str) -> Path:
        # Sanitizing is lossy ("a b" and "a_b").
        safe = _SAFE_NAME.sub("_", queue_name)[:64] or "_"
        digest = hashlib.sha1(queue_name.encode("utf-8")).hexdigest()[:10]
        return self._dir / f"{safe}-{digest}.json"

    def save(self, queue_name: str, tasks: list[Task]) -> None:
        path = self._path_for(queue_name)
        body = json.dumps(
            {"name": queue_name, "tasks": [t.to_dict() for t in tasks]},
            ensure_ascii=False,
            indent=2,
        )
        with self._lock:
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(body, "utf-8")
            os.replace(tmp, path)

    def load(self, queue_name: str) -> list[Task] | None:
        path = self._path_for(queue_name)
        if not path.exists():
            return None
        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise ValueError(f"{path} has no task list")
        if data.get("name") != queue_name:
            raise ValueError(f"{path} holds queue {data.get('name')!r}, not {queue_name!r}")
        return [Task.from_dict(item) for item in data["tasks"]]

    def append_failed(self, record: FailedTask) -> None:
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        with self._lock:
            with self._failed_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
                handle.write("\n")

    def list_failed(self) -> list[FailedTask]:
        if not self._failed_path.exists():
            return []
        out: list[FailedTask] = []
        with self._lock:
            lines = self._failed_path.read_text("utf-8").splitlines()
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                out.append(FailedTask.from_dict(json.loads(line)))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping unreadable line in %s", self._failed_path)
        return out
