# tests/fakes.py

from __future__ import annotations

import asyncio
from typing import Any

from offline_sync.queue.models import Task


class FakeClock:
    """Controllable epoch-ms clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingExecutor:
    """
    Deterministic executor for unit tests.

    - Captures payloads for assertions
    - Fails always (fail=True) or for the first `fail_times` calls
    - Can block on `gate` so a test can act while a pass is in flight
    """

    def __init__(
        self,
        *,
        fail: bool = False,
        fail_times: int = 0,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.fail = fail
        self.fail_times = fail_times
        self.delay = delay
        self.gate = gate
        self.calls: list[Any] = []
        self.started = asyncio.Event()

    async def __call__(self, payload: Any) -> None:
        self.calls.append(payload)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or len(self.calls) <= self.fail_times:
            raise ConnectionError("endpoint unreachable")


class BrokenStore:
    """
    DurableStore whose save() always raises and whose load() raises for
    selected queue names.
    """

    def __init__(self, *, broken_loads: set[str] | None = None, records: dict[str, list[Task]] | None = None) -> None:
        self.broken_loads = broken_loads or set()
        self.records = records or {}
        self.save_attempts = 0

    def save(self, queue_name: str, tasks: list[Task]) -> None:
        self.save_attempts += 1
        raise OSError("disk full")

    def load(self, queue_name: str) -> list[Task] | None:
        if queue_name in self.broken_loads:
            raise ValueError(f"corrupt record for {queue_name}")
        return self.records.get(queue_name)


class RecordingListener:
    def __init__(self) -> None:
        self.events: list[str] = []

    def went_offline(self) -> None:
        self.events.append("offline")

    def came_online(self) -> None:
        self.events.append("online")


class ScriptedProbe:
    """ConnectivityProbe returning a scripted sequence, then repeating the last value."""

    def __init__(self, results: list[bool]) -> None:
        self.results = list(results)
        self.checks = 0

    async def check(self) -> bool:
        self.checks += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]
