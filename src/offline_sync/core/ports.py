# src/offline_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the queue core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends, executors and connectivity sources swappable
and makes testing with in-memory fakes trivial.
"""

from typing import Any, Awaitable, Protocol

from ..queue.models import FailedTask, Task


class DurableStore(Protocol):
    """
    Keyed snapshot persistence, one record per queue name.

    - save() overwrites the whole record (no append semantics)
    - load() returns None when nothing was ever saved for that name
    - a concurrent reader never observes a partially written record
    """

    def save(self, queue_name: str, tasks: list[Task]) -> None: ...
    def load(self, queue_name: str) -> list[Task] | None: ...


class FailedTaskLog(Protocol):
    """Append-only record of tasks that exhausted their retries."""

    def append_failed(self, record: FailedTask) -> None: ...
    def list_failed(self) -> list[FailedTask]: ...


class Executor(Protocol):
    """
    Performs the real side effect for one task kind.

    Raising (or, for executors registered with throws_on_failure=False,
    returning False) means the delivery failed.
    """

    def __call__(self, payload: Any) -> Awaitable[Any]: ...


class ConnectivityListener(Protocol):
    """What the network monitor notifies on connectivity edges."""

    def went_offline(self) -> None: ...
    def came_online(self) -> None: ...


class ConnectivityProbe(Protocol):
    async def check(self) -> bool: ...
