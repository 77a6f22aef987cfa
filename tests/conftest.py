# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from types import SimpleNamespace

import pytest

from offline_sync.network.monitor import NetworkMonitor
from offline_sync.queue.dispatcher import OperationDispatcher
from offline_sync.queue.sync_manager import SyncManager
from offline_sync.storage.memory import InMemoryFailedTaskLog, InMemoryQueueStore

from .fakes import FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryQueueStore:
    return InMemoryQueueStore()


@pytest.fixture()
def failed_log() -> InMemoryFailedTaskLog:
    return InMemoryFailedTaskLog()


@pytest.fixture()
def dispatcher() -> OperationDispatcher:
    return OperationDispatcher()


@pytest.fixture()
def offline() -> NetworkMonitor:
    """A monitor that starts offline, so enqueue never triggers a pass by itself."""
    return NetworkMonitor(online=False)


@pytest.fixture()
def make_manager(
    store: InMemoryQueueStore,
    failed_log: InMemoryFailedTaskLog,
    dispatcher: OperationDispatcher,
    clock: FakeClock,
) -> Callable[..., SyncManager]:
    """
    Factory for SyncManager wired with in-memory fakes.

    Keyword arguments override the defaults (store, network, timeouts, ...).
    """

    def _make(queue_names: Iterable[str] = ("q",), **overrides) -> SyncManager:
        kwargs = dict(
            queue_names=queue_names,
            store=store,
            dispatcher=dispatcher,
            failed_log=failed_log,
            network=None,
            clock=clock,
        )
        kwargs.update(overrides)
        return SyncManager(**kwargs)

    return _make


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="offline-sync-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        store_backend="memory",
        db_path=tmp_path / "data" / "queues.sqlite3",
        queue_names=["contact-form", "analytics"],
        default_max_retries=3,
        retention_days=7,
        retention_ms=7 * 24 * 60 * 60 * 1000,
        executor_timeout_seconds=5.0,
        max_passes=1,
        probe_url="",
        probe_interval_seconds=15.0,
        probe_timeout_seconds=1.0,
        endpoints={},
    )
