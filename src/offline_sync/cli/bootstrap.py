# src/offline_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the durable store backend,
- registers one HTTP executor per configured endpoint,
- wires store/dispatcher/network monitor into a SyncManager (AppState).
"""

from __future__ import annotations

import contextlib
import logging

import httpx

from ..config import get_settings
from ..core.ports import DurableStore, FailedTaskLog
from ..core.state import AppState
from ..executors.http import HttpExecutor
from ..network.monitor import NetworkMonitor
from ..network.probe import HttpConnectivityProbe
from ..queue.dispatcher import OperationDispatcher
from ..queue.sync_manager import SyncManager
from ..storage.json_store import JsonFileQueueStore
from ..storage.memory import InMemoryFailedTaskLog, InMemoryQueueStore
from ..storage.sqlite_store import SqliteQueueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def build_store(settings) -> tuple[DurableStore, FailedTaskLog]:
    backend = str(getattr(settings, "store_backend", "sqlite"))
    if backend == "memory":
        logger.warning("Using in-memory store: queued tasks will NOT survive a restart")
        return InMemoryQueueStore(), InMemoryFailedTaskLog()
    if backend == "json":
        json_store = JsonFileQueueStore(settings.data_dir / "queues")
        return json_store, json_store
    sqlite_store = SqliteQueueStore(settings.db_path)
    return sqlite_store, sqlite_store


def build_dispatcher(settings, client: httpx.AsyncClient) -> OperationDispatcher:
    dispatcher = OperationDispatcher()
    for kind, url in dict(getattr(settings, "endpoints", {}) or {}).items():
        dispatcher.register(kind, HttpExecutor(url, client))
        logger.info("Executor registered kind=%s url=%s", kind, url)
    if not dispatcher.kinds():
        logger.warning("No endpoints configured; every task will fail as an unknown kind")
    return dispatcher


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store, failed_log = build_store(settings)

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.executor_timeout_seconds or 30.0))
    dispatcher = build_dispatcher(settings, http_client)

    probe: HttpConnectivityProbe | None = None
    if settings.probe_url:
        probe = HttpConnectivityProbe(settings.probe_url, timeout=settings.probe_timeout_seconds)

    monitor = NetworkMonitor(online=True)
    manager = SyncManager(
        queue_names=settings.queue_names,
        store=store,
        dispatcher=dispatcher,
        failed_log=failed_log,
        network=monitor,
        default_max_retries=settings.default_max_retries,
        executor_timeout=settings.executor_timeout_seconds,
        max_passes=settings.max_passes,
    )
    monitor.subscribe(manager)

    return AppState(
        settings=settings,
        manager=manager,
        monitor=monitor,
        store=store,
        http_client=http_client,
        probe=probe,
    )


async def close_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.manager.shutdown()
    except Exception:
        logger.exception("Failed to flush queues on shutdown.")

    if state.probe is not None:
        with contextlib.suppress(Exception):
            await state.probe.aclose()

    if state.http_client is not None:
        with contextlib.suppress(Exception):
            await state.http_client.aclose()
