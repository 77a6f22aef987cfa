# src/offline_sync/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from ..network.monitor import NetworkMonitor
from ..network.probe import HttpConnectivityProbe
from ..queue.sync_manager import SyncManager
from .ports import DurableStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test double with the same attributes).
    settings: Any

    manager: SyncManager
    monitor: NetworkMonitor
    store: DurableStore

    http_client: httpx.AsyncClient | None = None
    probe: HttpConnectivityProbe | None = None
