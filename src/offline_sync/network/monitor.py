# src/offline_sync/network/monitor.py

from __future__ import annotations

import logging
import threading

from ..core.ports import ConnectivityListener

logger = logging.getLogger(__name__)


class NetworkMonitor:
    """
    Turns a raw "is online" signal into edge notifications.

    - only transitions are forwarded (online->offline, offline->online)
    - exactly one listener, subscribed once for the process lifetime
    - knows nothing about tasks and never retries anything itself
    """

    def __init__(self, *, online: bool = True) -> None:
        self._online = bool(online)
        self._listener: ConnectivityListener | None = None
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> None:
        with self._lock:
            if self._listener is not None:
                raise RuntimeError("NetworkMonitor already has a subscriber")
            self._listener = listener

    def set_online(self, online: bool) -> bool:
        """
        Feed the current connectivity state. Returns True if it was a transition.
        """
        online = bool(online)
        with self._lock:
            if online == self._online:
                return False
            self._online = online
            listener = self._listener

        logger.info("Connectivity changed: %s", "online" if online else "offline")
        if listener is None:
            return True

        try:
            if online:
                listener.came_online()
            else:
                listener.went_offline()
        except Exception:
            logger.exception("Connectivity listener failed on %s edge", "online" if online else "offline")
        return True
