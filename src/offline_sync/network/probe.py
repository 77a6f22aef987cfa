# src/offline_sync/network/probe.py

from __future__ import annotations

"""
Connectivity polling.

A HEAD request against a known URL stands in for the browser's
online/offline events: any HTTP answer below 500 means "online",
transport errors and 5xx mean "offline".
"""

import asyncio
import logging

import httpx

from ..core.ports import ConnectivityProbe
from .monitor import NetworkMonitor

logger = logging.getLogger(__name__)


class HttpConnectivityProbe:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url:
            raise ValueError("probe url is required")
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True)

    async def check(self) -> bool:
        try:
            resp = await self._client.head(self.url)
        except httpx.HTTPError as e:
            logger.debug("Probe %s failed: %s", self.url, e)
            return False
        return resp.status_code < 500

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


async def run_connectivity_watch(
    monitor: NetworkMonitor,
    probe: ConnectivityProbe,
    *,
    interval_seconds: float = 15.0,
) -> None:
    """
    Poll `probe` every interval_seconds and feed the result to `monitor`.

    To stop the watch, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            online = await probe.check()
        except Exception:
            logger.exception("Connectivity probe crashed; assuming offline")
            online = False

        monitor.set_online(online)
        await asyncio.sleep(sleep_s)
