# src/offline_sync/executors/http.py

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class HttpExecutor:
    """
    Generic executor: send the task payload as JSON to a fixed URL.

    Non-2xx answers and transport errors raise, which the queue counts as a
    failed attempt. The client is shared across executors and owned by the
    caller (bootstrap closes it on shutdown).
    """

    def __init__(self, url: str, client: httpx.AsyncClient, *, method: str = "POST") -> None:
        if not url:
            raise ValueError("url is required")
        self.url = url
        self.method = method.upper()
        self._client = client

    async def __call__(self, payload: Any) -> None:
        resp = await self._client.request(self.method, self.url, json=payload)
        resp.raise_for_status()
        logger.debug("%s %s -> %s", self.method, self.url, resp.status_code)

    def __repr__(self) -> str:
        return f"HttpExecutor({self.method} {self.url})"
