# src/offline_sync/queue/dispatcher.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..core.ports import Executor
from ..errors import DeliveryError, UnknownOperationError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _Entry:
    executor: Executor
    throws_on_failure: bool


class OperationDispatcher:
    """
    Registry: task kind -> async executor.

    Supplied by the embedding application. The queue core only calls
    execute(); it never knows concrete payload shapes.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def register(
        self,
        kind: str,
        executor: Executor,
        *,
        throws_on_failure: bool = True,
        replace: bool = False,
    ) -> None:
        """
        Register an executor for `kind`.

        throws_on_failure=True: the executor raises to signal failure.
        throws_on_failure=False: the executor returns False to signal failure.
        """
        key = (kind or "").strip()
        if not key:
            raise ValueError("kind is required")
        if key in self._entries and not replace:
            raise ValueError(f"executor already registered for kind {key!r}")
        self._entries[key] = _Entry(executor=executor, throws_on_failure=throws_on_failure)
        logger.debug("Registered executor kind=%s throws_on_failure=%s", key, throws_on_failure)

    def unregister(self, kind: str) -> None:
        self._entries.pop(kind, None)

    def kinds(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    async def execute(self, kind: str, payload: Any) -> None:
        """
        Run the executor for `kind`.

        Raises DeliveryError (or whatever the executor raised) on failure.
        """
        entry = self._entries.get(kind)
        if entry is None:
            raise UnknownOperationError(kind)

        result = await entry.executor(payload)
        if not entry.throws_on_failure and result is False:
            raise DeliveryError(f"executor for kind {kind!r} reported failure")
