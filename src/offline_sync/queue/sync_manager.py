# src/offline_sync/queue/sync_manager.py

from __future__ import annotations

"""
Sync manager.

The only public surface of the queue core. It:
- appends tasks to named queues and flushes them to the durable store,
- triggers a processing pass on enqueue when the network is up,
- runs one pass per queue at a time, awaiting each executor in order,
- counts failed attempts and moves exhausted tasks to the failed-task log,
- reloads queues at startup and drops tasks older than the retention window.

No delivery or persistence error escapes enqueue/process_queue/process_all;
they are logged and absorbed. Only caller errors (bad arguments, unknown
queue names) are raised.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ..core.ports import DurableStore, FailedTaskLog
from ..errors import ExecutorTimeoutError
from ..network.monitor import NetworkMonitor
from ..storage.memory import InMemoryFailedTaskLog
from .dispatcher import OperationDispatcher
from .models import (
    DEFAULT_MAX_RETRIES,
    FailedTask,
    QueueStatus,
    Task,
    TaskState,
    new_task_id,
    now_ms,
)
from .registry import QueueRegistry
from .task_queue import TaskQueue

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_MS = 7 * 24 * 60 * 60 * 1000
DEFAULT_EXECUTOR_TIMEOUT_SECONDS = 30.0


def _describe(exc: BaseException) -> str:
    text = str(exc).replace("\n", " ").strip()
    name = exc.__class__.__name__
    return f"{name}: {text}"[:500] if text else name


class SyncManager:
    """
    Durable, network-aware, at-least-once operation queue.

    Must be driven from a single event loop. Background passes started by
    enqueue() or by the network coming back are tracked; `await wait_idle()`
    waits for them.
    """

    def __init__(
        self,
        *,
        queue_names: Iterable[str],
        store: DurableStore,
        dispatcher: OperationDispatcher,
        failed_log: FailedTaskLog | None = None,
        network: NetworkMonitor | None = None,
        clock: Callable[[], int] = now_ms,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
        executor_timeout: float | None = DEFAULT_EXECUTOR_TIMEOUT_SECONDS,
        max_passes: int = 1,
    ) -> None:
        if default_max_retries < 1:
            raise ValueError("default_max_retries must be >= 1")
        if max_passes < 1:
            raise ValueError("max_passes must be >= 1")

        self.registry = QueueRegistry(queue_names)
        self._store = store
        self._dispatcher = dispatcher
        self._failed_log: FailedTaskLog = failed_log if failed_log is not None else InMemoryFailedTaskLog()
        self._network = network
        self._clock = clock
        self.default_max_retries = int(default_max_retries)
        self.executor_timeout = executor_timeout
        self.max_passes = int(max_passes)

        self.offline_since: int | None = None
        self._background: set[asyncio.Task[None]] = set()
        # At most one not-yet-finished enqueue-triggered pass per queue.
        self._scheduled: dict[str, asyncio.Task[None]] = {}

    # ---- introspection ----

    @property
    def is_online(self) -> bool:
        return self._network.is_online if self._network is not None else True

    @property
    def dispatcher(self) -> OperationDispatcher:
        return self._dispatcher

    def get_status(self) -> dict[str, QueueStatus]:
        return {
            q.name: QueueStatus(
                pending=len(q),
                last_processed_at=q.last_processed_at,
                is_processing=q.is_processing,
            )
            for q in self.registry
        }

    def pending_tasks(self, queue_name: str) -> list[Task]:
        """Copies of the pending tasks of one queue (for inspection only)."""
        return self.registry.get(queue_name).snapshot()

    def failed_tasks(self) -> list[FailedTask]:
        try:
            return self._failed_log.list_failed()
        except Exception:
            logger.exception("Failed to read the failed-task log")
            return []

    # ---- enqueue ----

    def enqueue(
        self,
        queue_name: str,
        kind: str,
        payload: Any,
        max_retries: int | None = None,
    ) -> str:
        """
        Add a task and persist its queue. Returns the new task id.

        Succeeds regardless of network state. When online, a processing pass
        for the queue is started in the background (it does not block).
        """
        queue = self.registry.get(queue_name)

        kind = (kind or "").strip()
        if not kind:
            raise ValueError("kind is required")

        retries = self.default_max_retries if max_retries is None else int(max_retries)
        if retries < 1:
            raise ValueError("max_retries must be >= 1")

        # Stores persist payloads as JSON.
        try:
            json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise ValueError(f"payload is not JSON-serializable: {e}") from e

        now = self._clock()
        task = Task(
            id=new_task_id(now),
            kind=kind,
            payload=payload,
            enqueued_at=now,
            max_retries=retries,
        )
        queue.append(task)
        self._flush_queue(queue)
        logger.debug("Enqueued task id=%s queue=%s kind=%s", task.id, queue.name, kind)

        if self.is_online and not queue.is_processing:
            self._schedule_pass(queue.name)

        return task.id

    # ---- processing ----

    async def process_queue(self, queue_name: str) -> None:
        """
        Run one processing pass over a snapshot of the queue.

        No-op if the queue is empty or a pass is already running.
        """
        queue = self.registry.get(queue_name)
        if queue.is_processing or len(queue) == 0:
            return

        # Set before the first await: this is the only mutual exclusion.
        queue.begin_processing()
        try:
            attempted: set[str] = set()
            for pass_no in range(1, self.max_passes + 1):
                batch = [t for t in queue.snapshot() if t.id not in attempted]
                if not batch:
                    break
                if pass_no > 1:
                    logger.debug("Queue %s: re-scan pass %d picked %d new tasks", queue.name, pass_no, len(batch))
                for task in batch:
                    attempted.add(task.id)
                    await self._process_task(queue, task)
        finally:
            self._flush_queue(queue)
            queue.end_processing(at=self._clock())

        logger.debug("Queue %s processed: %d pending", queue.name, len(queue))

    async def process_all(self) -> None:
        """Process every queue; passes of different queues may interleave."""
        await asyncio.gather(*(self.process_queue(name) for name in self.registry.names()))

    async def _process_task(self, queue: TaskQueue, task: Task) -> None:
        live = queue.get(task.id)
        if live is None:
            # Removed since the snapshot (e.g. retention cleanup).
            return

        if live.is_exhausted:
            # Loaded from storage with no budget left.
            self._fail_terminally(queue, live)
            self._flush_queue(queue)
            return

        try:
            await self._execute(task)
        except Exception as e:
            self._record_failure(queue, task.id, e)
        else:
            if queue.remove(task.id):
                logger.info("Task %s delivered (queue=%s kind=%s)", task.id, queue.name, task.kind)
        self._flush_queue(queue)

    async def _execute(self, task: Task) -> None:
        call = self._dispatcher.execute(task.kind, task.payload)
        if self.executor_timeout is None:
            await call
            return
        try:
            await asyncio.wait_for(call, timeout=self.executor_timeout)
        except TimeoutError as e:
            raise ExecutorTimeoutError(f"timed out after {self.executor_timeout:g}s") from e

    def _record_failure(self, queue: TaskQueue, task_id: str, exc: Exception) -> None:
        live = queue.get(task_id)
        if live is None:
            logger.debug("Task %s failed but is no longer queued; ignoring", task_id)
            return

        live.retry_count = min(live.retry_count + 1, live.max_retries)
        live.last_error = _describe(exc)

        if live.is_exhausted:
            self._fail_terminally(queue, live)
            return

        logger.info(
            "Task %s failed attempt %d/%d (queue=%s kind=%s): %s",
            live.id,
            live.retry_count,
            live.max_retries,
            queue.name,
            live.kind,
            live.last_error,
        )

    def _fail_terminally(self, queue: TaskQueue, task: Task) -> None:
        queue.remove(task.id)
        record = FailedTask(
            queue_name=queue.name,
            task=task,
            error=task.last_error,
            failed_at=self._clock(),
        )
        try:
            self._failed_log.append_failed(record)
        except Exception:
            logger.exception("Failed to record terminal failure of task %s", task.id)

        logger.warning(
            "Task %s %s after %d attempts (queue=%s kind=%s): %s",
            task.id,
            TaskState.FAILED.value,
            task.retry_count,
            queue.name,
            task.kind,
            task.last_error,
        )

    # ---- persistence ----

    def _flush_queue(self, queue: TaskQueue) -> bool:
        try:
            self._store.save(queue.name, queue.snapshot())
            return True
        except Exception:
            logger.exception("Failed to persist queue %s; in-memory state stays authoritative", queue.name)
            return False

    def flush(self, queue_name: str | None = None) -> None:
        """Persist one queue, or all of them."""
        if queue_name is not None:
            self._flush_queue(self.registry.get(queue_name))
            return
        for queue in self.registry:
            self._flush_queue(queue)

    def load_persisted(self) -> int:
        """
        Populate every queue from the durable store. Returns the number of
        tasks loaded.

        A missing or unreadable record only affects its own queue, which is
        then treated as empty. Tasks enqueued before the load are kept behind
        the persisted ones.
        """
        total = 0
        for queue in self.registry:
            try:
                loaded = self._store.load(queue.name)
            except Exception:
                logger.exception("Failed to load queue %s; treating it as empty", queue.name)
                loaded = None

            if not loaded:
                continue

            known = {t.id for t in loaded}
            extra = [t for t in queue.snapshot() if t.id not in known]
            queue.replace_all([*loaded, *extra])
            total += len(loaded)
            logger.info("Loaded %d persisted tasks into queue %s", len(loaded), queue.name)
        return total

    def cleanup_old_tasks(self, max_age_ms: int = DEFAULT_RETENTION_MS) -> int:
        """
        Drop tasks enqueued more than max_age_ms ago, whatever their retry
        state. Does not flush; call flush() to persist the result.
        """
        cutoff = self._clock() - int(max_age_ms)
        removed = 0
        for queue in self.registry:
            dropped = queue.remove_older_than(cutoff)
            if dropped:
                removed += len(dropped)
                logger.info("Retention: dropped %d tasks from queue %s", len(dropped), queue.name)
        return removed

    # ---- network edges ----

    def went_offline(self) -> None:
        self.offline_since = self._clock()
        logger.info("Network offline; tasks will be kept until connectivity returns")

    def came_online(self) -> None:
        if self.offline_since is not None:
            logger.info("Network back online after %.1fs; processing all queues", (self._clock() - self.offline_since) / 1000)
        else:
            logger.info("Network online; processing all queues")
        self.offline_since = None
        self.trigger_all()

    # ---- background passes ----

    def trigger_all(self) -> asyncio.Task[None] | None:
        """Start process_all() in the background (fire-and-forget)."""
        return self._spawn(self.process_all, label="process_all")

    def _schedule_pass(self, queue_name: str) -> None:
        pending = self._scheduled.get(queue_name)
        if pending is not None and not pending.done():
            # It has not snapshotted yet, so it will pick up the new task.
            return

        task = self._spawn(lambda: self.process_queue(queue_name), label=f"process:{queue_name}")
        if task is None:
            return
        self._scheduled[queue_name] = task

        def _forget(done: asyncio.Task[None]) -> None:
            if self._scheduled.get(queue_name) is done:
                del self._scheduled[queue_name]

        task.add_done_callback(_forget)

    def _spawn(self, factory: Callable[[], Awaitable[None]], *, label: str) -> asyncio.Task[None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping %s trigger", label)
            return None

        task = loop.create_task(self._guarded(factory, label))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @staticmethod
    async def _guarded(factory: Callable[[], Awaitable[None]], label: str) -> None:
        try:
            await factory()
        except Exception:
            logger.exception("Background %s crashed", label)

    async def wait_idle(self) -> None:
        """Wait until every background pass started so far has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.wait_idle()
        self.flush()
