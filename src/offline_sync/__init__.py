"""
Durable, network-aware operation queue.

Side-effecting calls (form submissions, signups, telemetry, admin writes) are
queued per operation family, persisted, and delivered when the network is up,
with a bounded number of retries per task.
"""

from .errors import (
    DeliveryError,
    ExecutorTimeoutError,
    OfflineSyncError,
    UnknownOperationError,
    UnknownQueueError,
)
from .network.monitor import NetworkMonitor
from .queue.dispatcher import OperationDispatcher
from .queue.models import FailedTask, QueueStatus, Task, TaskState
from .queue.sync_manager import SyncManager

__all__ = [
    "DeliveryError",
    "ExecutorTimeoutError",
    "FailedTask",
    "NetworkMonitor",
    "OfflineSyncError",
    "OperationDispatcher",
    "QueueStatus",
    "SyncManager",
    "Task",
    "TaskState",
    "UnknownOperationError",
    "UnknownQueueError",
]
