# src/offline_sync/cli/commands.py

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..core.state import AppState
from ..errors import UnknownQueueError

CommandHandler = Callable[[AppState, list[str]], str | Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /status, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(state, args)
        if inspect.isawaitable(result):
            result = await result
        return str(result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ms: int | None) -> str:
    if ms is None:
        return "never"
    return datetime.fromtimestamp(ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    lines = [f"Network: {'online' if state.monitor.is_online else 'offline'}"]
    for name, st in state.manager.get_status().items():
        busy = " (processing)" if st.is_processing else ""
        lines.append(f"  {name}: {st.pending} pending, last processed {_fmt_ts(st.last_processed_at)}{busy}")
    return "\n".join(lines)


def cmd_enqueue(state: AppState, args: list[str]) -> str:
    """
    /enqueue <queue> <kind> [payload]

    The payload is parsed as JSON when possible, otherwise kept as a string.
    """
    if len(args) < 2:
        return "Usage: /enqueue <queue> <kind> [json payload]"

    queue_name, kind = args[0], args[1]
    raw = " ".join(args[2:]).strip()
    payload: object = None
    if raw:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            payload = raw

    try:
        task_id = state.manager.enqueue(queue_name, kind, payload)
    except UnknownQueueError as e:
        return f"{e}. Known queues: {', '.join(state.manager.registry.names())}"
    except ValueError as e:
        return f"Rejected: {e}"

    suffix = "" if state.monitor.is_online else " (offline: will be sent when back online)"
    return f"Enqueued {task_id} on {queue_name}{suffix}"


async def cmd_process(state: AppState, args: list[str]) -> str:
    """
    /process          -> process every queue
    /process <queue>  -> process one queue
    """
    if args:
        try:
            await state.manager.process_queue(args[0])
        except UnknownQueueError as e:
            return str(e)
    else:
        await state.manager.process_all()
    return cmd_status(state, [])


def cmd_failed(state: AppState, args: list[str]) -> str:
    limit = 20
    if args:
        try:
            limit = max(1, int(args[0]))
        except ValueError:
            return "Usage: /failed [count]"

    records = state.manager.failed_tasks()
    if not records:
        return "No failed tasks."

    shown = records[-limit:]
    lines = [f"Failed tasks ({len(shown)} of {len(records)}):"]
    for r in shown:
        lines.append(
            f"  [{_fmt_ts(r.failed_at)}] {r.queue_name}/{r.task.kind} {r.task.id} "
            f"after {r.task.retry_count} attempts: {r.error or '-'}"
        )
    return "\n".join(lines)


def cmd_cleanup(state: AppState, args: list[str]) -> str:
    days = int(getattr(state.settings, "retention_days", 7))
    if args:
        try:
            days = max(0, int(args[0]))
        except ValueError:
            return "Usage: /cleanup [days]"

    removed = state.manager.cleanup_old_tasks(days * 24 * 60 * 60 * 1000)
    state.manager.flush()
    return f"Removed {removed} tasks older than {days} days."


def cmd_online(state: AppState, args: list[str]) -> str:
    changed = state.monitor.set_online(True)
    return "Marked online; processing all queues." if changed else "Already online."


def cmd_offline(state: AppState, args: list[str]) -> str:
    changed = state.monitor.set_online(False)
    return "Marked offline; new tasks will be queued." if changed else "Already offline."


def cmd_kinds(state: AppState, args: list[str]) -> str:
    kinds = state.manager.dispatcher.kinds()
    if not kinds:
        return "No executors registered."
    return "Registered kinds: " + ", ".join(kinds)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show pending counts per queue.")
registry.register("enqueue", cmd_enqueue, help_text="Queue an operation: /enqueue <queue> <kind> [json].")
registry.register("process", cmd_process, help_text="Run a processing pass: /process [queue].")
registry.register("failed", cmd_failed, help_text="List tasks that exhausted their retries: /failed [count].")
registry.register("cleanup", cmd_cleanup, help_text="Drop old tasks: /cleanup [days].")
registry.register("online", cmd_online, help_text="Force the network state to online.")
registry.register("offline", cmd_offline, help_text="Force the network state to offline.")
registry.register("kinds", cmd_kinds, help_text="List registered operation kinds.")
