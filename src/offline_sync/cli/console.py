# src/offline_sync/cli/console.py

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from datetime import datetime

from ..core.state import AppState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)

_EOF = object()


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue[object]) -> threading.Thread:
    """
    Read stdin in a daemon thread and hand lines to the event loop.

    A daemon thread (instead of asyncio.to_thread) so a blocked input()
    never keeps the process alive on shutdown.
    """

    def _reader() -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except Exception:
                logger.debug("stdin read failed", exc_info=True)
                line = ""
            if not line:
                loop.call_soon_threadsafe(lines.put_nowait, _EOF)
                return
            loop.call_soon_threadsafe(lines.put_nowait, line)

    t = threading.Thread(target=_reader, name="console-stdin", daemon=True)
    t.start()
    return t


async def run_console_loop(state: AppState) -> None:
    logger.info("Console started (queues=%s).", ", ".join(state.manager.registry.names()))
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.")

    lines: asyncio.Queue[object] = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), lines)

    while True:
        print(">>> ", end="", flush=True)
        item = await lines.get()
        if item is _EOF:
            logger.info("Console EOF received, exiting.")
            break

        user_input = str(item).strip()
        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Not a command. Use /help to list available commands."
        _print_ts(response)

    logger.info("Console finished.")
