# src/offline_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores persisted queues, then runs:
- the connectivity watch in the background (when a probe URL is configured),
- the console REPL until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import close_state, create_initial_state
from ..cli.console import run_console_loop
from ..config import get_settings
from ..logging_setup import setup_logging
from ..network.probe import run_connectivity_watch

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    state = create_initial_state(settings=settings)

    loaded = state.manager.load_persisted()
    removed = state.manager.cleanup_old_tasks(settings.retention_ms)
    if removed:
        state.manager.flush()
    logger.info("Restored %d tasks (%d expired and dropped).", loaded, removed)

    watch: asyncio.Task[None] | None = None
    if state.probe is not None:
        watch = asyncio.create_task(
            run_connectivity_watch(
                state.monitor,
                state.probe,
                interval_seconds=settings.probe_interval_seconds,
            )
        )
    # Kick whatever survived the last run; the watch flips us offline if needed.
    state.manager.trigger_all()

    try:
        await run_console_loop(state)
    finally:
        if watch is not None:
            watch.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watch
        await close_state(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
