# src/offline_sync/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Console thresholds by logger prefix; the longest matching prefix wins.
# The file handler still receives everything at file_level.
_CONSOLE_THRESHOLDS: dict[str, int] = {
    "offline_sync": logging.NOTSET,
    # HEAD request every probe interval.
    "offline_sync.network.probe": logging.WARNING,
    # One "Saved queue" line per processed task.
    "offline_sync.storage": logging.INFO,
    "py.warnings": logging.ERROR,
}
_THIRD_PARTY_THRESHOLD = logging.WARNING


def _console_threshold(name: str) -> int:
    best = ""
    for prefix in _CONSOLE_THRESHOLDS:
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > len(best):
            best = prefix
    return _CONSOLE_THRESHOLDS[best] if best else _THIRD_PARTY_THRESHOLD


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the REPL readable while queues drain in the background."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= _console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/offline-sync",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Send logs to stderr (filtered per logger) and to <log_dir>/offline-sync.log.

    Replaces any handlers already on the root logger; call once at startup.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "offline-sync.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)

    # httpx logs every request at INFO, including probe and executor calls.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
