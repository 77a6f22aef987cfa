# src/offline_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
- Invalid numbers fall back to defaults instead of crashing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "OFFLINE_SYNC"

DEFAULT_QUEUES = ["contact-form", "newsletter", "analytics", "admin"]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def parse_endpoints(raw: str) -> dict[str, str]:
    """
    Parse "kind=url" pairs separated by ';' or whitespace.

    Malformed pairs (no '=' or empty side) are ignored.
    """
    out: dict[str, str] = {}
    for part in raw.replace(";", " ").split():
        kind, sep, url = part.partition("=")
        kind = kind.strip()
        url = url.strip()
        if not sep or not kind or not url:
            continue
        out[kind] = url
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Storage ----
    data_dir: Path
    store_backend: str
    db_path: Path

    # ---- Queues ----
    queue_names: list[str]
    default_max_retries: int
    retention_days: int
    executor_timeout_seconds: float | None
    max_passes: int

    # ---- Network ----
    probe_url: str
    probe_interval_seconds: float
    probe_timeout_seconds: float

    # ---- Executors ----
    endpoints: dict[str, str]

    @property
    def retention_ms(self) -> int:
        return self.retention_days * 24 * 60 * 60 * 1000

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "offline-sync") or "offline-sync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/offline-sync"))
        store_backend = _env(_k("STORE_BACKEND"), "sqlite").strip().lower() or "sqlite"
        if store_backend not in ("sqlite", "json", "memory"):
            store_backend = "sqlite"
        db_path = _env_path(_k("DB_PATH"), data_dir / "queues.sqlite3")

        queue_names = _env_list(_k("QUEUES"), DEFAULT_QUEUES)
        default_max_retries = max(1, _env_int(_k("DEFAULT_MAX_RETRIES"), 3))
        retention_days = max(1, _env_int(_k("RETENTION_DAYS"), 7))

        # 0 (or negative) disables the per-task timeout.
        timeout = _env_float(_k("EXECUTOR_TIMEOUT_SECONDS"), 30.0)
        executor_timeout_seconds = timeout if timeout > 0 else None

        max_passes = max(1, _env_int(_k("MAX_PASSES"), 1))

        probe_url = _env(_k("PROBE_URL"), "").strip()
        probe_interval_seconds = max(0.5, _env_float(_k("PROBE_INTERVAL_SECONDS"), 15.0))
        probe_timeout_seconds = max(0.1, _env_float(_k("PROBE_TIMEOUT_SECONDS"), 5.0))

        endpoints = parse_endpoints(_env(_k("ENDPOINTS"), ""))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_backend=store_backend,
            db_path=db_path,
            queue_names=queue_names,
            default_max_retries=default_max_retries,
            retention_days=retention_days,
            executor_timeout_seconds=executor_timeout_seconds,
            max_passes=max_passes,
            probe_url=probe_url,
            probe_interval_seconds=probe_interval_seconds,
            probe_timeout_seconds=probe_timeout_seconds,
            endpoints=endpoints,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
