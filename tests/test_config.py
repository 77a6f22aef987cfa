# tests/test_config.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from offline_sync.config import DEFAULT_QUEUES, Settings, parse_endpoints


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in list(os.environ):
        if key.startswith("OFFLINE_SYNC_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_without_env(clean_env) -> None:
    s = Settings.from_env()

    assert s.app_name == "offline-sync"
    assert s.store_backend == "sqlite"
    assert s.db_path == Path(".local/offline-sync") / "queues.sqlite3"
    assert s.queue_names == DEFAULT_QUEUES
    assert s.default_max_retries == 3
    assert s.executor_timeout_seconds == 30.0
    assert s.max_passes == 1
    assert s.probe_url == ""
    assert s.endpoints == {}
    assert s.retention_ms == 7 * 24 * 60 * 60 * 1000


def test_invalid_values_fall_back(clean_env) -> None:
    clean_env.setenv("OFFLINE_SYNC_DEFAULT_MAX_RETRIES", "lots")
    clean_env.setenv("OFFLINE_SYNC_MAX_PASSES", "0")
    clean_env.setenv("OFFLINE_SYNC_STORE_BACKEND", "postgres")
    clean_env.setenv("OFFLINE_SYNC_PROBE_INTERVAL_SECONDS", "nope")

    s = Settings.from_env()

    assert s.default_max_retries == 3
    assert s.max_passes == 1
    assert s.store_backend == "sqlite"
    assert s.probe_interval_seconds == 15.0


def test_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("OFFLINE_SYNC_DATA_DIR", str(tmp_path))
    clean_env.setenv("OFFLINE_SYNC_STORE_BACKEND", "JSON")
    clean_env.setenv("OFFLINE_SYNC_QUEUES", "a, b c")
    clean_env.setenv("OFFLINE_SYNC_EXECUTOR_TIMEOUT_SECONDS", "0")
    clean_env.setenv("OFFLINE_SYNC_ENDPOINTS", "contact-form=https://api.test/contact;newsletter=https://api.test/sub")

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.db_path == tmp_path / "queues.sqlite3"
    assert s.store_backend == "json"
    assert s.queue_names == ["a", "b", "c"]
    assert s.executor_timeout_seconds is None
    assert s.endpoints == {
        "contact-form": "https://api.test/contact",
        "newsletter": "https://api.test/sub",
    }


def test_parse_endpoints_ignores_malformed_pairs() -> None:
    assert parse_endpoints("a=http://x b= =http://y c d=http://z") == {
        "a": "http://x",
        "d": "http://z",
    }
