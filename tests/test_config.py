from __future__ import annotations

from pathlib import Path

import pytest

from wds_toolkit.config import AppSettings


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "WDS_ENV",
        "WDS_CONNECTION",
        "WDS_PARALLEL_LIMIT",
        "WDS_CHUNK_SIZE",
        "WDS_RETRY_ATTEMPTS",
        "WDS_RETRY_INTERVAL_MS",
        "WDS_REQUEST_TIMEOUT",
        "WDS_LOG_LEVEL",
        "WDS_DRY_RUN",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings.from_env()

    assert settings.environment == "development"
    assert settings.connection_path is None
    assert settings.parallel_limit == 15
    assert settings.chunk_size == 100
    assert settings.dry_run is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WDS_CONNECTION", "/tmp/conn.json")
    monkeypatch.setenv("WDS_PARALLEL_LIMIT", "4")
    monkeypatch.setenv("WDS_RETRY_INTERVAL_MS", "0")
    monkeypatch.setenv("WDS_LOG_LEVEL", "debug")
    monkeypatch.setenv("WDS_DRY_RUN", "yes")

    settings = AppSettings.from_env()

    assert settings.connection_path == Path("/tmp/conn.json")
    assert settings.parallel_limit == 4
    assert settings.retry_interval_ms == 0
    assert settings.log_level == "DEBUG"
    assert settings.dry_run is True


def test_run_context_prefers_explicit_values() -> None:
    settings = AppSettings(parallel_limit=8, chunk_size=50, retry_attempts=2, retry_interval_ms=10)

    ctx = settings.run_context(parallel_limit=3, dry_run=True)

    assert ctx.parallel_limit == 3
    assert ctx.chunk_size == 50
    assert ctx.dry_run is True
    assert ctx.retry.attempts == 2
    assert ctx.retry.interval_ms == 10
    assert settings.run_context().dry_run is False
