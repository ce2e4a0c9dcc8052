"""Lightweight application configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from wds_toolkit.runtime import RetryPolicy, RunContext


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", ""}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration sourced from environment variables."""

    environment: str = "development"
    connection_path: Path | None = None
    parallel_limit: int = 15
    chunk_size: int = 100
    retry_attempts: int = 5
    retry_interval_ms: int = 1000
    request_timeout: float = 60.0
    log_level: str = "INFO"
    dry_run: bool = False

    @classmethod
    def from_env(cls) -> AppSettings:
        connection = os.getenv("WDS_CONNECTION")
        return cls(
            environment=os.getenv("WDS_ENV", cls.environment),
            connection_path=Path(connection) if connection else None,
            parallel_limit=_env_int("WDS_PARALLEL_LIMIT", cls.parallel_limit),
            chunk_size=_env_int("WDS_CHUNK_SIZE", cls.chunk_size),
            retry_attempts=_env_int("WDS_RETRY_ATTEMPTS", cls.retry_attempts),
            retry_interval_ms=_env_int("WDS_RETRY_INTERVAL_MS", cls.retry_interval_ms),
            request_timeout=_env_float("WDS_REQUEST_TIMEOUT", cls.request_timeout),
            log_level=os.getenv("WDS_LOG_LEVEL", cls.log_level).upper(),
            dry_run=_env_bool("WDS_DRY_RUN", cls.dry_run),
        )

    def run_context(
        self,
        *,
        dry_run: bool | None = None,
        parallel_limit: int | None = None,
        chunk_size: int | None = None,
    ) -> RunContext:
        """Build a ``RunContext``; explicit arguments win over settings."""

        return RunContext(
            dry_run=self.dry_run if dry_run is None else dry_run,
            parallel_limit=parallel_limit or self.parallel_limit,
            chunk_size=chunk_size or self.chunk_size,
            retry=RetryPolicy(
                attempts=self.retry_attempts,
                interval_ms=self.retry_interval_ms,
            ),
        )


__all__ = ["AppSettings"]
