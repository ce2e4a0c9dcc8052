"""Shared CLI dependency helpers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from wds_toolkit.client import DiscoveryClient, HttpDiscoveryClient
from wds_toolkit.config import AppSettings
from wds_toolkit.domain import ConnectionInfo

ClientFactory = Callable[[ConnectionInfo, AppSettings], DiscoveryClient]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _http_client(info: ConnectionInfo, settings: AppSettings) -> DiscoveryClient:
    return HttpDiscoveryClient(info, timeout=settings.request_timeout)


_client_factory: ClientFactory = _http_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached settings, reading ``.env`` from the working directory first."""

    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return AppSettings.from_env()


def reset_settings() -> None:
    """Clear the cached settings (useful for tests)."""

    get_settings.cache_clear()


def configure_logging(settings: AppSettings, *, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def set_client_factory(factory: ClientFactory | None) -> None:
    """Swap how commands build their client; ``None`` restores the HTTP client."""

    global _client_factory
    _client_factory = factory or _http_client


def open_client(info: ConnectionInfo, settings: AppSettings) -> DiscoveryClient:
    return _client_factory(info, settings)


__all__ = [
    "ClientFactory",
    "configure_logging",
    "get_settings",
    "open_client",
    "reset_settings",
    "set_client_factory",
]
