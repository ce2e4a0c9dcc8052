"""Dry-run interception for mutating operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from pprint import pformat
from typing import Any

from .outcome import Outcome

logger = logging.getLogger(__name__)


class DryRunGate:
    """Short-circuits mutating calls into logged no-ops when enabled."""

    def __init__(self, enabled: bool, *, logger: logging.Logger | None = None) -> None:
        self._enabled = enabled
        self._logger = logger or logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def log(self, operation: str, params: Any) -> None:
        """Record an operation that would have run."""

        self._logger.info("Execute: %s with parameters: %s", operation, _describe(params))

    async def run(
        self,
        operation: str,
        params: Mapping[str, Any],
        call: Callable[[], Awaitable[Outcome]],
    ) -> Outcome:
        """Await ``call`` or, in dry run, log ``params`` and report one success."""

        if self._enabled:
            self.log(operation, params)
            return Outcome.success(dict(params))
        return await call()


def _describe(params: Any) -> str:
    return pformat(params, width=100, sort_dicts=False)


__all__ = ["DryRunGate"]
