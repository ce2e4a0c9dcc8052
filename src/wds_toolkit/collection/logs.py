"""Query-log retrieval split into date-range batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from wds_toolkit.client import DiscoveryClient
from wds_toolkit.runtime import DateRange, RetryPolicy, RunContext, date_range_batches
from wds_toolkit.runtime.dates import LOG_RESULT_CEILING
from wds_toolkit.utils.time import parse_timestamp, utc_now

DEFAULT_LOG_WINDOW = timedelta(days=15)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LogPageTask:
    """Fetch every log entry created inside one date range."""

    client: DiscoveryClient
    retry: RetryPolicy
    window: DateRange
    filter: str = ""

    def combined_filter(self) -> str:
        clauses = [self.window.to_filter()]
        if self.filter:
            clauses.append(self.filter)
        return ",".join(clauses)

    async def __call__(self) -> list[dict[str, Any]]:
        response = await self.retry.call(
            lambda: self.client.query_logs(
                self.combined_filter(),
                LOG_RESULT_CEILING,
                0,
                "created_timestamp",
            )
        )
        matching = int(response.get("matching_results") or 0)
        if matching > LOG_RESULT_CEILING:
            logger.warning(
                "%s log entries between %s and %s exceed the %s result ceiling; "
                "use a smaller batch size",
                matching,
                self.window.start.isoformat(),
                self.window.end.isoformat(),
                LOG_RESULT_CEILING,
            )
        return list(response.get("results") or [])


def iterate_logs(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    start: datetime | str | None = None,
    end: datetime | str | None = None,
    batch_size: int = 15,
    batch_unit: str = "days",
    filter: str = "",
) -> list[LogPageTask]:
    """One task per batch window; defaults to the last fifteen days."""

    upper = parse_timestamp(end) if end else utc_now()
    lower = parse_timestamp(start) if start else upper - DEFAULT_LOG_WINDOW
    windows = date_range_batches(lower, upper, batch_size, batch_unit)
    logger.info("retrieving logs in %s batches", len(windows))
    return [
        LogPageTask(client=client, retry=ctx.retry, window=window, filter=filter)
        for window in windows
    ]


__all__ = ["DEFAULT_LOG_WINDOW", "LogPageTask", "iterate_logs"]
