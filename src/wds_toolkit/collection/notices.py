"""Collection notice retrieval."""

from __future__ import annotations

import logging

from wds_toolkit.client import DiscoveryClient
from wds_toolkit.exceptions import OperationError
from wds_toolkit.runtime import Outcome, RunContext

# The notices endpoint refuses larger pages.
MAX_NOTICES = 10_000

logger = logging.getLogger(__name__)


async def get_notices(client: DiscoveryClient, ctx: RunContext, filter: str = "") -> Outcome:
    try:
        response = await ctx.retry.call(
            lambda: client.query_notices(filter or None, MAX_NOTICES)
        )
    except Exception as exc:
        logger.error("%s", exc)
        msg = "failed to retrieve notices data"
        raise OperationError(msg) from exc
    return Outcome.success(list(response.get("results") or []))


__all__ = ["MAX_NOTICES", "get_notices"]
