"""Offset-based paging over a remote collection."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from wds_toolkit.client.interfaces import DiscoveryClient
from wds_toolkit.client.models import QueryParams
from wds_toolkit.exceptions import FatalSetupError

from .context import RunContext
from .retry import RetryPolicy

# Compound key so offsets stay stable across pages.
DEFAULT_SORT = "id,document_id"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageTask:
    """Fetch one ``[offset, offset + limit)`` slice of the collection."""

    client: DiscoveryClient
    retry: RetryPolicy
    offset: int
    limit: int
    filter: str = ""
    sort: str = DEFAULT_SORT
    return_fields: str | None = None

    def params(self) -> QueryParams:
        return QueryParams(
            filter=self.filter,
            count=self.limit,
            offset=self.offset,
            sort=self.sort,
            return_fields=self.return_fields,
        )

    async def __call__(self) -> list[dict[str, Any]]:
        response = await self.retry.call(lambda: self.client.query(self.params()))
        return list(response.get("results") or [])


class DocumentPages(Iterator[PageTask]):
    """Finite, lazy, non-restartable sequence of page tasks.

    ``count`` is captured once; documents added or removed while the tasks run
    are not accounted for.
    """

    def __init__(
        self,
        client: DiscoveryClient,
        *,
        count: int,
        chunk_size: int,
        retry: RetryPolicy,
        filter: str = "",
        sort: str = DEFAULT_SORT,
        return_fields: str | None = None,
    ) -> None:
        if count < 0:
            msg = "count must be non-negative"
            raise ValueError(msg)
        if chunk_size < 1:
            msg = "chunk_size must be at least 1"
            raise ValueError(msg)
        self._client = client
        self._retry = retry
        self._filter = filter
        self._sort = sort
        self._return_fields = return_fields
        self.count = count
        self.chunk_size = chunk_size
        self._next_offset = 0

    def __len__(self) -> int:
        return math.ceil(self.count / self.chunk_size)

    def __iter__(self) -> DocumentPages:
        return self

    def __next__(self) -> PageTask:
        if self._next_offset >= self.count:
            raise StopIteration
        task = PageTask(
            client=self._client,
            retry=self._retry,
            offset=self._next_offset,
            limit=self.chunk_size,
            filter=self._filter,
            sort=self._sort,
            return_fields=self._return_fields,
        )
        self._next_offset += self.chunk_size
        return task

    def report_drift(self, processed: int) -> bool:
        """Warn when the processed total differs from the initial count."""

        if processed == self.count:
            return False
        logger.warning(
            "collection count changed during iteration: expected %s documents, processed %s",
            self.count,
            processed,
        )
        return True


async def count_documents(
    client: DiscoveryClient,
    ctx: RunContext,
    filter: str = "",
) -> int:
    """Return the number of documents matching ``filter``."""

    try:
        return await ctx.retry.call(lambda: client.count(filter or None))
    except Exception as exc:
        msg = "Error retrieving document count"
        raise FatalSetupError(msg) from exc


async def iterate_documents(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    filter: str = "",
    chunk_size: int | None = None,
    return_fields: str | None = None,
) -> DocumentPages:
    """Count matching documents and return the page tasks covering them."""

    count = await count_documents(client, ctx, filter)
    logger.info("%s documents match conditions", count)
    return DocumentPages(
        client,
        count=count,
        chunk_size=chunk_size or ctx.chunk_size,
        retry=ctx.retry,
        filter=filter,
        return_fields=return_fields,
    )


__all__ = [
    "DEFAULT_SORT",
    "DocumentPages",
    "PageTask",
    "count_documents",
    "iterate_documents",
]
