from __future__ import annotations

import asyncio
import logging

import pytest

from wds_toolkit.client import InMemoryDiscoveryClient
from wds_toolkit.exceptions import FatalSetupError, TransientRemoteError
from wds_toolkit.runtime import (
    DocumentPages,
    Outcome,
    PageTask,
    RetryPolicy,
    RunContext,
    iterate_documents,
    map_limit,
)

FAST_RETRY = RetryPolicy(attempts=2, interval_ms=0)


def _documents(count: int) -> list[dict[str, str]]:
    return [{"id": f"doc-{i:04d}", "title": f"Title {i}"} for i in range(count)]


def test_page_count_is_ceiling_of_count_over_chunk() -> None:
    client = InMemoryDiscoveryClient()
    pages = DocumentPages(client, count=250, chunk_size=100, retry=FAST_RETRY)

    assert len(pages) == 3
    tasks = list(pages)
    assert [t.offset for t in tasks] == [0, 100, 200]
    assert all(t.limit == 100 for t in tasks)


def test_zero_count_yields_no_tasks() -> None:
    pages = DocumentPages(InMemoryDiscoveryClient(), count=0, chunk_size=10, retry=FAST_RETRY)

    assert len(pages) == 0
    assert list(pages) == []


def test_pages_are_not_restartable() -> None:
    pages = DocumentPages(InMemoryDiscoveryClient(), count=5, chunk_size=2, retry=FAST_RETRY)

    assert len(list(pages)) == 3
    assert list(pages) == []


def test_invalid_pages_rejected() -> None:
    with pytest.raises(ValueError):
        DocumentPages(InMemoryDiscoveryClient(), count=1, chunk_size=0, retry=FAST_RETRY)
    with pytest.raises(ValueError):
        DocumentPages(InMemoryDiscoveryClient(), count=-1, chunk_size=1, retry=FAST_RETRY)


def test_page_task_fetches_slice_with_stable_sort() -> None:
    client = InMemoryDiscoveryClient(documents=_documents(5))
    task = PageTask(client=client, retry=FAST_RETRY, offset=2, limit=2, return_fields="title")

    results = asyncio.run(task())

    assert [d["id"] for d in results] == ["doc-0002", "doc-0003"]
    params = task.params().to_params()
    assert params["sort"] == "id,document_id"
    assert params["return"] == "title"


def test_iterate_documents_covers_collection() -> None:
    client = InMemoryDiscoveryClient(documents=_documents(5))
    ctx = RunContext(chunk_size=2, retry=FAST_RETRY)

    async def _run() -> list[str]:
        pages = await iterate_documents(client, ctx)
        ids: list[str] = []
        for task in pages:
            ids.extend(d["id"] for d in await task())
        return ids

    ids = asyncio.run(_run())

    assert ids == [d["id"] for d in _documents(5)]
    assert client.calls["count"] == 1
    assert client.calls["query"] == 3


def test_count_failure_is_fatal() -> None:
    client = InMemoryDiscoveryClient(documents=_documents(3))
    client.fail("count", TransientRemoteError("service unavailable", status_code=503), times=2)
    ctx = RunContext(retry=FAST_RETRY)

    with pytest.raises(FatalSetupError, match="Error retrieving document count"):
        asyncio.run(iterate_documents(client, ctx))


def test_count_drift_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    pages = DocumentPages(InMemoryDiscoveryClient(), count=10, chunk_size=5, retry=FAST_RETRY)

    with caplog.at_level(logging.WARNING):
        assert pages.report_drift(8)
    assert not pages.report_drift(10)
    assert "collection count changed" in caplog.text


def test_partial_final_page_under_bounded_concurrency() -> None:
    client = InMemoryDiscoveryClient(documents=_documents(250), latency=0.005)
    ctx = RunContext(parallel_limit=2, chunk_size=100, retry=FAST_RETRY)

    async def _run() -> tuple[int, Outcome]:
        pages = await iterate_documents(client, ctx)

        async def _worker(task: PageTask) -> Outcome:
            return Outcome(successes=len(await task()))

        return len(pages), Outcome.reduce(await map_limit(pages, ctx.parallel_limit, _worker))

    page_count, outcome = asyncio.run(_run())

    assert page_count == 3
    assert outcome.successes == 250
    assert client.calls["query"] == 3
    assert client.max_in_flight <= 2
