from __future__ import annotations

import asyncio

import pytest

from wds_toolkit.client import DiscoveryClient, InMemoryDiscoveryClient, QueryParams
from wds_toolkit.exceptions import ConflictError, TransientRemoteError


def test_satisfies_client_protocol() -> None:
    assert isinstance(InMemoryDiscoveryClient(), DiscoveryClient)


def test_filter_clauses_are_anded() -> None:
    client = InMemoryDiscoveryClient(
        documents=[
            {"id": "a", "category": "news", "year": "2020"},
            {"id": "b", "category": "news", "year": "2023"},
            {"id": "c", "category": "blog", "year": "2023"},
        ]
    )

    async def _run() -> list[str]:
        response = await client.query(QueryParams(filter="category::news,year>=2021", count=10))
        return [d["id"] for d in response["results"]]

    assert asyncio.run(_run()) == ["b"]
    assert asyncio.run(client.count("category::news")) == 2


def test_nested_list_values_fan_out() -> None:
    client = InMemoryDiscoveryClient(
        notices=[
            {"notices": [{"notice_id": "missing_document_id", "query_id": "q1"}]},
            {"notices": [{"notice_id": "index_failed"}]},
        ]
    )

    response = asyncio.run(client.query_notices("notices.notice_id::missing_document_id"))

    assert response["matching_results"] == 1


def test_duplicate_training_query_conflicts() -> None:
    client = InMemoryDiscoveryClient(
        training_queries=[{"query_id": "q1", "natural_language_query": "how", "examples": []}]
    )

    with pytest.raises(ConflictError):
        asyncio.run(client.add_training_query({"natural_language_query": "how"}))


def test_queued_failures_are_raised_in_order() -> None:
    client = InMemoryDiscoveryClient(documents=[{"id": "a"}])
    client.fail("count", TransientRemoteError("first"), times=1)

    with pytest.raises(TransientRemoteError, match="first"):
        asyncio.run(client.count())
    assert asyncio.run(client.count()) == 1
    assert client.calls["count"] == 2
