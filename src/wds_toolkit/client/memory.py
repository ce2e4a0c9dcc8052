"""In-memory Discovery client for unit testing and local experiments."""

from __future__ import annotations

import asyncio
import json
from collections import Counter, defaultdict, deque
from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import Any
from uuid import uuid4

from wds_toolkit.exceptions import ConflictError, TransientRemoteError
from wds_toolkit.utils.paths import get_path

from .models import DocumentUpload, QueryParams

_OPERATORS = ("::", ">=", "<=", ">", "<")


def _matches(document: Mapping[str, Any], filter: str | None) -> bool:
    """Evaluate a comma separated (AND) list of simple Discovery clauses."""

    if not filter:
        return True
    for clause in filter.split(","):
        clause = clause.strip()
        if not clause:
            continue
        for op in _OPERATORS:
            if op in clause:
                field, expected = clause.split(op, 1)
                break
        else:
            msg = f"unsupported filter clause: {clause}"
            raise TransientRemoteError(msg, status_code=400)
        values = _values(document, field.strip().split("."))
        if not any(_compare(str(value), op, expected.strip().strip('"')) for value in values):
            return False
    return True


def _values(node: Any, keys: list[str]) -> list[Any]:
    """Collect every value at ``keys``, fanning out across lists."""

    if isinstance(node, list):
        return [value for item in node for value in _values(item, keys)]
    if not keys:
        return [] if node is None else [node]
    if not isinstance(node, Mapping):
        return []
    return _values(node.get(keys[0]), keys[1:])


def _compare(actual: str, op: str, expected: str) -> bool:
    if op == "::":
        return actual == expected
    if op == ">=":
        return actual >= expected
    if op == "<=":
        return actual <= expected
    if op == ">":
        return actual > expected
    return actual < expected


def _sort_key(document: Mapping[str, Any]) -> tuple[str, str]:
    return (str(document.get("id") or ""), str(document.get("document_id") or ""))


class InMemoryDiscoveryClient:
    """Keeps documents, training data, notices and logs in dictionaries.

    ``latency`` makes each call yield to the event loop so concurrency can be
    observed; ``fail(method, error, times)`` queues errors for a method.
    """

    def __init__(
        self,
        *,
        collection_id: str = "collection",
        documents: Iterable[Mapping[str, Any]] = (),
        training_queries: Iterable[Mapping[str, Any]] = (),
        notices: Iterable[Mapping[str, Any]] = (),
        logs: Iterable[Mapping[str, Any]] = (),
        latency: float = 0.0,
    ) -> None:
        self.collection_id = collection_id
        self.documents: dict[str, dict[str, Any]] = {}
        for document in documents:
            key = str(document.get("id") or document.get("document_id") or uuid4().hex)
            self.documents[key] = deepcopy(dict(document))
        self.training: dict[str, dict[str, Any]] = {}
        for query in training_queries:
            query_id = str(query.get("query_id") or uuid4().hex)
            self.training[query_id] = {**deepcopy(dict(query)), "query_id": query_id}
        self.notices = [deepcopy(dict(n)) for n in notices]
        self.logs = [deepcopy(dict(entry)) for entry in logs]
        self.latency = latency
        self.calls: Counter[str] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0
        self._failures: dict[str, deque[Exception]] = defaultdict(deque)
        self.closed = False

    def fail(self, method: str, error: Exception, times: int = 1) -> None:
        self._failures[method].extend(error for _ in range(times))

    async def _enter(self, method: str) -> None:
        self.calls[method] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1
        queue = self._failures.get(method)
        if queue:
            raise queue.popleft()

    def _matching(self, filter: str | None) -> list[dict[str, Any]]:
        return sorted(
            (d for d in self.documents.values() if _matches(d, filter)),
            key=_sort_key,
        )

    async def get_collection(self) -> dict[str, Any]:
        await self._enter("get_collection")
        return {
            "collection_id": self.collection_id,
            "document_counts": {"available": len(self.documents)},
            "training_status": {"total_examples": sum(
                len(q.get("examples") or []) for q in self.training.values()
            )},
        }

    async def count(self, filter: str | None = None) -> int:
        await self._enter("count")
        return len(self._matching(filter))

    async def query(self, params: QueryParams) -> dict[str, Any]:
        await self._enter("query")
        matching = self._matching(params.filter)
        offset = params.offset or 0
        limit = params.count if params.count is not None else 10
        page = matching[offset : offset + limit]
        results = [{**deepcopy(d), "result_metadata": {"score": 1}} for d in page]
        return {"matching_results": len(matching), "results": results}

    async def query_notices(self, filter: str | None = None, count: int = 10_000) -> dict[str, Any]:
        await self._enter("query_notices")
        results = [deepcopy(n) for n in self.notices if _matches(n, filter)][:count]
        return {"matching_results": len(results), "results": results}

    async def query_logs(
        self,
        filter: str | None = None,
        count: int = 10_000,
        offset: int = 0,
        sort: str | None = None,
    ) -> dict[str, Any]:
        await self._enter("query_logs")
        matching = [deepcopy(e) for e in self.logs if _matches(e, filter)]
        if sort:
            field = sort.lstrip("-")
            matching.sort(key=lambda e: str(get_path(e, field) or ""), reverse=sort.startswith("-"))
        return {"matching_results": len(matching), "results": matching[offset : offset + count]}

    def _store(self, document_id: str, upload: DocumentUpload) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if upload.content_type == "application/json":
            body = json.loads(upload.content.decode("utf-8"))
        body["id"] = document_id
        body.setdefault("extracted_metadata", {})["filename"] = upload.filename
        if upload.metadata is not None:
            body["metadata"] = dict(upload.metadata)
        self.documents[document_id] = body
        return {"document_id": document_id, "status": "processing"}

    async def add_document(self, upload: DocumentUpload) -> dict[str, Any]:
        await self._enter("add_document")
        return self._store(uuid4().hex, upload)

    async def update_document(self, document_id: str, upload: DocumentUpload) -> dict[str, Any]:
        await self._enter("update_document")
        return self._store(document_id, upload)

    async def delete_document(self, document_id: str) -> dict[str, Any]:
        await self._enter("delete_document")
        if self.documents.pop(document_id, None) is None:
            msg = f"document {document_id} not found"
            raise TransientRemoteError(msg, status_code=404)
        return {"document_id": document_id, "status": "deleted"}

    async def list_training_data(self) -> dict[str, Any]:
        await self._enter("list_training_data")
        return {
            "environment_id": "environment",
            "collection_id": self.collection_id,
            "queries": [deepcopy(q) for q in self.training.values()],
        }

    async def get_training_query(self, query_id: str) -> dict[str, Any]:
        await self._enter("get_training_query")
        try:
            return deepcopy(self.training[query_id])
        except KeyError as exc:
            msg = f"training query {query_id} not found"
            raise TransientRemoteError(msg, status_code=404) from exc

    async def add_training_query(self, body: Mapping[str, Any]) -> dict[str, Any]:
        await self._enter("add_training_query")
        text = body.get("natural_language_query")
        if any(q.get("natural_language_query") == text for q in self.training.values()):
            msg = f"training query already exists: {text}"
            raise ConflictError(msg, status_code=409)
        query_id = uuid4().hex
        self.training[query_id] = {**deepcopy(dict(body)), "query_id": query_id}
        return deepcopy(self.training[query_id])

    async def delete_training_example(self, query_id: str, example_id: str) -> dict[str, Any]:
        await self._enter("delete_training_example")
        query = self.training.get(query_id)
        examples = (query or {}).get("examples") or []
        remaining = [e for e in examples if e.get("document_id") != example_id]
        if query is None or len(remaining) == len(examples):
            msg = f"example {example_id} not found in {query_id}"
            raise TransientRemoteError(msg, status_code=404)
        query["examples"] = remaining
        return {}

    async def delete_all_training_data(self) -> dict[str, Any]:
        await self._enter("delete_all_training_data")
        self.training.clear()
        return {}

    async def aclose(self) -> None:
        self.closed = True


__all__ = ["InMemoryDiscoveryClient"]
