"""Training data reads and gated training data mutations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from wds_toolkit.client import DiscoveryClient
from wds_toolkit.domain import TrainingMatch, TrainingQuery
from wds_toolkit.exceptions import ConflictError, OperationError
from wds_toolkit.runtime import Outcome, RunContext

logger = logging.getLogger(__name__)


async def get_training_data(client: DiscoveryClient, ctx: RunContext) -> Outcome:
    try:
        data = await ctx.retry.call(client.list_training_data)
    except Exception as exc:
        logger.error("%s", exc)
        msg = "failed to download training data"
        raise OperationError(msg) from exc
    return Outcome.success(data)


async def get_training_query(client: DiscoveryClient, ctx: RunContext, query_id: str) -> Outcome:
    try:
        query = await ctx.retry.call(lambda: client.get_training_query(query_id))
    except Exception as exc:
        logger.error("%s", exc)
        msg = "failed to retrieve training data query"
        raise OperationError(msg) from exc
    return Outcome.success(query)


async def create_training_query(
    client: DiscoveryClient,
    ctx: RunContext,
    query: TrainingQuery,
) -> Outcome:
    """Create one training query; an existing equivalent query is a skip."""

    body = query.create_body(client.collection_id)
    text = query.natural_language_query

    async def _call() -> Outcome:
        try:
            await ctx.retry.call(lambda: client.add_training_query(body))
        except ConflictError:
            logger.info("skipped training data for: %s", text)
            return Outcome.skip()
        except Exception as exc:
            logger.error("failed for: %s", text)
            logger.error("%s", exc)
            return Outcome.failure()
        logger.info("accepted training data for query: %s", text)
        return Outcome.success(body)

    return await ctx.gate.run("addTrainingData", body, _call)


async def delete_example_from_query(
    client: DiscoveryClient,
    ctx: RunContext,
    query_id: str,
    document_id: str,
) -> Outcome:
    params = {
        "collectionId": client.collection_id,
        "queryId": query_id,
        "exampleId": document_id,
    }

    async def _call() -> Outcome:
        try:
            await ctx.retry.call(lambda: client.delete_training_example(query_id, document_id))
        except Exception as exc:
            logger.error("%s", exc)
            msg = "unable to remove document from query"
            raise OperationError(msg) from exc
        logger.info("removed %s from %s", document_id, query_id)
        return Outcome.success(params)

    return await ctx.gate.run("deleteTrainingExample", params, _call)


async def delete_all_training_data(client: DiscoveryClient, ctx: RunContext) -> Outcome:
    params = {"collectionId": client.collection_id}

    async def _call() -> Outcome:
        try:
            await ctx.retry.call(client.delete_all_training_data)
        except Exception as exc:
            logger.error("%s", exc)
            msg = "failed to delete training data"
            raise OperationError(msg) from exc
        return Outcome.success(params)

    return await ctx.gate.run("deleteAllTrainingData", params, _call)


def parse_queries(training_data: Mapping[str, Any]) -> list[TrainingQuery]:
    return [TrainingQuery.model_validate(q) for q in training_data.get("queries") or []]


def find_matching_examples(
    training_data: Mapping[str, Any],
    document_id: str,
    *,
    include_segments: bool = False,
) -> list[TrainingMatch]:
    """Every (query, example) pair whose example refers to ``document_id``."""

    matches: list[TrainingMatch] = []
    for query in parse_queries(training_data):
        for example_id in query.matching_examples(document_id, include_segments=include_segments):
            matches.append(
                TrainingMatch(
                    query_id=query.query_id or "",
                    natural_language_query=query.natural_language_query,
                    document_id=example_id,
                )
            )
    return matches


__all__ = [
    "create_training_query",
    "delete_all_training_data",
    "delete_example_from_query",
    "find_matching_examples",
    "get_training_data",
    "get_training_query",
    "parse_queries",
]
