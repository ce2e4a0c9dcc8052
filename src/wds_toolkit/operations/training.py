"""Training data inspection, cleanup and replay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from wds_toolkit import collection
from wds_toolkit.client import DiscoveryClient
from wds_toolkit.domain import TrainingMatch, TrainingQuery
from wds_toolkit.exceptions import OperationError
from wds_toolkit.runtime import Outcome, RunContext, map_limit
from wds_toolkit.utils.files import load_json

from .artifacts import write_artifact

FAILED_EXAMPLE_FILTER = "notices.notice_id::missing_document_id"

logger = logging.getLogger(__name__)


async def list_training_data_containing_document(
    client: DiscoveryClient,
    ctx: RunContext,
    document_id: str,
    *,
    include_segments: bool = True,
    report: Path | None = None,
) -> Outcome:
    training = (await collection.get_training_data(client, ctx)).data[0]
    matches = collection.find_matching_examples(
        training,
        document_id,
        include_segments=include_segments,
    )
    payload = [m.as_payload() for m in matches]
    unique_queries = {m.query_id for m in matches}
    logger.info("training queries containing document: %s", len(unique_queries))
    logger.info("matched examples in training data: %s", len(matches))
    if write_artifact(ctx, {"matchingExamples": payload}, report) is not None:
        logger.info("affected queries written to %s", report)
    return Outcome.success(payload)


async def _remove_match(client: DiscoveryClient, ctx: RunContext, match: TrainingMatch) -> Outcome:
    try:
        await collection.delete_example_from_query(client, ctx, match.query_id, match.document_id)
    except OperationError:
        return Outcome.failure()
    return Outcome.success(match.as_payload())


async def remove_document_from_all_training_data(
    client: DiscoveryClient,
    ctx: RunContext,
    document_id: str,
    *,
    include_segments: bool = True,
    out: Path | None = None,
    report: Path | None = None,
) -> Outcome:
    """Remove every example referencing ``document_id`` from every query."""

    training = (await collection.get_training_data(client, ctx)).data[0]
    write_artifact(ctx, training, out)
    matches = collection.find_matching_examples(
        training,
        document_id,
        include_segments=include_segments,
    )

    async def _worker(match: TrainingMatch) -> Outcome:
        return await _remove_match(client, ctx, match)

    outcome = Outcome.reduce(await map_limit(matches, ctx.parallel_limit, _worker))
    if write_artifact(ctx, {"removedExamples": outcome.data}, report) is not None:
        logger.info("affected queries written to %s", report)
    return outcome


async def remove_document_from_query(
    client: DiscoveryClient,
    ctx: RunContext,
    document_id: str,
    query_id: str,
    *,
    include_segments: bool = True,
) -> Outcome:
    """Remove the matching examples of one query, one at a time."""

    query = (await collection.get_training_query(client, ctx, query_id)).data[0]
    matches = collection.find_matching_examples(
        {"queries": [query]},
        document_id,
        include_segments=include_segments,
    )
    outcome = Outcome()
    for match in matches:
        result = await _remove_match(client, ctx, match)
        outcome = outcome.combine(result, outcome.data + result.data)
    return outcome


def failed_examples(notices: list[dict[str, Any]]) -> list[TrainingMatch]:
    """Training examples reported as pointing at missing documents."""

    matches: list[TrainingMatch] = []
    for result in notices:
        for notice in result.get("notices") or []:
            query_id = notice.get("query_id")
            doc_id = notice.get("document_id")
            if not query_id or not doc_id:
                continue
            matches.append(
                TrainingMatch(
                    query_id=query_id,
                    natural_language_query=notice.get("natural_language_query") or "",
                    document_id=doc_id,
                )
            )
    return matches


async def remove_all_failed_examples_from_training_data(
    client: DiscoveryClient,
    ctx: RunContext,
    out: Path,
) -> Outcome:
    training = (await collection.get_training_data(client, ctx)).data[0]
    write_artifact(ctx, training, out)
    notices = (await collection.get_notices(client, ctx, FAILED_EXAMPLE_FILTER)).data[0]
    matches = failed_examples(notices)
    logger.info("%s failed training examples found", len(matches))

    async def _worker(match: TrainingMatch) -> Outcome:
        return await _remove_match(client, ctx, match)

    return Outcome.reduce(await map_limit(matches, ctx.parallel_limit, _worker))


async def replay_training_data(
    client: DiscoveryClient,
    ctx: RunContext,
    training_path: Path,
) -> Outcome:
    """Create every query of a training data backup; existing queries are skipped."""

    training = load_json(training_path)
    queries = collection.parse_queries(training)
    logger.info("replaying %s training queries", len(queries))

    async def _worker(query: TrainingQuery) -> Outcome:
        return await collection.create_training_query(client, ctx, query)

    return Outcome.reduce(await map_limit(queries, ctx.parallel_limit, _worker))


__all__ = [
    "FAILED_EXAMPLE_FILTER",
    "failed_examples",
    "list_training_data_containing_document",
    "remove_all_failed_examples_from_training_data",
    "remove_document_from_all_training_data",
    "remove_document_from_query",
    "replay_training_data",
]
