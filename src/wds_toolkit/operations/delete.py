"""Document and training data deletion."""

from __future__ import annotations

import logging
from pathlib import Path

from wds_toolkit import collection
from wds_toolkit.client import DiscoveryClient
from wds_toolkit.runtime import Outcome, RunContext, map_limit

from .artifacts import write_artifact
from .backup import export_documents

logger = logging.getLogger(__name__)


async def delete_document(client: DiscoveryClient, ctx: RunContext, document_id: str) -> Outcome:
    return await collection.delete_document(client, ctx, document_id)


async def delete_documents_by_filter(
    client: DiscoveryClient,
    ctx: RunContext,
    documents_path: Path,
    *,
    filter: str = "",
    chunk_size: int | None = None,
) -> Outcome:
    """Back up every matching document, then delete the backed up ids.

    Only documents that made it into the backup are deleted. When the backup
    aborts part way, the remainder count as failures.
    """

    export = await export_documents(
        client,
        ctx,
        documents_path,
        filter=filter,
        chunk_size=chunk_size,
    )
    ids = export.unique_ids

    async def _worker(doc_id: str) -> Outcome:
        return await collection.delete_document(client, ctx, doc_id)

    outcomes = await map_limit(ids, ctx.parallel_limit, _worker)
    successes = sum(o.successes for o in outcomes)
    return Outcome(
        successes=successes,
        failures=max(export.expected - successes - export.skipped, 0),
        skipped=export.skipped,
        data=ids,
    )


async def delete_training_data(client: DiscoveryClient, ctx: RunContext, out: Path) -> Outcome:
    """Back up the collection's training data to ``out``, then delete all of it."""

    training = (await collection.get_training_data(client, ctx)).data[0]
    if write_artifact(ctx, training, out) is not None:
        logger.info("training data has been backed up to: %s", out)
    return await collection.delete_all_training_data(client, ctx)


__all__ = ["delete_document", "delete_documents_by_filter", "delete_training_data"]
