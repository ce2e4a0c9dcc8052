"""Document reads and gated document mutations.

Every function returns an ``Outcome``. Reads raise ``OperationError`` when the
remote call fails after retries; mutations convert failures into counters.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from wds_toolkit.client import DiscoveryClient, DocumentUpload, QueryParams
from wds_toolkit.exceptions import DataError, OperationError
from wds_toolkit.runtime import (
    Outcome,
    RunContext,
    build_field_map,
    iterate_documents,
    return_fields,
)
from wds_toolkit.utils.paths import get_path

# Fields the service owns; a JSON backup must not send them back as content.
RESERVED_FIELDS = ("metadata", "id", "document_id")

logger = logging.getLogger(__name__)


async def get_collection_information(client: DiscoveryClient, ctx: RunContext) -> Outcome:
    try:
        info = await ctx.retry.call(client.get_collection)
    except Exception as exc:
        logger.error("%s", exc)
        msg = "failed to retrieve collection information"
        raise OperationError(msg) from exc
    return Outcome.success(info)


async def query_collection(
    client: DiscoveryClient,
    ctx: RunContext,
    params: QueryParams,
) -> Outcome:
    try:
        response = await ctx.retry.call(lambda: client.query(params))
    except Exception as exc:
        logger.error("%s", exc)
        msg = "query failed"
        raise OperationError(msg) from exc
    return Outcome.success(response)


async def build_document_field_map(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    value_fields: str | Sequence[str],
    id_field: str | None = None,
    filter: str = "",
    chunk_size: int | None = None,
) -> Outcome:
    """Map every matching document's id to the requested field values."""

    pages = await iterate_documents(
        client,
        ctx,
        filter=filter,
        chunk_size=chunk_size,
        return_fields=return_fields(value_fields, id_field),
    )
    try:
        outcome = await build_field_map(pages, ctx.parallel_limit, value_fields, id_field or None)
    except Exception as exc:
        logger.error("%s", exc)
        msg = "unable to generate id field map"
        raise OperationError(msg) from exc
    pages.report_drift(outcome.successes + outcome.skipped)
    return outcome


async def upsert_document(
    client: DiscoveryClient,
    ctx: RunContext,
    path: Path,
    *,
    document_id: str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> Outcome:
    """Update ``document_id`` with the file at ``path``, or insert when no id."""

    mode = "updateDocument" if document_id else "insertDocument"
    params: dict[str, Any] = {
        "documentId": document_id,
        "file": str(path),
        "collectionId": client.collection_id,
        "metadata": dict(metadata or {}),
    }
    if document_id is None:
        params.pop("documentId")

    async def _call() -> Outcome:
        try:
            upload = DocumentUpload.from_path(path, metadata or {})
            if document_id:
                response = await ctx.retry.call(lambda: client.update_document(document_id, upload))
            else:
                response = await ctx.retry.call(lambda: client.add_document(upload))
        except Exception as exc:
            logger.error("%s", exc)
            logger.error("failed to upsert %s", document_id or path.name)
            return Outcome.failure()
        resolved = document_id or response.get("document_id")
        logger.info("upsert complete with document id: %s", resolved or "document")
        return Outcome.success({"documentId": resolved})

    return await ctx.gate.run(mode, params, _call)


async def upsert_json_backup_document(
    client: DiscoveryClient,
    ctx: RunContext,
    document: Mapping[str, Any],
    document_id: str | None,
) -> Outcome:
    """Re-upload a JSON document backup under its original id."""

    if not document_id or not document:
        msg = "upsert JSON backup document requires id and document"
        raise DataError(msg)

    content = {k: v for k, v in document.items() if k not in RESERVED_FIELDS}
    metadata = document.get("metadata")
    filename = get_path(content, "extracted_metadata.filename")
    upload = DocumentUpload.from_json(content, filename=filename, metadata=metadata)
    params = {
        "documentId": document_id,
        "collectionId": client.collection_id,
        **upload.describe(),
    }

    async def _call() -> Outcome:
        try:
            await ctx.retry.call(lambda: client.update_document(document_id, upload))
        except Exception as exc:
            logger.error("%s", exc)
            logger.error("failed to upsert %s", document_id)
            return Outcome.failure()
        logger.info("%s upsert complete", document_id)
        return Outcome.success({"documentId": document_id})

    return await ctx.gate.run("updateDocument", params, _call)


async def delete_document(client: DiscoveryClient, ctx: RunContext, document_id: str) -> Outcome:
    if not document_id:
        msg = "no document id specified for delete"
        raise DataError(msg)
    params = {"collectionId": client.collection_id, "documentId": document_id}

    async def _call() -> Outcome:
        try:
            await ctx.retry.call(lambda: client.delete_document(document_id))
        except Exception as exc:
            logger.error("failed to delete %s: %s", document_id, exc)
            return Outcome.failure()
        logger.info("deleted %s", document_id)
        return Outcome.success(params)

    return await ctx.gate.run("deleteDocument", params, _call)


__all__ = [
    "RESERVED_FIELDS",
    "build_document_field_map",
    "delete_document",
    "get_collection_information",
    "query_collection",
    "upsert_document",
    "upsert_json_backup_document",
]
