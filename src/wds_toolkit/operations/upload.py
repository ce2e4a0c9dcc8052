"""Document uploads from local files and JSON backups."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from wds_toolkit import collection
from wds_toolkit.client import DiscoveryClient
from wds_toolkit.exceptions import DataError, FatalSetupError
from wds_toolkit.runtime import Outcome, RunContext, map_limit
from wds_toolkit.utils.files import list_files, load_json
from wds_toolkit.utils.paths import get_path

JSON_UPLOAD_NOTICE = (
    "*** please note that these files were uploaded as JSON documents. "
    "the original documents were not uploaded. ***"
)

logger = logging.getLogger(__name__)


async def upload_file(
    client: DiscoveryClient,
    ctx: RunContext,
    path: Path,
    *,
    document_id: str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> Outcome:
    return await collection.upsert_document(
        client,
        ctx,
        path,
        document_id=document_id,
        metadata=metadata,
    )


def mapping_entry(mapping: Mapping[str, Any], filename: str) -> tuple[str | None, dict[str, Any] | None]:
    """Id and metadata recorded for ``filename`` by a file metadata backup."""

    entries = mapping.get(filename) or []
    if not entries:
        return None, None
    first = entries[0]
    return first.get("id") or None, first.get("metadata") or None


async def upload_files_in_directory(
    client: DiscoveryClient,
    ctx: RunContext,
    documents_path: Path,
    *,
    mapping_file: Path | None = None,
) -> Outcome:
    mapping: Mapping[str, Any] = load_json(mapping_file) if mapping_file else {}
    paths = list_files(documents_path)
    logger.info("uploading %s files from %s", len(paths), documents_path)

    async def _worker(path: Path) -> Outcome:
        document_id, metadata = mapping_entry(mapping, path.name)
        return await collection.upsert_document(
            client,
            ctx,
            path,
            document_id=document_id,
            metadata=metadata,
        )

    return Outcome.reduce(await map_limit(paths, ctx.parallel_limit, _worker))


async def upload_json_backups(
    client: DiscoveryClient,
    ctx: RunContext,
    documents_path: Path,
    *,
    id_field: str = "id",
) -> Outcome:
    """Re-upload every ``*.json`` document backup under its recorded id."""

    paths = list_files(documents_path, "*.json")

    async def _worker(path: Path) -> Outcome:
        try:
            document = load_json(path)
        except FatalSetupError as exc:
            logger.error("%s", exc)
            return Outcome.failure()
        try:
            return await collection.upsert_json_backup_document(
                client,
                ctx,
                document,
                get_path(document, id_field),
            )
        except DataError as exc:
            logger.warning("%s: %s", path.name, exc)
            return Outcome.skip()

    outcome = Outcome.reduce(await map_limit(paths, ctx.parallel_limit, _worker))
    logger.info(JSON_UPLOAD_NOTICE)
    return outcome


__all__ = [
    "mapping_entry",
    "upload_file",
    "upload_files_in_directory",
    "upload_json_backups",
]
