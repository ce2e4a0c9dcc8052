"""Backups of documents, file metadata and training data."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wds_toolkit.client import DiscoveryClient
from wds_toolkit.collection import build_document_field_map, get_training_data
from wds_toolkit.runtime import Outcome, PageTask, RunContext, iterate_documents, map_limit
from wds_toolkit.runtime.field_map import document_id
from wds_toolkit.utils.files import ensure_empty_dir, write_json
from wds_toolkit.utils.paths import get_path, has_path

from .artifacts import write_artifact

FILE_METADATA_FIELDS = (
    "id",
    "document_id",
    "metadata",
    "segment_metadata",
    "extracted_metadata",
)
FILE_METADATA_ID_FIELD = "extracted_metadata.sha1"
JSON_BACKUP_NOTICE = (
    "*** please note that this is only a backup of the JSON documents "
    "and this is not a backup of the original documents. ***"
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DocumentExport:
    """Ids written by a document export plus the collection count it started from."""

    expected: int
    ids: list[str] = field(default_factory=list)
    skipped: int = 0
    aborted: bool = False

    @property
    def unique_ids(self) -> list[str]:
        return list(dict.fromkeys(self.ids))


async def export_documents(
    client: DiscoveryClient,
    ctx: RunContext,
    documents_path: Path,
    *,
    filter: str = "",
    chunk_size: int | None = None,
) -> DocumentExport:
    """Write every matching document to ``<documents_path>/<id>.json``.

    Documents without an id are skipped. A page that cannot be fetched aborts
    the export; whatever was written so far is kept and reported.
    """

    if not ctx.dry_run:
        ensure_empty_dir(documents_path)

    pages = await iterate_documents(client, ctx, filter=filter, chunk_size=chunk_size)
    export = DocumentExport(expected=pages.count)

    async def _worker(task: PageTask) -> None:
        for document in await task():
            doc_id = document_id(document)
            if doc_id is None:
                logger.warning("document missing id field at offset %s", task.offset)
                export.skipped += 1
                continue
            document.pop("result_metadata", None)
            target = documents_path / f"{doc_id}.json"
            if ctx.dry_run:
                ctx.gate.log("Write File", str(target))
            else:
                write_json(document, target)
            export.ids.append(doc_id)

    try:
        await map_limit(pages, ctx.parallel_limit, _worker)
    except Exception as exc:
        logger.error("%s", exc)
        logger.error("batch failed, aborting")
        export.aborted = True
    else:
        pages.report_drift(len(export.ids) + export.skipped)
    return export


async def backup_documents_as_json(
    client: DiscoveryClient,
    ctx: RunContext,
    documents_path: Path,
    *,
    filter: str = "",
    chunk_size: int | None = None,
) -> Outcome:
    export = await export_documents(
        client,
        ctx,
        documents_path,
        filter=filter,
        chunk_size=chunk_size,
    )
    logger.info(JSON_BACKUP_NOTICE)
    successes = len(export.unique_ids)
    return Outcome(
        successes=successes,
        failures=max(export.expected - successes - export.skipped, 0),
        skipped=export.skipped,
        data=export.unique_ids,
    )


def resolve_parent_id(entry: dict[str, Any]) -> str | None:
    """Best available id of the original (unsplit) document."""

    if has_path(entry, "metadata.parent_document_id"):
        return get_path(entry, "metadata.parent_document_id")
    if not entry.get("segment_metadata"):
        return entry.get("id") or entry.get("document_id")
    if has_path(entry, "segment_metadata.parent_id"):
        return get_path(entry, "segment_metadata.parent_id")
    return None


def group_file_metadata(mapping: dict[str, Any]) -> dict[str, list[dict[str, Any]]]:
    """Regroup a sha1-keyed field map by original filename."""

    by_filename: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for entry in mapping.values():
        filename = get_path(entry, "extracted_metadata.filename")
        parent_id = resolve_parent_id(entry)
        if parent_id is None:
            logger.warning("unable to find correct id for %s", filename)
        by_filename[str(filename)].append({"id": parent_id, "metadata": entry.get("metadata")})
    return dict(by_filename)


async def backup_file_metadata(
    client: DiscoveryClient,
    ctx: RunContext,
    out: Path,
    *,
    filter: str = "",
    chunk_size: int | None = None,
) -> Outcome:
    """Save ``{filename: [{id, metadata}]}`` for re-uploading original files."""

    mapping = (
        await build_document_field_map(
            client,
            ctx,
            value_fields=FILE_METADATA_FIELDS,
            id_field=FILE_METADATA_ID_FIELD,
            filter=filter,
            chunk_size=chunk_size,
        )
    ).data[0]
    metadata_map = group_file_metadata(mapping)

    # Same filename with different sha1; the first entry wins on upload.
    duplicates = [name for name, entries in metadata_map.items() if len(entries) > 1]
    if duplicates:
        logger.warning("Conflicting metadata information found for: %s", ",".join(duplicates))
        logger.warning("Please review output file manually for these entries")

    write_artifact(ctx, metadata_map, out)
    return Outcome.success(metadata_map)


async def backup_training_data(client: DiscoveryClient, ctx: RunContext, out: Path) -> Outcome:
    outcome = await get_training_data(client, ctx)
    write_artifact(ctx, outcome.data[0], out)
    return outcome


__all__ = [
    "DocumentExport",
    "backup_documents_as_json",
    "backup_file_metadata",
    "backup_training_data",
    "export_documents",
    "group_file_metadata",
    "resolve_parent_id",
]
