"""Query-log CSV report."""

from __future__ import annotations

import csv
import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from wds_toolkit import collection
from wds_toolkit.client import DiscoveryClient
from wds_toolkit.domain.training import LogQueryEntry, ReportDocument
from wds_toolkit.exceptions import OperationError
from wds_toolkit.runtime import Outcome, RunContext, map_limit
from wds_toolkit.utils.time import format_timestamp, parse_timestamp

DEFAULT_TITLE_FIELD = "extracted_metadata.filename"
REPORT_DOCUMENTS = 10
MISSING_TITLE = "N/A"

logger = logging.getLogger(__name__)


def report_headers(documents: int = REPORT_DOCUMENTS) -> list[str]:
    headers = ["QUERY", "COUNT", "LATEST_TIMESTAMP"]
    for i in range(1, documents + 1):
        headers += [f"DOC_{i}_TITLE", f"DOC_{i}_ID", f"DOC_{i}_COLLECTION", f"DOC_{i}_CONFIDENCE"]
    return headers


class LogReport:
    """Per-query aggregation of log entries, keyed by the lowercased query."""

    def __init__(
        self,
        titles: Mapping[str, Any],
        *,
        customer_id_only: bool = False,
    ) -> None:
        self._titles = titles
        self._customer_id_only = customer_id_only
        self._entries: dict[str, LogQueryEntry] = {}
        self._lock = threading.Lock()

    def _title(self, doc_id: str | None) -> Any:
        title = self._titles.get(doc_id) if doc_id else None
        return MISSING_TITLE if title is None else title

    def _documents(self, entry: Mapping[str, Any]) -> tuple[ReportDocument, ...]:
        results = (entry.get("document_results") or {}).get("results") or []
        documents = [
            ReportDocument(
                id=r.get("document_id"),
                title=self._title(r.get("document_id")),
                collection=r.get("collection_id"),
                confidence=r.get("confidence") or 0.0,
            )
            for r in results
        ]
        documents.sort(key=lambda d: d.confidence, reverse=True)
        return tuple(documents)

    def add(self, entry: Mapping[str, Any]) -> bool:
        """Fold one log entry in; returns False when it is filtered out."""

        text = entry.get("natural_language_query")
        if not text:
            return False
        if self._customer_id_only and not entry.get("customer_id"):
            return False
        raw_timestamp = entry.get("created_timestamp")
        if not raw_timestamp:
            logger.debug("skipping log entry without timestamp: %s", text)
            return False
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except (TypeError, ValueError):
            logger.debug("skipping log entry with bad timestamp %r: %s", raw_timestamp, text)
            return False
        documents = self._documents(entry)
        key = text.lower()
        with self._lock:
            current = self._entries.get(key) or LogQueryEntry(natural_language_query=text)
            self._entries[key] = current.merge(
                natural_language_query=text,
                timestamp=timestamp,
                results=documents,
            )
        return True

    def add_all(self, entries: Iterable[Mapping[str, Any]]) -> int:
        return sum(1 for entry in entries if self.add(entry))

    def entries(self) -> list[LogQueryEntry]:
        """Entries sorted by count, then latest timestamp, both descending."""

        with self._lock:
            values = list(self._entries.values())
        return sorted(values, key=lambda e: (e.count, e.latest_timestamp), reverse=True)

    def rows(self) -> list[dict[str, Any]]:
        rows = []
        for entry in self.entries():
            row: dict[str, Any] = {
                "QUERY": entry.natural_language_query,
                "COUNT": entry.count,
                "LATEST_TIMESTAMP": format_timestamp(entry.latest_timestamp),
            }
            for i, document in enumerate(entry.results[:REPORT_DOCUMENTS], start=1):
                row[f"DOC_{i}_TITLE"] = document.title
                row[f"DOC_{i}_ID"] = document.id
                row[f"DOC_{i}_COLLECTION"] = document.collection
                row[f"DOC_{i}_CONFIDENCE"] = f"{document.confidence:.2f}"
            rows.append(row)
        return rows


def write_report(rows: list[dict[str, Any]], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=report_headers())
        writer.writeheader()
        writer.writerows(rows)
    return path


async def generate_logs_csv_report(
    client: DiscoveryClient,
    ctx: RunContext,
    out: Path,
    *,
    start: datetime | str | None = None,
    end: datetime | str | None = None,
    batch_size: int = 15,
    batch_unit: str = "days",
    filter: str = "",
    title_field: str = DEFAULT_TITLE_FIELD,
    customer_id_only: bool = False,
    chunk_size: int | None = None,
) -> Outcome:
    """Summarize natural-language queries from the logs into a CSV file."""

    logger.info("retrieving collection info")
    titles = (
        await collection.build_document_field_map(
            client,
            ctx,
            value_fields=title_field,
            id_field="id",
            chunk_size=chunk_size,
        )
    ).data[0]

    logger.info("retrieving logs")
    report = LogReport(titles, customer_id_only=customer_id_only)
    tasks = collection.iterate_logs(
        client,
        ctx,
        start=start,
        end=end,
        batch_size=batch_size,
        batch_unit=batch_unit,
        filter=filter,
    )

    async def _worker(task: collection.LogPageTask) -> int:
        return report.add_all(await task())

    try:
        counted = await map_limit(tasks, ctx.parallel_limit, _worker)
    except Exception as exc:
        logger.error("%s", exc)
        msg = "unable to generate CSV logs report"
        raise OperationError(msg) from exc

    logger.info("processing data")
    rows = report.rows()
    logger.info("%s log entries aggregated into %s queries", sum(counted), len(rows))
    if ctx.dry_run:
        ctx.gate.log("Write File", str(out))
    else:
        write_report(rows, out)
        logger.info("wrote CSV to %s", out)
    return Outcome.success()


__all__ = [
    "DEFAULT_TITLE_FIELD",
    "LogReport",
    "generate_logs_csv_report",
    "report_headers",
    "write_report",
]
