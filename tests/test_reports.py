from __future__ import annotations

import asyncio
import csv
from datetime import UTC, datetime
from pathlib import Path

from wds_toolkit import operations
from wds_toolkit.client import InMemoryDiscoveryClient
from wds_toolkit.operations.reports import LogReport, report_headers
from wds_toolkit.runtime import RetryPolicy, RunContext

TITLES = {"d1": "guide.pdf", "d2": "faq.pdf"}


def _entry(text: str, timestamp: str, results: list[tuple[str, float]], customer: str | None = "c1"):
    return {
        "natural_language_query": text,
        "created_timestamp": timestamp,
        "customer_id": customer,
        "document_results": {
            "results": [
                {"document_id": doc, "collection_id": "col", "confidence": confidence}
                for doc, confidence in results
            ]
        },
    }


ENTRIES = [
    _entry("Reset Password", "2024-01-02T10:00:00Z", [("d1", 0.5)]),
    _entry("reset password", "2024-01-05T10:00:00Z", [("d1", 0.3), ("d2", 0.9), ("d3", 0.1)]),
    _entry("RESET PASSWORD", "2024-01-01T10:00:00Z", [("d2", 0.2)]),
    _entry("billing", "2024-01-07T10:00:00Z", [("d2", 0.7)]),
]


def test_latest_occurrence_owns_results_regardless_of_order() -> None:
    forward = LogReport(TITLES)
    backward = LogReport(TITLES)

    forward.add_all(ENTRIES)
    backward.add_all(reversed(ENTRIES))

    for report in (forward, backward):
        top = report.entries()[0]
        assert top.count == 3
        assert top.natural_language_query == "reset password"
        assert top.latest_timestamp == datetime(2024, 1, 5, 10, tzinfo=UTC)
        assert [d.id for d in top.results] == ["d2", "d1", "d3"]
        assert [d.title for d in top.results] == ["faq.pdf", "guide.pdf", "N/A"]


def test_entries_sorted_by_count_then_latest() -> None:
    report = LogReport(TITLES)
    report.add_all(
        [
            _entry("a", "2024-01-01T00:00:00Z", []),
            _entry("b", "2024-01-03T00:00:00Z", []),
            _entry("c", "2024-01-02T00:00:00Z", []),
            _entry("c", "2024-01-02T01:00:00Z", []),
        ]
    )

    assert [e.natural_language_query for e in report.entries()] == ["c", "b", "a"]


def test_customer_id_only_filters_entries() -> None:
    report = LogReport(TITLES, customer_id_only=True)

    added = report.add_all([_entry("a", "2024-01-01T00:00:00Z", [], customer=None), ENTRIES[3]])

    assert added == 1
    assert [e.natural_language_query for e in report.entries()] == ["billing"]


def test_entries_without_timestamp_are_skipped() -> None:
    report = LogReport(TITLES)
    missing = _entry("billing", "", [("d1", 0.4)])
    del missing["created_timestamp"]

    added = report.add_all([missing, _entry("billing", "not a date", []), ENTRIES[3]])

    assert added == 1
    assert report.entries()[0].count == 1
    assert [d.id for d in report.entries()[0].results] == ["d2"]


def test_rows_format_confidence_and_timestamp() -> None:
    report = LogReport(TITLES)
    report.add_all(ENTRIES[3:])

    row = report.rows()[0]

    assert row["QUERY"] == "billing"
    assert row["COUNT"] == 1
    assert row["LATEST_TIMESTAMP"] == "2024-01-07T10:00:00Z"
    assert row["DOC_1_TITLE"] == "faq.pdf"
    assert row["DOC_1_CONFIDENCE"] == "0.70"


def test_headers_cover_ten_documents() -> None:
    headers = report_headers()

    assert headers[:3] == ["QUERY", "COUNT", "LATEST_TIMESTAMP"]
    assert len(headers) == 43
    assert headers[-1] == "DOC_10_CONFIDENCE"


def _client() -> InMemoryDiscoveryClient:
    return InMemoryDiscoveryClient(
        documents=[
            {"id": "d1", "extracted_metadata": {"filename": "guide.pdf"}},
            {"id": "d2", "extracted_metadata": {"filename": "faq.pdf"}},
        ],
        logs=ENTRIES,
    )


def test_generate_logs_csv_report(tmp_path: Path) -> None:
    out = tmp_path / "report.csv"
    ctx = RunContext(parallel_limit=2, retry=RetryPolicy(attempts=1, interval_ms=0))

    outcome = asyncio.run(
        operations.generate_logs_csv_report(
            _client(),
            ctx,
            out,
            start="2024-01-01T00:00:00Z",
            end="2024-01-10T00:00:00Z",
            batch_size=2,
            batch_unit="days",
        )
    )

    assert outcome.successes == 1
    with out.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert [r["QUERY"] for r in rows] == ["reset password", "billing"]
    assert rows[0]["COUNT"] == "3"
    assert rows[0]["DOC_1_TITLE"] == "faq.pdf"
    assert rows[0]["DOC_1_CONFIDENCE"] == "0.90"
    assert rows[1]["DOC_2_ID"] == ""


def test_generate_logs_report_window_excludes_older_entries(tmp_path: Path) -> None:
    out = tmp_path / "report.csv"
    ctx = RunContext(retry=RetryPolicy(attempts=1, interval_ms=0))

    asyncio.run(
        operations.generate_logs_csv_report(
            _client(),
            ctx,
            out,
            start="2024-01-03T00:00:00Z",
            end="2024-01-10T00:00:00Z",
        )
    )

    with out.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert {r["QUERY"]: r["COUNT"] for r in rows} == {"reset password": "1", "billing": "1"}


def test_generate_logs_report_dry_run_skips_write(tmp_path: Path) -> None:
    out = tmp_path / "report.csv"
    ctx = RunContext(dry_run=True, retry=RetryPolicy(attempts=1, interval_ms=0))

    asyncio.run(
        operations.generate_logs_csv_report(
            _client(), ctx, out, start="2024-01-01T00:00:00Z", end="2024-01-10T00:00:00Z"
        )
    )

    assert not out.exists()
