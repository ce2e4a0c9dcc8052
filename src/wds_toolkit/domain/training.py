"""Training data and query-log value objects."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from .base import DomainModel, PermissiveModel


class TrainingExample(PermissiveModel):
    document_id: str
    relevance: int | None = None
    cross_reference: str | None = None
    collection_id: str | None = None


class TrainingQuery(PermissiveModel):
    natural_language_query: str
    query_id: str | None = None
    filter: str | None = None
    examples: tuple[TrainingExample, ...] = Field(default_factory=tuple)

    def create_body(self, collection_id: str) -> dict[str, Any]:
        """Payload for re-creating this query.

        Examples keep their own ``collection_id`` and fall back to ``collection_id``.
        """

        body: dict[str, Any] = {
            "natural_language_query": self.natural_language_query,
            "examples": [
                {
                    key: value
                    for key, value in {
                        "document_id": example.document_id,
                        "collection_id": example.collection_id or collection_id,
                        "relevance": example.relevance,
                        "cross_reference": example.cross_reference,
                    }.items()
                    if value is not None
                }
                for example in self.examples
            ],
        }
        if self.filter:
            body["filter"] = self.filter
        return body

    def matching_examples(self, document_id: str, *, include_segments: bool = False) -> list[str]:
        """Example document ids that refer to ``document_id``.

        With ``include_segments`` split children (``<id>_<n>``) match too.
        """

        escaped = re.escape(document_id)
        pattern = re.compile(rf"^{escaped}(?:_\d+)?$" if include_segments else rf"^{escaped}$")
        return [e.document_id for e in self.examples if pattern.match(e.document_id)]


class TrainingMatch(DomainModel):
    """One example inside one training query that references a document."""

    query_id: str
    natural_language_query: str
    document_id: str

    def as_payload(self) -> dict[str, str]:
        return self.model_dump()


class ReportDocument(DomainModel):
    id: str | None
    title: Any
    collection: str | None
    confidence: float = 0.0


class LogQueryEntry(DomainModel):
    """Aggregate of every logged occurrence of one natural-language query."""

    natural_language_query: str
    count: int = 0
    latest_timestamp: datetime = Field(default_factory=lambda: datetime.min.replace(tzinfo=UTC))
    results: tuple[ReportDocument, ...] = Field(default_factory=tuple)

    def merge(
        self,
        *,
        natural_language_query: str,
        timestamp: datetime,
        results: tuple[ReportDocument, ...],
    ) -> LogQueryEntry:
        """Fold in one occurrence; the latest timestamp owns the results."""

        if timestamp > self.latest_timestamp:
            return LogQueryEntry(
                natural_language_query=natural_language_query,
                count=self.count + 1,
                latest_timestamp=timestamp,
                results=results,
            )
        return self.model_copy(update={"count": self.count + 1})


__all__ = [
    "LogQueryEntry",
    "ReportDocument",
    "TrainingExample",
    "TrainingMatch",
    "TrainingQuery",
]
