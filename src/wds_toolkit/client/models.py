"""Payload models exchanged with Discovery clients."""

from __future__ import annotations

import json
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class DocumentUpload:
    """File content plus optional metadata for an add/update document call."""

    filename: str | None
    content: bytes
    content_type: str = DEFAULT_CONTENT_TYPE
    metadata: Mapping[str, Any] | None = None

    @classmethod
    def from_path(cls, path: Path, metadata: Mapping[str, Any] | None = None) -> DocumentUpload:
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            metadata=metadata,
        )

    @classmethod
    def from_json(
        cls,
        document: Mapping[str, Any],
        *,
        filename: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> DocumentUpload:
        return cls(
            filename=filename,
            content=json.dumps(document).encode("utf-8"),
            content_type="application/json",
            metadata=metadata,
        )

    def describe(self) -> dict[str, Any]:
        """Loggable summary without the raw content."""

        summary: dict[str, Any] = {
            "filename": self.filename,
            "content_type": self.content_type,
            "size": len(self.content),
        }
        if self.metadata is not None:
            summary["metadata"] = dict(self.metadata)
        return summary


@dataclass(slots=True)
class QueryParams:
    """Query options understood by the collection query endpoint."""

    filter: str | None = None
    query: str | None = None
    natural_language_query: str | None = None
    count: int | None = None
    offset: int | None = None
    sort: str | None = None
    return_fields: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        """Drop unset values and map to wire parameter names."""

        params: dict[str, Any] = dict(self.extra)
        candidates = {
            "filter": self.filter,
            "query": self.query,
            "natural_language_query": self.natural_language_query,
            "count": self.count,
            "offset": self.offset,
            "sort": self.sort,
            "return": self.return_fields,
        }
        for key, value in candidates.items():
            if value is None or value == "":
                continue
            params[key] = value
        return params


__all__ = ["DEFAULT_CONTENT_TYPE", "DocumentUpload", "QueryParams"]
