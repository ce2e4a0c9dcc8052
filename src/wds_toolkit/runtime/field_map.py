"""Id-keyed index built from paginated documents."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from wds_toolkit.utils.paths import get_path, split_fields

from .executor import map_limit
from .outcome import Outcome
from .pagination import DocumentPages, PageTask

FieldMap = dict[str, Any]

logger = logging.getLogger(__name__)


def document_id(document: Mapping[str, Any], id_field: str | None = None) -> str | None:
    """Return the document id from ``id_field`` or the conventional attributes."""

    if id_field:
        value = get_path(document, id_field)
    else:
        value = document.get("id") or document.get("document_id")
    if value is None or value == "" or value is False:
        return None
    return str(value)


def return_fields(value_fields: str | Sequence[str], id_field: str | None = None) -> str:
    """Fields a query must return to resolve ids and ``value_fields``."""

    wanted = ["id", "document_id", *split_fields(value_fields)]
    if id_field:
        wanted.append(id_field)
    return ",".join(dict.fromkeys(wanted))


class FieldMapAccumulator:
    """Collects ``id -> value`` (or ``id -> {field: value}``) across pages.

    Safe to feed from concurrent workers: each page is applied under a lock,
    and a repeated id keeps whichever write landed last.
    """

    def __init__(self, value_fields: str | Sequence[str], id_field: str | None = None) -> None:
        self._fields = split_fields(value_fields)
        if not self._fields:
            msg = "at least one value field is required"
            raise ValueError(msg)
        self._id_field = id_field or None
        self._map: FieldMap = {}
        self._lock = threading.Lock()
        self.successes = 0
        self.skipped = 0

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def _value(self, document: Mapping[str, Any]) -> Any:
        if len(self._fields) > 1:
            return {field: get_path(document, field) for field in self._fields}
        return get_path(document, self._fields[0])

    def add_page(self, documents: Iterable[Mapping[str, Any]]) -> Outcome:
        resolved: list[tuple[str, Any]] = []
        skipped = 0
        for document in documents:
            key = document_id(document, self._id_field)
            if key is None:
                skipped += 1
                continue
            resolved.append((key, self._value(document)))

        with self._lock:
            for key, value in resolved:
                self._map[key] = value
            self.successes += len(resolved)
            self.skipped += skipped
        if skipped:
            logger.debug("skipped %s documents without a resolvable id", skipped)
        return Outcome(successes=len(resolved), skipped=skipped)

    def build(self) -> FieldMap:
        with self._lock:
            return dict(self._map)

    def outcome(self) -> Outcome:
        return Outcome(successes=self.successes, skipped=self.skipped, data=[self.build()])


async def build_field_map(
    pages: DocumentPages | Iterable[PageTask],
    parallel_limit: int,
    value_fields: str | Sequence[str],
    id_field: str | None = None,
) -> Outcome:
    """Fetch every page and index its documents.

    Returns ``Outcome(successes, 0, skipped, [field_map])``; any page failure
    aborts the whole build.
    """

    accumulator = FieldMapAccumulator(value_fields, id_field)

    async def _worker(task: PageTask) -> Outcome:
        return accumulator.add_page(await task())

    await map_limit(pages, parallel_limit, _worker)
    return accumulator.outcome()


__all__ = ["FieldMap", "FieldMapAccumulator", "build_field_map", "document_id", "return_fields"]
