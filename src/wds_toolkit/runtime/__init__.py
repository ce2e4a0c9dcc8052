"""Batch orchestration primitives shared by every operation."""

from .context import DEFAULT_CHUNK_SIZE, DEFAULT_PARALLEL_LIMIT, RunContext
from .dates import DateRange, date_range_batches
from .dry_run import DryRunGate
from .executor import map_limit
from .field_map import FieldMap, FieldMapAccumulator, build_field_map, document_id, return_fields
from .outcome import Outcome
from .pagination import DocumentPages, PageTask, count_documents, iterate_documents
from .retry import RetryPolicy, retry

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_PARALLEL_LIMIT",
    "DateRange",
    "DocumentPages",
    "DryRunGate",
    "FieldMap",
    "FieldMapAccumulator",
    "Outcome",
    "PageTask",
    "RetryPolicy",
    "RunContext",
    "build_field_map",
    "count_documents",
    "date_range_batches",
    "document_id",
    "iterate_documents",
    "map_limit",
    "retry",
    "return_fields",
]
