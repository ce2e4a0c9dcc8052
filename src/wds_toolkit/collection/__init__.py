"""Remote collection calls wrapped with retry, dry-run and outcome handling."""

from .documents import (
    build_document_field_map,
    delete_document,
    get_collection_information,
    query_collection,
    upsert_document,
    upsert_json_backup_document,
)
from .logs import LogPageTask, iterate_logs
from .notices import get_notices
from .training import (
    create_training_query,
    delete_all_training_data,
    delete_example_from_query,
    find_matching_examples,
    get_training_data,
    get_training_query,
    parse_queries,
)

__all__ = [
    "LogPageTask",
    "build_document_field_map",
    "create_training_query",
    "delete_all_training_data",
    "delete_document",
    "delete_example_from_query",
    "find_matching_examples",
    "get_collection_information",
    "get_notices",
    "get_training_data",
    "get_training_query",
    "iterate_logs",
    "parse_queries",
    "query_collection",
    "upsert_document",
    "upsert_json_backup_document",
]
