"""High-level maintenance operations, one per CLI command."""

from .backup import backup_documents_as_json, backup_file_metadata, backup_training_data
from .delete import delete_document, delete_documents_by_filter, delete_training_data
from .query import (
    get_collection_information,
    get_collection_notices,
    get_document_id_field_mapping,
    query_collection,
)
from .reports import generate_logs_csv_report
from .training import (
    list_training_data_containing_document,
    remove_all_failed_examples_from_training_data,
    remove_document_from_all_training_data,
    remove_document_from_query,
    replay_training_data,
)
from .upload import upload_file, upload_files_in_directory, upload_json_backups

__all__ = [
    "backup_documents_as_json",
    "backup_file_metadata",
    "backup_training_data",
    "delete_document",
    "delete_documents_by_filter",
    "delete_training_data",
    "generate_logs_csv_report",
    "get_collection_information",
    "get_collection_notices",
    "get_document_id_field_mapping",
    "list_training_data_containing_document",
    "query_collection",
    "remove_all_failed_examples_from_training_data",
    "remove_document_from_all_training_data",
    "remove_document_from_query",
    "replay_training_data",
    "upload_file",
    "upload_files_in_directory",
    "upload_json_backups",
]
