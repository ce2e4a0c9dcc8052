"""Shared helpers."""

from .files import ensure_empty_dir, list_files, load_json, write_json
from .paths import get_path, has_path, split_fields
from .time import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    "ensure_empty_dir",
    "ensure_utc",
    "format_timestamp",
    "get_path",
    "has_path",
    "list_files",
    "load_json",
    "parse_timestamp",
    "split_fields",
    "utc_now",
    "write_json",
]
