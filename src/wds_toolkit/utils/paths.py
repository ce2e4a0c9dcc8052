"""Dotted field-path helpers for nested JSON documents."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_MISSING = object()


def get_path(document: Any, path: str | Sequence[str], default: Any = None) -> Any:
    """Resolve ``a.b.c`` (or a list of keys) inside nested mappings and lists."""

    keys = path.split(".") if isinstance(path, str) else list(path)
    current = document
    for key in keys:
        current = _step(current, key)
        if current is _MISSING:
            return default
    return current


def has_path(document: Any, path: str | Sequence[str]) -> bool:
    return get_path(document, path, _MISSING) is not _MISSING


def split_fields(fields: str | Sequence[str]) -> list[str]:
    """Normalize a comma separated field list."""

    raw = fields.split(",") if isinstance(fields, str) else list(fields)
    return [field.strip() for field in raw if field.strip()]


def _step(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(key, _MISSING)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            return current[int(key)]
        except (ValueError, IndexError):
            return _MISSING
    return _MISSING


__all__ = ["get_path", "has_path", "split_fields"]
