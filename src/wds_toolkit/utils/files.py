"""Local JSON artifact helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from wds_toolkit.exceptions import FatalSetupError


def write_json(payload: Any, path: Path) -> Path:
    """Write ``payload`` as JSON, creating parent directories."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"unable to load JSON file {path}"
        raise FatalSetupError(msg) from exc


def ensure_empty_dir(path: Path) -> Path:
    """Create ``path`` if needed and refuse to reuse a non-empty directory."""

    path.mkdir(parents=True, exist_ok=True)
    if any(path.iterdir()):
        msg = f"directory not empty: {path}"
        raise FatalSetupError(msg)
    return path


def list_files(directory: Path, pattern: str = "*") -> list[Path]:
    if not directory.is_dir():
        msg = f"not a directory: {directory}"
        raise FatalSetupError(msg)
    return sorted(p for p in directory.glob(pattern) if p.is_file())


__all__ = ["ensure_empty_dir", "list_files", "load_json", "write_json"]
