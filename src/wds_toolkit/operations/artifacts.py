"""Dry-run aware writers for local output files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from wds_toolkit.runtime import RunContext
from wds_toolkit.utils.files import write_json

logger = logging.getLogger(__name__)


def write_artifact(ctx: RunContext, payload: Any, path: Path | None) -> Path | None:
    """Write ``payload`` as JSON to ``path`` unless running dry."""

    if path is None:
        return None
    if ctx.dry_run:
        ctx.gate.log("Write File", str(path))
        return None
    write_json(payload, path)
    logger.info("wrote %s", path)
    return path


__all__ = ["write_artifact"]
