"""Per-invocation execution settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from .dry_run import DryRunGate
from .retry import RetryPolicy

DEFAULT_PARALLEL_LIMIT = 1
DEFAULT_CHUNK_SIZE = 100


@dataclass(frozen=True, slots=True)
class RunContext:
    """Read-only settings threaded through every operation."""

    dry_run: bool = False
    parallel_limit: int = DEFAULT_PARALLEL_LIMIT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        if self.parallel_limit < 1:
            msg = "parallel_limit must be at least 1"
            raise ValueError(msg)
        if self.chunk_size < 1:
            msg = "chunk_size must be at least 1"
            raise ValueError(msg)

    @property
    def gate(self) -> DryRunGate:
        return DryRunGate(self.dry_run)


__all__ = ["DEFAULT_CHUNK_SIZE", "DEFAULT_PARALLEL_LIMIT", "RunContext"]
