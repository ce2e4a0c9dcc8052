"""Aggregable result record returned by every operation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Outcome:
    """Success/failure/skip counters plus an arbitrary payload list.

    ``data`` is not tied to the counters: it carries whatever payloads the
    producing unit of work wants to report.
    """

    successes: int = 0
    failures: int = 0
    skipped: int = 0
    data: list[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("successes", "failures", "skipped"):
            if getattr(self, name) < 0:
                msg = f"Outcome.{name} must be non-negative"
                raise ValueError(msg)

    @classmethod
    def success(cls, *payload: Any) -> Outcome:
        return cls(successes=1, data=list(payload))

    @classmethod
    def failure(cls) -> Outcome:
        return cls(failures=1)

    @classmethod
    def skip(cls) -> Outcome:
        return cls(skipped=1)

    @property
    def total(self) -> int:
        return self.successes + self.failures + self.skipped

    def combine(self, other: Outcome, data: list[Any] | None = None) -> Outcome:
        """Return a new outcome with summed counters.

        The payload is ``data`` when supplied, otherwise this outcome's payload;
        callers decide whether to merge or replace.
        """

        return Outcome(
            successes=self.successes + other.successes,
            failures=self.failures + other.failures,
            skipped=self.skipped + other.skipped,
            data=list(self.data) if data is None else data,
        )

    @classmethod
    def reduce(cls, outcomes: Iterable[Outcome]) -> Outcome:
        """Fold outcomes left to right, concatenating their payloads."""

        acc = cls()
        for outcome in outcomes:
            acc = acc.combine(outcome, acc.data + list(outcome.data))
        return acc


__all__ = ["Outcome"]
