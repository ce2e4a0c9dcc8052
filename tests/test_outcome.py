from __future__ import annotations

import pytest

from wds_toolkit.runtime import Outcome


def test_reduce_sums_counters_and_concatenates_payloads() -> None:
    outcomes = [
        Outcome.success("a"),
        Outcome.failure(),
        Outcome.skip(),
        Outcome(successes=2, data=["b", "c"]),
    ]

    total = Outcome.reduce(outcomes)

    assert (total.successes, total.failures, total.skipped) == (3, 1, 1)
    assert total.data == ["a", "b", "c"]
    assert total.total == 5


def test_reduce_of_nothing_is_identity() -> None:
    assert Outcome.reduce([]) == Outcome()


def test_combine_keeps_left_payload_unless_given() -> None:
    left = Outcome(successes=1, data=["left"])
    right = Outcome(failures=2, data=["right"])

    merged = left.combine(right)
    replaced = left.combine(right, data=["x"])

    assert merged.data == ["left"]
    assert (merged.successes, merged.failures) == (1, 2)
    assert replaced.data == ["x"]
    assert left.data == ["left"]


def test_combine_is_associative_on_counters() -> None:
    a, b, c = Outcome(1, 0, 2), Outcome(0, 3, 0), Outcome(4, 1, 1)

    left = a.combine(b).combine(c)
    right = a.combine(b.combine(c))

    assert (left.successes, left.failures, left.skipped) == (
        right.successes,
        right.failures,
        right.skipped,
    )


def test_negative_counters_rejected() -> None:
    with pytest.raises(ValueError):
        Outcome(successes=-1)
