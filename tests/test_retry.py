from __future__ import annotations

import asyncio

import pytest

from wds_toolkit.exceptions import ConflictError, TransientRemoteError
from wds_toolkit.runtime import RetryPolicy, retry


class Flaky:
    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error or TransientRemoteError(f"attempt {self.calls} failed")
        return "ok"


def test_retry_succeeds_after_transient_failures() -> None:
    flaky = Flaky(failures=2)

    result = asyncio.run(retry(5, 0, flaky))

    assert result == "ok"
    assert flaky.calls == 3


def test_retry_reraises_last_error_when_exhausted() -> None:
    flaky = Flaky(failures=10)

    with pytest.raises(TransientRemoteError, match="attempt 3 failed"):
        asyncio.run(RetryPolicy(attempts=3, interval_ms=0).call(flaky))
    assert flaky.calls == 3


def test_conflict_is_not_retried() -> None:
    flaky = Flaky(failures=10, error=ConflictError("exists", status_code=409))

    with pytest.raises(ConflictError) as excinfo:
        asyncio.run(RetryPolicy(attempts=5, interval_ms=0).call(flaky))
    assert excinfo.value.status_code == 409
    assert flaky.calls == 1


def test_single_attempt_policy_calls_once() -> None:
    flaky = Flaky(failures=1)

    with pytest.raises(TransientRemoteError):
        asyncio.run(RetryPolicy(attempts=1, interval_ms=0).call(flaky))
    assert flaky.calls == 1


@pytest.mark.parametrize(("attempts", "interval"), [(0, 0), (1, -1)])
def test_invalid_policy_rejected(attempts: int, interval: int) -> None:
    with pytest.raises(ValueError):
        RetryPolicy(attempts=attempts, interval_ms=interval)
