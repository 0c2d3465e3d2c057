"""Tests for the resilient call executor."""

from __future__ import annotations

import pytest
import requests

from ats_resume_store.connection.executor import ResilientExecutor, backoff_delay
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.errors import NotFoundError, PermanentRequestError, TransientNetworkError


class StubHandle:
    def __init__(self, number: int) -> None:
        self.number = number

    def close(self) -> None:
        pass


def _numbered_factory():
    counter = iter(range(1000))
    return lambda: StubHandle(next(counter))


@pytest.fixture
def delays() -> list[float]:
    return []


@pytest.fixture
def executor(delays) -> ResilientExecutor:
    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    pool = HandlePool(_numbered_factory(), size=3)
    return ResilientExecutor(pool, max_attempts=5, base_delay=1, max_delay=5, sleep=record_sleep)


@pytest.mark.asyncio
async def test_returns_result_of_first_successful_attempt(executor, delays):
    calls = []

    async def operation(handle):
        calls.append(handle)
        return "ok"

    assert await executor.execute(operation, "op") == "ok"
    assert len(calls) == 1
    assert delays == []


@pytest.mark.asyncio
async def test_sustained_transient_error_uses_every_attempt_and_raises_last(executor, delays):
    attempts = []

    async def operation(handle):
        attempts.append(handle.number)
        raise TransientNetworkError(f"fail {len(attempts)}")

    with pytest.raises(TransientNetworkError, match="fail 4"):
        await executor.execute(operation, "op", max_attempts=4)

    assert len(attempts) == 4
    assert delays == [1, 2, 4]


@pytest.mark.asyncio
async def test_backoff_is_capped(executor, delays):
    async def operation(handle):
        raise requests.ConnectionError("Connection refused")

    with pytest.raises(requests.ConnectionError):
        await executor.execute(operation, "op")

    assert delays == [1, 2, 4, 5]


@pytest.mark.asyncio
async def test_permanent_error_fails_on_first_attempt(executor, delays):
    attempts = 0

    async def operation(handle):
        nonlocal attempts
        attempts += 1
        raise PermanentRequestError("violates check constraint")

    with pytest.raises(PermanentRequestError):
        await executor.execute(operation, "op")

    assert attempts == 1
    assert delays == []


@pytest.mark.asyncio
async def test_not_found_is_not_retried(executor):
    attempts = 0

    async def operation(handle):
        nonlocal attempts
        attempts += 1
        raise NotFoundError()

    with pytest.raises(NotFoundError):
        await executor.execute(operation, "op")
    assert attempts == 1


@pytest.mark.asyncio
async def test_recovers_after_transient_failure(executor, delays):
    outcomes = [TransientNetworkError("503"), "saved"]

    async def operation(handle):
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert await executor.execute(operation, "op") == "saved"
    assert delays == [1]


@pytest.mark.asyncio
async def test_each_attempt_acquires_a_fresh_handle(executor):
    seen = []

    async def operation(handle):
        seen.append(handle.number)
        raise TimeoutError("timed out")

    with pytest.raises(TimeoutError):
        await executor.execute(operation, "op", max_attempts=4)

    # Round robin over a pool of three.
    assert seen == [0, 1, 2, 0]


@pytest.mark.asyncio
async def test_per_call_delays_override_defaults(executor, delays):
    async def operation(handle):
        raise TransientNetworkError()

    with pytest.raises(TransientNetworkError):
        await executor.execute(operation, "op", max_attempts=3, base_delay=0.5, max_delay=0.75)
    assert delays == [0.5, 0.75]


@pytest.mark.asyncio
async def test_rejects_empty_attempt_budget(executor):
    async def operation(handle):
        return None

    with pytest.raises(ValueError):
        await executor.execute(operation, "op", max_attempts=0)


@pytest.mark.parametrize(("base", "cap"), [(0.1, 5.0), (1, 10), (0.25, 0.25)])
def test_backoff_delay_is_capped_exponential(base, cap):
    delays = [backoff_delay(k, base, cap) for k in range(10)]
    assert delays == [min(base * 2**k, cap) for k in range(10)]
    assert delays == sorted(delays)
    assert max(delays) <= cap
