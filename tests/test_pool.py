"""Tests for the round-robin handle pool."""

from __future__ import annotations

import asyncio

import pytest

from ats_resume_store.backend.handle import QueryResponse
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.errors import TransientNetworkError


class StubHandle:
    """Handle double whose probe result is controlled by the test."""

    def __init__(self, number: int, healthy: bool = True) -> None:
        self.number = number
        self.healthy = healthy
        self.closed = False
        self.probes = 0

    async def probe(self) -> QueryResponse:
        self.probes += 1
        if self.healthy:
            return QueryResponse(data=True)
        return QueryResponse(error=TransientNetworkError("Connection refused"))

    def close(self) -> None:
        self.closed = True


class StubFactory:
    def __init__(self, healthy: bool = True) -> None:
        self.healthy = healthy
        self.built: list[StubHandle] = []

    def __call__(self) -> StubHandle:
        handle = StubHandle(len(self.built), self.healthy)
        self.built.append(handle)
        return handle


def test_acquire_rotates_round_robin():
    pool = HandlePool(StubFactory(), size=3)
    numbers = [pool.acquire().number for _ in range(7)]
    assert numbers == [0, 1, 2, 0, 1, 2, 0]
    assert pool.size == 3


def test_pool_size_must_be_positive():
    with pytest.raises(ValueError):
        HandlePool(StubFactory(), size=0)


def test_refresh_replaces_every_handle_and_closes_old_ones():
    factory = StubFactory()
    pool = HandlePool(factory, size=2)
    old = [pool.acquire(), pool.acquire()]

    pool.refresh()

    assert all(h.closed for h in old)
    assert {pool.acquire().number, pool.acquire().number} == {2, 3}
    assert pool.rebuild_count == 1


@pytest.mark.asyncio
async def test_healthy_check_keeps_pool():
    factory = StubFactory()
    pool = HandlePool(factory, size=2)

    assert await pool.check_health() is True
    assert pool.rebuild_count == 0
    assert len(factory.built) == 2


@pytest.mark.asyncio
async def test_failed_check_rebuilds_whole_pool():
    factory = StubFactory(healthy=False)
    pool = HandlePool(factory, size=3)

    assert await pool.check_health() is False

    assert pool.rebuild_count == 1
    assert len(factory.built) == 6
    assert all(h.closed for h in factory.built[:3])


@pytest.mark.asyncio
async def test_probe_exception_also_rebuilds():
    class RaisingHandle(StubHandle):
        async def probe(self) -> QueryResponse:
            raise OSError("socket closed")

    pool = HandlePool(lambda: RaisingHandle(0), size=1)
    assert await pool.check_health() is False
    assert pool.rebuild_count == 1


@pytest.mark.asyncio
async def test_background_health_check_runs_until_stopped():
    factory = StubFactory(healthy=False)
    pool = HandlePool(factory, size=1)

    pool.start_health_check(0.01)
    pool.start_health_check(0.01)  # second start is ignored
    await asyncio.sleep(0.08)
    assert pool.health_check_running
    assert pool.rebuild_count >= 2

    pool.stop()
    await asyncio.sleep(0)
    rebuilds = pool.rebuild_count
    await asyncio.sleep(0.05)

    assert not pool.health_check_running
    assert pool.rebuild_count == rebuilds


@pytest.mark.asyncio
async def test_stop_is_idempotent():
    pool = HandlePool(StubFactory(), size=1)
    pool.stop()  # never started
    pool.start_health_check(10)
    pool.stop()
    pool.stop()
    assert not pool.health_check_running


def test_close_releases_current_handles():
    factory = StubFactory()
    pool = HandlePool(factory, size=2)
    pool.close()
    assert all(h.closed for h in factory.built)
