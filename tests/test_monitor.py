"""Tests for the reachability monitor."""

from __future__ import annotations

import asyncio

import pytest

from ats_resume_store.backend.handle import QueryResponse
from ats_resume_store.connection.executor import ResilientExecutor
from ats_resume_store.connection.monitor import ReachabilityMonitor, ReachabilityState
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.errors import PermanentRequestError, TransientNetworkError


class ScriptedHandle:
    """Handle whose probes follow a script.

    Script items: ``True`` succeeds, an exception fails with that error, an
    ``asyncio.Event`` blocks until set and then succeeds. Once the script is
    exhausted ``default`` is used.
    """

    def __init__(self, script=(), default=True) -> None:
        self.script = list(script)
        self.default = default
        self.probes = 0

    async def probe(self) -> QueryResponse:
        self.probes += 1
        step = self.script.pop(0) if self.script else self.default
        if isinstance(step, asyncio.Event):
            await step.wait()
            return QueryResponse(data=True)
        if isinstance(step, Exception):
            return QueryResponse(error=step)
        return QueryResponse(data=True)

    def close(self) -> None:
        pass


async def _no_sleep(delay: float) -> None:
    return None


def _monitor(handle: ScriptedHandle, **kwargs) -> ReachabilityMonitor:
    pool = HandlePool(lambda: handle, size=1)
    executor = ResilientExecutor(pool, base_delay=0, max_delay=0, sleep=_no_sleep)
    return ReachabilityMonitor(executor, **kwargs)


def test_initial_state_is_unknown():
    monitor = _monitor(ScriptedHandle())
    assert monitor.status.state is ReachabilityState.UNKNOWN
    assert monitor.status.last_checked_at is None
    assert monitor.is_checking is False


@pytest.mark.asyncio
async def test_first_failure_is_lost_then_success_is_active():
    lost = PermanentRequestError("Invalid API key")
    monitor = _monitor(ScriptedHandle([lost]))
    changes = []
    monitor.subscribe(lambda old, new: changes.append((old.state, new.state)))

    assert await monitor.probe_now() is False
    assert monitor.status.state is ReachabilityState.LOST
    assert monitor.status.error == "Invalid API key"

    assert await monitor.probe_now() is True
    assert monitor.status.state is ReachabilityState.ACTIVE
    assert monitor.status.error is None

    assert changes == [
        (ReachabilityState.UNKNOWN, ReachabilityState.LOST),
        (ReachabilityState.LOST, ReachabilityState.ACTIVE),
    ]


@pytest.mark.asyncio
async def test_probe_uses_small_attempt_budget():
    handle = ScriptedHandle(default=TransientNetworkError("timeout"))
    monitor = _monitor(handle, probe_attempts=2)

    assert await monitor.probe_now() is False
    assert handle.probes == 2


@pytest.mark.asyncio
async def test_unchanged_state_updates_timestamp_without_notifying():
    monitor = _monitor(ScriptedHandle())
    changes = []
    monitor.subscribe(lambda old, new: changes.append(new.state))

    await monitor.probe_now()
    first = monitor.status.last_checked_at
    await monitor.probe_now()

    assert changes == [ReachabilityState.ACTIVE]
    assert monitor.status.last_checked_at >= first


@pytest.mark.asyncio
async def test_stale_probe_does_not_overwrite_newer_result():
    gate = asyncio.Event()
    handle = ScriptedHandle([gate], default=PermanentRequestError("offline"))
    monitor = _monitor(handle)

    slow = asyncio.create_task(monitor.probe_now())
    await asyncio.sleep(0)
    assert monitor.is_checking is True

    assert await monitor.probe_now() is False
    assert monitor.status.state is ReachabilityState.LOST

    gate.set()
    assert await slow is True
    # The slow probe was issued first, so its success is discarded.
    assert monitor.status.state is ReachabilityState.LOST
    assert monitor.is_checking is False


@pytest.mark.asyncio
async def test_unsubscribe_and_failing_subscriber():
    monitor = _monitor(ScriptedHandle([PermanentRequestError("down")]))
    seen = []

    def broken(old, new):
        raise RuntimeError("ui went away")

    monitor.subscribe(broken)
    unsubscribe = monitor.subscribe(lambda old, new: seen.append(new.state))

    await monitor.probe_now()
    unsubscribe()
    unsubscribe()
    await monitor.probe_now()

    assert seen == [ReachabilityState.LOST]
    assert monitor.status.state is ReachabilityState.ACTIVE


@pytest.mark.asyncio
async def test_on_active_fires_for_every_success():
    calls = []
    monitor = _monitor(ScriptedHandle(), on_active=lambda: calls.append(1))
    await monitor.probe_now()
    await monitor.probe_now()
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_wake_runs_out_of_cycle_probe():
    handle = ScriptedHandle()
    monitor = _monitor(handle)

    task = monitor.wake("visibilitychange")
    assert await task is True
    assert handle.probes == 1
    assert monitor.status.is_active


@pytest.mark.asyncio
async def test_start_probes_periodically_and_stop_cancels_timer():
    handle = ScriptedHandle()
    monitor = _monitor(handle, interval=0.01)

    monitor.start()
    monitor.start()
    await asyncio.sleep(0.06)
    assert monitor.running
    assert handle.probes >= 2

    monitor.stop()
    await asyncio.sleep(0)
    probes = handle.probes
    await asyncio.sleep(0.05)

    assert not monitor.running
    assert handle.probes == probes
    monitor.stop()


@pytest.mark.asyncio
async def test_stop_cancels_pending_wake_probes():
    gate = asyncio.Event()
    monitor = _monitor(ScriptedHandle([gate]))

    task = monitor.wake("online")
    await asyncio.sleep(0)
    monitor.stop()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert monitor.status.state is ReachabilityState.UNKNOWN


def test_status_to_dict():
    monitor = _monitor(ScriptedHandle())
    assert monitor.status.to_dict() == {"state": "unknown", "last_checked_at": None, "error": None}
