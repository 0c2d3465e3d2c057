"""Backend reachability monitoring.

Tracks whether the backend answers a minimal read, both on a fixed interval
and whenever the host sends a wake signal (window focus, visibility
regained, network back online, user interaction). Results are applied in
issue order: a slow probe that was started before a newer one has finished
is discarded instead of overwriting the newer state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ats_resume_store.backend.handle import BackendHandle
from ats_resume_store.connection.executor import ResilientExecutor

logger = logging.getLogger(__name__)

DEFAULT_MONITOR_INTERVAL = 10.0
DEFAULT_PROBE_ATTEMPTS = 2


class ReachabilityState(Enum):
    """Backend reachability as last observed."""

    UNKNOWN = "unknown"  # No probe has completed yet
    ACTIVE = "active"  # Last probe succeeded
    LOST = "lost"  # Last probe failed


@dataclass(frozen=True, slots=True)
class ReachabilityStatus:
    """Snapshot of the monitor state."""

    state: ReachabilityState = ReachabilityState.UNKNOWN
    last_checked_at: datetime | None = None
    error: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state is ReachabilityState.ACTIVE

    def to_dict(self) -> dict[str, str | None]:
        return {
            "state": self.state.value,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "error": self.error,
        }


Subscriber = Callable[[ReachabilityStatus, ReachabilityStatus], None]


class ReachabilityMonitor:
    """Probe the backend periodically and publish state changes.

    Example:
        >>> monitor = ReachabilityMonitor(executor, interval=10.0)
        >>> unsubscribe = monitor.subscribe(lambda old, new: print(old.state, "->", new.state))
        >>> monitor.start()
        >>> monitor.wake("focus")  # out-of-cycle probe
        >>> ...
        >>> monitor.stop()
    """

    def __init__(
        self,
        executor: ResilientExecutor,
        *,
        interval: float = DEFAULT_MONITOR_INTERVAL,
        probe_attempts: int = DEFAULT_PROBE_ATTEMPTS,
        on_active: Callable[[], None] | None = None,
    ) -> None:
        self._executor = executor
        self._interval = interval
        self._probe_attempts = probe_attempts
        self.on_active = on_active

        self._status = ReachabilityStatus()
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._subscribers: list[Subscriber] = []
        self._timer: asyncio.Task | None = None
        self._wake_tasks: set[asyncio.Task] = set()

    @property
    def status(self) -> ReachabilityStatus:
        return self._status

    @property
    def is_checking(self) -> bool:
        """True while at least one probe is in flight."""
        return self._in_flight > 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback(old, new)`` for state changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def probe_now(self) -> bool:
        """Run one probe immediately and return whether the backend answered."""
        self._issued += 1
        sequence = self._issued
        self._in_flight += 1
        error: str | None = None
        try:
            await self._executor.execute(
                _probe, "testConnection", max_attempts=self._probe_attempts
            )
            reachable = True
        except Exception as exc:
            reachable = False
            error = str(exc) or type(exc).__name__
        finally:
            self._in_flight -= 1

        self._apply(sequence, reachable, error)
        return reachable

    def wake(self, reason: str = "wake") -> asyncio.Task:
        """Schedule an out-of-cycle probe in response to a host event."""
        logger.debug("Reachability probe requested: %s", reason)
        task = asyncio.get_running_loop().create_task(self.probe_now())
        self._wake_tasks.add(task)
        task.add_done_callback(self._wake_tasks.discard)
        return task

    def start(self) -> None:
        """Probe immediately, then every ``interval`` seconds."""
        if self.running:
            return
        self._timer = asyncio.get_running_loop().create_task(
            self._run(), name="reachability-monitor"
        )
        logger.info("Reachability monitor started (every %.1fs)", self._interval)

    def stop(self) -> None:
        """Cancel the timer and any pending wake probes. Repeated calls are no-ops."""
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            logger.info("Reachability monitor stopped")
        for task in list(self._wake_tasks):
            task.cancel()
        self._wake_tasks.clear()

    async def _run(self) -> None:
        while True:
            await self.probe_now()
            await asyncio.sleep(self._interval)

    def _apply(self, sequence: int, reachable: bool, error: str | None) -> None:
        if sequence <= self._applied:
            logger.debug("Discarding stale probe result #%d (applied #%d)", sequence, self._applied)
            return
        self._applied = sequence

        old = self._status
        new = ReachabilityStatus(
            state=ReachabilityState.ACTIVE if reachable else ReachabilityState.LOST,
            last_checked_at=datetime.now(UTC),
            error=error,
        )
        self._status = new

        if old.state is not new.state:
            logger.info("Backend reachability: %s -> %s", old.state.value, new.state.value)
            for callback in list(self._subscribers):
                try:
                    callback(old, new)
                except Exception:
                    logger.exception("Reachability subscriber failed")

        if reachable and self.on_active is not None:
            try:
                self.on_active()
            except Exception:
                logger.exception("on_active callback failed")


async def _probe(handle: BackendHandle) -> bool:
    return (await handle.probe()).unwrap()
