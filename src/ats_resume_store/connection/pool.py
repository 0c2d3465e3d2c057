"""Round-robin pool of backend handles with a background health check.

The handle set is only ever replaced wholesale: ``refresh()`` builds a new
tuple and swaps the reference, so readers never see a partially rebuilt
pool. Callers must not keep a handle beyond a single call attempt.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ats_resume_store.backend.handle import BackendHandle

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 5
DEFAULT_HEALTH_CHECK_INTERVAL = 30.0


class HandlePool:
    """Fixed-size set of handles handed out in round-robin order.

    Example:
        >>> pool = HandlePool(factory, size=5)
        >>> pool.start_health_check(30.0)
        >>> handle = pool.acquire()
        >>> ...
        >>> pool.stop()
    """

    def __init__(
        self, factory: Callable[[], BackendHandle], size: int = DEFAULT_POOL_SIZE
    ) -> None:
        if size < 1:
            raise ValueError("Pool size must be at least 1")
        self._factory = factory
        self._size = size
        self._handles: tuple[BackendHandle, ...] = self._build()
        self._index = 0
        self._health_task: asyncio.Task | None = None
        self.rebuild_count = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def health_check_running(self) -> bool:
        return self._health_task is not None and not self._health_task.done()

    def _build(self) -> tuple[BackendHandle, ...]:
        return tuple(self._factory() for _ in range(self._size))

    def acquire(self) -> BackendHandle:
        """Return the next handle. Never blocks and never fails."""
        handles = self._handles
        handle = handles[self._index % len(handles)]
        self._index = (self._index + 1) % self._size
        return handle

    def refresh(self) -> None:
        """Discard every handle and build a new set from the factory."""
        old = self._handles
        self._handles = self._build()
        self.rebuild_count += 1
        for handle in old:
            handle.close()
        logger.info("Rebuilt handle pool (%d handles)", self._size)

    async def check_health(self) -> bool:
        """Probe one handle; rebuild the whole pool if it fails."""
        try:
            response = await self.acquire().probe()
            error = response.error
        except Exception as exc:
            error = exc
        if error is None:
            return True
        logger.warning("Health check failed, rebuilding pool: %s", error)
        self.refresh()
        return False

    def start_health_check(self, interval: float = DEFAULT_HEALTH_CHECK_INTERVAL) -> None:
        """Start the periodic health check on the running event loop."""
        if self.health_check_running:
            return
        self._health_task = asyncio.get_running_loop().create_task(
            self._health_loop(interval), name="handle-pool-health"
        )

    async def _health_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.check_health()

    def stop(self) -> None:
        """Cancel the health check. Repeated calls are no-ops."""
        task, self._health_task = self._health_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Handle pool health check stopped")

    def close(self) -> None:
        """Stop the health check and release every handle."""
        self.stop()
        for handle in self._handles:
            handle.close()
