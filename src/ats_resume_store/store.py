"""Composition root wiring the factory, pool, executor, repository and monitor.

One ``ResumeStore`` is built at process start and closed at shutdown. It
owns the background tasks of the pool and the monitor and cancels each of
them exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ats_resume_store.backend.factory import HandleFactory
from ats_resume_store.backend.handle import BackendHandle
from ats_resume_store.config import Settings, load_settings
from ats_resume_store.connection.executor import ResilientExecutor
from ats_resume_store.connection.monitor import ReachabilityMonitor
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.services.resume_repository import ResumeRepository

logger = logging.getLogger(__name__)


class ResumeStore:
    """All resume store components with a shared start/close lifecycle.

    Example:
        >>> async with ResumeStore.from_env() as store:
        ...     result = await store.repository.save(record)
        ...     print(store.monitor.status.state)
    """

    def __init__(
        self,
        settings: Settings,
        factory: Callable[[], BackendHandle] | None = None,
    ) -> None:
        self.settings = settings
        self.factory = factory if factory is not None else HandleFactory(settings)
        self.pool = HandlePool(self.factory, size=settings.pool_size)
        self.executor = ResilientExecutor(
            self.pool,
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
        )
        self.repository = ResumeRepository(self.executor)
        self.monitor = ReachabilityMonitor(self.executor, interval=settings.monitor_interval)
        self._started = False
        self._closed = False

    @classmethod
    def from_env(cls) -> ResumeStore:
        return cls(load_settings())

    async def start(self) -> None:
        """Start the pool health check and the reachability monitor."""
        if self._started:
            return
        self._started = True
        self.pool.start_health_check(self.settings.health_check_interval)
        self.monitor.start()
        logger.info(
            "Resume store started (%s backend, %d handles)",
            self.settings.backend,
            self.pool.size,
        )

    async def close(self) -> None:
        """Cancel background tasks and release handles. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.monitor.stop()
        self.pool.close()
        dispose = getattr(self.factory, "dispose", None)
        if dispose is not None:
            dispose()
        logger.info("Resume store closed")

    async def __aenter__(self) -> ResumeStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
