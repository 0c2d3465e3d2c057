"""Backend handle factory.

Builds configured handles for the pool. The REST variant gets the client
identification and keep-alive headers plus the per-handle event-rate limit;
the SQL variant shares one engine between all handles it produces.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from ats_resume_store.backend.handle import BackendHandle
from ats_resume_store.backend.rest import RestHandle
from ats_resume_store.backend.sql import SqlHandle
from ats_resume_store.config import BACKEND_SQL, CLIENT_INFO, Settings
from ats_resume_store.data.db import create_db_engine

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "x-client-info": CLIENT_INFO,
    "Connection": "keep-alive",
    "Keep-Alive": "timeout=300, max=1000",
}


class HandleFactory:
    """Callable producing a fresh backend handle per invocation."""

    def __init__(self, settings: Settings, engine: Engine | None = None) -> None:
        self._settings = settings
        self._engine = engine
        self._owns_engine = False
        if settings.backend == BACKEND_SQL and self._engine is None:
            self._engine = create_db_engine(settings.database_url)
            self._owns_engine = True
            logger.info("Local backend using %s", self._engine.url.render_as_string())

    @property
    def backend(self) -> str:
        return self._settings.backend

    def __call__(self) -> BackendHandle:
        if self._settings.backend == BACKEND_SQL:
            return SqlHandle(self._engine)
        return RestHandle(
            self._settings.backend_url,
            self._settings.backend_key,
            headers=dict(DEFAULT_HEADERS),
            timeout=self._settings.request_timeout,
            events_per_second=self._settings.events_per_second,
        )

    def dispose(self) -> None:
        """Release the shared engine, if this factory created one."""
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
