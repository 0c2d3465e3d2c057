"""Environment-driven settings.

Values are read from the process environment after ``load_dotenv()`` so a
local ``.env`` file works the same way as exported variables. Missing
backend credentials are logged as a warning rather than raised: the store
still starts and individual operations fail instead.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy.engine import URL

from ats_resume_store.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["BACKEND_REST", "BACKEND_SQL", "Settings", "get_database_url", "load_settings"]

BACKEND_REST = "rest"
BACKEND_SQL = "sql"

CLIENT_INFO = "ats-resume-builder"


def get_database_url(environ: Mapping[str, str] | None = None) -> str:
    """Return the database URL, allowing overrides via environment variable."""
    env = os.environ if environ is None else environ
    env_url = env.get("DB_URL")
    if env_url:
        return env_url

    project_root = Path(__file__).resolve().parents[2]
    db_path = project_root / "database.db"
    return URL.create("sqlite", database=str(db_path)).render_as_string(hide_password=False)


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration for the resume store.

    Attributes:
        backend: ``"rest"`` for the hosted HTTPS backend, ``"sql"`` for a
            local SQLAlchemy database.
        backend_url: Base URL of the hosted backend.
        backend_key: Access key sent with every request.
        database_url: SQLAlchemy URL used by the ``sql`` backend.
        pool_size: Number of handles kept in the pool.
        health_check_interval: Seconds between pool health checks.
        monitor_interval: Seconds between reachability probes.
        max_attempts: Attempts per remote call before giving up.
        base_delay: First backoff delay in seconds.
        max_delay: Backoff ceiling in seconds.
        request_timeout: Per-request HTTP timeout in seconds.
        events_per_second: Request rate limit per handle.
    """

    backend: str = BACKEND_REST
    backend_url: str = ""
    backend_key: str = ""
    database_url: str = ""
    pool_size: int = 5
    health_check_interval: float = 30.0
    monitor_interval: float = 10.0
    max_attempts: int = 5
    base_delay: float = 0.1
    max_delay: float = 5.0
    request_timeout: float = 10.0
    events_per_second: float = 10.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.backend_url and self.backend_key)


def _first(env: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


def _number(env: Mapping[str, str], name: str, default: float, *, integer: bool = False):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw) if integer else float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from the environment.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ`` after
            loading a ``.env`` file.

    Returns:
        Parsed settings.

    Raises:
        ConfigurationError: If a value is present but malformed.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    backend = environ.get("RESUME_BACKEND", BACKEND_REST).strip().lower() or BACKEND_REST
    if backend not in (BACKEND_REST, BACKEND_SQL):
        raise ConfigurationError(f"RESUME_BACKEND must be 'rest' or 'sql', got {backend!r}")

    settings = Settings(
        backend=backend,
        backend_url=_first(environ, "SUPABASE_URL", "VITE_SUPABASE_URL").rstrip("/"),
        backend_key=_first(environ, "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
        database_url=get_database_url(environ),
        pool_size=_number(environ, "RESUME_POOL_SIZE", 5, integer=True),
        health_check_interval=_number(environ, "RESUME_HEALTH_CHECK_INTERVAL", 30.0),
        monitor_interval=_number(environ, "RESUME_MONITOR_INTERVAL", 10.0),
        max_attempts=_number(environ, "RESUME_MAX_ATTEMPTS", 5, integer=True),
        base_delay=_number(environ, "RESUME_BASE_DELAY", 0.1),
        max_delay=_number(environ, "RESUME_MAX_DELAY", 5.0),
        request_timeout=_number(environ, "RESUME_REQUEST_TIMEOUT", 10.0),
        events_per_second=_number(environ, "RESUME_EVENTS_PER_SECOND", 10.0),
    )

    if backend == BACKEND_REST and not settings.has_credentials:
        logger.warning(
            "Backend credentials are missing; set SUPABASE_URL and SUPABASE_ANON_KEY. "
            "Requests will fail until they are provided."
        )
    return settings
