"""Connection resilience: handle pool, retrying executor, reachability monitor."""

from ats_resume_store.connection.executor import ResilientExecutor, backoff_delay
from ats_resume_store.connection.monitor import (
    ReachabilityMonitor,
    ReachabilityState,
    ReachabilityStatus,
)
from ats_resume_store.connection.pool import HandlePool

__all__ = [
    "HandlePool",
    "ReachabilityMonitor",
    "ReachabilityState",
    "ReachabilityStatus",
    "ResilientExecutor",
    "backoff_delay",
]
