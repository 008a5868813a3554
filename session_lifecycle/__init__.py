from __future__ import annotations  # Session lifecycle package exports

from .factory import build_manager
from .lifecycle import (
    COMMIT_GRACE_S,
    DEGRADED_DETAIL,
    SessionCompletion,
    SessionCreated,
    SessionDetail,
    SessionLifecycleManager,
    SessionRequest,
    SessionStart,
)
from .stats import SessionStats, summarize

__all__ = [
    "COMMIT_GRACE_S",
    "DEGRADED_DETAIL",
    "SessionCompletion",
    "SessionCreated",
    "SessionDetail",
    "SessionLifecycleManager",
    "SessionRequest",
    "SessionStart",
    "SessionStats",
    "build_manager",
    "summarize",
]
