"""Errors surfaced by interview session operations."""
from __future__ import annotations


class InterviewSessionError(RuntimeError):
    """Base error for session lifecycle failures."""


class Unauthorized(InterviewSessionError):
    """No authenticated identity accompanied the request."""


class NotFound(InterviewSessionError):
    """No user or session matched the caller."""


class SessionStateError(InterviewSessionError):
    """The requested transition would move a session backwards."""


__all__ = ["InterviewSessionError", "NotFound", "SessionStateError", "Unauthorized"]
