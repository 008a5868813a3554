from __future__ import annotations  # Interview session package exports

from .analytics import CallAnalyticsRecorder, CallAnalyticsStore
from .errors import InterviewSessionError, NotFound, SessionStateError, Unauthorized
from .models import CallAnalytics, InterviewSession, SessionOutcome, SessionStatus
from .store import SessionStore
from .transcript import (
    ConversationMessage,
    PlainText,
    StructuredMessage,
    coerce_messages,
    render_transcript,
)

__all__ = [
    "CallAnalytics",
    "CallAnalyticsRecorder",
    "CallAnalyticsStore",
    "ConversationMessage",
    "InterviewSession",
    "InterviewSessionError",
    "NotFound",
    "PlainText",
    "SessionOutcome",
    "SessionStateError",
    "SessionStatus",
    "SessionStore",
    "StructuredMessage",
    "Unauthorized",
    "coerce_messages",
    "render_transcript",
]
