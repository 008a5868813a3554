"""Dashboard statistics over a user's interview sessions."""
from __future__ import annotations

from typing import List, Sequence

from pydantic import BaseModel

from interview_sessions.models import InterviewSession, SessionStatus

WINDOW = 3


class SessionStats(BaseModel):
    total_sessions: int
    completed_sessions: int
    average_score: int
    improvement_rate: int


def _mean(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize(sessions: Sequence[InterviewSession]) -> SessionStats:
    """Summarize sessions ordered newest first.

    ``improvement_rate`` compares the mean score of the latest three completed
    sessions against the three before them, as a whole percentage.
    """

    completed = [session for session in sessions if session.status is SessionStatus.COMPLETED]
    scores = [session.overall_score or 0 for session in completed]
    recent = _mean(scores[:WINDOW])
    previous = _mean(scores[WINDOW : WINDOW * 2])
    improvement = ((recent - previous) / previous) * 100 if previous > 0 else 0.0
    return SessionStats(
        total_sessions=len(sessions),
        completed_sessions=len(completed),
        average_score=round(_mean(scores)),
        improvement_rate=round(improvement),
    )


__all__ = ["SessionStats", "summarize"]
