from __future__ import annotations  # Interview session domain models

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class SessionStatus(str, Enum):  # Persisted session status
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    def can_advance_to(self, target: "SessionStatus") -> bool:  # Forward-only transitions, same-state is a no-op
        if self is target:
            return True
        return target in _FORWARD.get(self, frozenset())


_TERMINAL = frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED, SessionStatus.CANCELLED})

_FORWARD = {
    SessionStatus.SCHEDULED: frozenset(
        {SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED, SessionStatus.FAILED}
    ),
    SessionStatus.IN_PROGRESS: frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED}),
}


def _dedupe(items: List[str]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for item in items:
        text = " ".join(str(item).split())
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


class InterviewSession(BaseModel):  # Stored interview session
    session_id: str
    user_id: str
    role: str
    industry: Optional[str] = None
    difficulty: str
    duration: int
    session_type: str
    status: SessionStatus
    questions: List[str] = Field(default_factory=list)
    created_at: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    overall_score: Optional[int] = Field(default=None, ge=0, le=100)
    technical_score: Optional[int] = Field(default=None, ge=0, le=100)
    communication_score: Optional[int] = Field(default=None, ge=0, le=100)
    confidence_score: Optional[int] = Field(default=None, ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    detailed_feedback: Optional[str] = None


class SessionOutcome(BaseModel):  # Derived scores written at the terminal transition
    overall_score: int = Field(ge=0, le=100)
    technical_score: int = Field(ge=0, le=100)
    communication_score: int = Field(ge=0, le=100)
    confidence_score: int = Field(ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    detailed_feedback: str

    @field_validator("strengths", "weaknesses")
    @classmethod
    def _dedupe_lists(cls, value: List[str]) -> List[str]:
        return _dedupe(value)

    @classmethod
    def degraded(cls, detailed_feedback: str, *, score: int = 50) -> "SessionOutcome":
        return cls(
            overall_score=score,
            technical_score=score,
            communication_score=score,
            confidence_score=score,
            strengths=[],
            weaknesses=["Feedback generation failed"],
            detailed_feedback=detailed_feedback,
        )


class CallAnalytics(BaseModel):  # Diagnostic call record, one per session
    session_id: str
    user_id: str
    transcript: str = ""
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str
    updated_at: str


__all__ = ["CallAnalytics", "InterviewSession", "SessionOutcome", "SessionStatus"]
