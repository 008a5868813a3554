from __future__ import annotations  # Interview session lifecycle orchestration

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Iterable, List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, Field

from assistant_config import AssistantConfig, build_assistant_config
from feedback import DerivationTicket, FeedbackDeriver, FeedbackDocument
from interview_sessions import (
    CallAnalytics,
    CallAnalyticsRecorder,
    ConversationMessage,
    InterviewSession,
    NotFound,
    SessionOutcome,
    SessionStateError,
    SessionStatus,
    SessionStore,
    Unauthorized,
    coerce_messages,
)
from observability import log_event, span
from question_generation import GeneratedQuestions, QuestionGenerator, QuestionRequest, fallback_questions
from user_directory import UserDirectory, UserRecord

from .stats import SessionStats, summarize


logger = logging.getLogger(__name__)

DEGRADED_DETAIL = "Interview completed successfully. Feedback generation encountered an issue."
DEGRADED_SCORE = 50
COMMIT_GRACE_S = 2.0


class SessionRequest(BaseModel):  # Client request to schedule a session
    role: str = Field(min_length=1)
    industry: Optional[str] = None
    difficulty: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    session_type: Optional[str] = None
    tech_stack: Optional[str] = None
    question_count: Optional[int] = Field(default=None, ge=1, le=20)


class SessionCreated(BaseModel):
    session: InterviewSession
    interview_id: str


class SessionStart(BaseModel):
    session: InterviewSession
    assistant_config: AssistantConfig
    questions: List[str]


class SessionCompletion(BaseModel):
    session: InterviewSession
    feedback: Optional[FeedbackDocument] = None


class SessionDetail(BaseModel):
    session: InterviewSession
    analytics: Optional[CallAnalytics] = None


class SessionLifecycleManager:  # Orchestrates SCHEDULED -> IN_PROGRESS -> COMPLETED/FAILED
    def __init__(
        self,
        *,
        users: UserDirectory,
        sessions: SessionStore,
        analytics: CallAnalyticsRecorder,
        questions: QuestionGenerator,
        feedback: FeedbackDeriver,
        feedback_timeout_s: float = 30.0,
        commit_grace_s: float = COMMIT_GRACE_S,
        workers: int = 4,
        default_question_count: int = 4,
        default_duration: int = 30,
        config_builder: Callable[[InterviewSession], AssistantConfig] = build_assistant_config,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._analytics = analytics
        self._questions = questions
        self._feedback = feedback
        self._feedback_timeout_s = feedback_timeout_s
        self._commit_grace_s = commit_grace_s
        self._default_question_count = default_question_count
        self._default_duration = default_duration
        self._config_builder = config_builder
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feedback")

    def close(self, *, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    def register_user(
        self,
        identity: Optional[str],
        *,
        industry: Optional[str] = None,
        skills: Optional[List[str]] = None,
    ) -> UserRecord:
        if not identity or not identity.strip():
            raise Unauthorized("Unauthorized")
        return self._users.register(identity.strip(), industry=industry, skills=skills)

    def create(self, identity: Optional[str], request: SessionRequest) -> SessionCreated:
        user = self._resolve_user(identity)
        question_request = QuestionRequest(
            role=request.role,
            difficulty=request.difficulty or "Mid",
            tech_stack=request.tech_stack,
            session_type=request.session_type or "Mixed",
            question_count=request.question_count or self._default_question_count,
        )
        generated = self._generate_questions(question_request, user)
        session = self._sessions.create(
            user_id=user.user_id,
            role=request.role,
            industry=request.industry or user.industry,
            difficulty=request.difficulty or "intermediate",
            duration=request.duration or self._default_duration,
            session_type=request.session_type or "mock",
            questions=generated.questions,
        )
        prefix = "interview-fallback-" if generated.degraded else "interview-"
        log_event(
            "session_created",
            session.session_id,
            status=session.status.value,
            degraded=generated.degraded,
        )
        return SessionCreated(session=session, interview_id=f"{prefix}{uuid4().hex[:12]}")

    def start(self, identity: Optional[str], session_id: str) -> SessionStart:
        user = self._resolve_user(identity)
        session = self._sessions.require(session_id, user_id=user.user_id)
        if session.status.is_terminal:
            raise SessionStateError(f"Interview session '{session_id}' is already {session.status.value}")
        try:
            config = self._config_builder(session)
            started = self._sessions.mark_started(session_id)
        except Exception:
            logger.exception("Starting session %s failed; marking FAILED", session_id)
            self._mark_failed_quietly(session_id)
            raise
        log_event("session_started", session_id, status=started.status.value)
        return SessionStart(session=started, assistant_config=config, questions=list(started.questions))

    def complete(
        self,
        identity: Optional[str],
        session_id: str,
        transcript: Optional[str] = None,
        messages: Optional[Iterable[Any]] = None,
    ) -> SessionCompletion:
        user = self._resolve_user(identity)
        session = self._sessions.require(session_id, user_id=user.user_id)
        if session.status in (SessionStatus.FAILED, SessionStatus.CANCELLED):
            raise SessionStateError(f"Interview session '{session_id}' is already {session.status.value}")
        normalized = coerce_messages(messages)

        self._analytics.record_call_end(session, transcript, normalized)
        feedback = self._derive_with_timeout(session, transcript, normalized)
        if feedback is None:
            self._complete_degraded(session_id)

        final = self._sessions.require(session_id)
        log_event(
            "session_completed",
            session_id,
            status=final.status.value,
            score=final.overall_score,
            degraded=feedback is None,
        )
        return SessionCompletion(session=final, feedback=feedback)

    def get(self, identity: Optional[str], session_id: str) -> SessionDetail:
        user = self._resolve_user(identity)
        session = self._sessions.require(session_id, user_id=user.user_id)
        return SessionDetail(session=session, analytics=self._analytics.load(session_id))

    def list(self, identity: Optional[str]) -> List[InterviewSession]:
        user = self._resolve_user(identity)
        return self._sessions.list_for_user(user.user_id)

    def stats(self, identity: Optional[str]) -> SessionStats:
        return summarize(self.list(identity))

    def _resolve_user(self, identity: Optional[str]) -> UserRecord:
        if not identity or not identity.strip():
            raise Unauthorized("Unauthorized")
        user = self._users.find_by_identity(identity.strip())
        if user is None:
            raise NotFound("User not found")
        return user

    def _generate_questions(self, request: QuestionRequest, user: UserRecord) -> GeneratedQuestions:
        try:
            return self._questions.generate(request, skills=user.skills)
        except Exception:  # noqa: BLE001
            logger.exception("Question generator raised for role=%s; using fallback", request.role)
            return GeneratedQuestions(questions=fallback_questions(request.role), degraded=True)

    def _derive_with_timeout(
        self,
        session: InterviewSession,
        transcript: Optional[str],
        messages: Sequence[ConversationMessage],
    ) -> Optional[FeedbackDocument]:
        # A queued loser is cancelled; a running one skips its writes once abandoned.
        ticket = DerivationTicket()
        with span("feedback_derivation", session.session_id):
            future: Future = self._executor.submit(
                self._feedback.derive,
                session.session_id,
                transcript,
                messages,
                ticket=ticket,
            )
            try:
                return future.result(timeout=self._feedback_timeout_s)
            except FutureTimeout:
                if not ticket.abandon():
                    # The derivation claimed the write just before the deadline
                    return self._await_committed(future, session.session_id)
                future.cancel()
                log_event(
                    "feedback_timeout",
                    session.session_id,
                    level=logging.WARNING,
                    outcome="degraded",
                )
            except Exception as exc:  # noqa: BLE001
                ticket.abandon()
                logger.error("Feedback derivation failed for session %s: %s", session.session_id, exc)
        return None

    def _await_committed(self, future: Future, session_id: str) -> Optional[FeedbackDocument]:
        try:
            return future.result(timeout=self._commit_grace_s)
        except FutureTimeout:
            log_event(
                "feedback_timeout",
                session_id,
                level=logging.WARNING,
                outcome="degraded",
                error="committed derivation did not finish",
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Committed feedback derivation failed for session %s: %s", session_id, exc)
        return None

    def _complete_degraded(self, session_id: str) -> None:
        try:
            self._sessions.record_outcome(
                session_id, SessionOutcome.degraded(DEGRADED_DETAIL, score=DEGRADED_SCORE)
            )
        except Exception:
            logger.exception("Could not write degraded completion for session %s", session_id)
            self._mark_failed_quietly(session_id)
            raise

    def _mark_failed_quietly(self, session_id: str) -> None:
        try:
            self._sessions.mark_failed(session_id)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to mark session %s FAILED", session_id)


__all__ = [
    "DEGRADED_DETAIL",
    "SessionCompletion",
    "SessionCreated",
    "SessionDetail",
    "SessionLifecycleManager",
    "SessionRequest",
    "SessionStart",
]
