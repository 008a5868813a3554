from __future__ import annotations  # Transcript-to-feedback derivation pipeline

import logging
import threading
from textwrap import dedent
from typing import Optional, Sequence

from interview_sessions import (
    CallAnalyticsRecorder,
    ConversationMessage,
    InterviewSession,
    SessionOutcome,
    SessionStore,
    render_transcript,
)
from llm_gateway import TextGenerator
from observability import log_event

from .models import (
    CATEGORY_NAMES,
    FeedbackDocument,
    empty_transcript_document,
    model_error_document,
)
from .parsers import parse_feedback


logger = logging.getLogger(__name__)

FEEDBACK_ROUTE_KEY = "feedback.derive_feedback"  # Registry key for feedback route

MISSING_CATEGORY_SCORE = 50
DETAIL_EXCERPT_CHARS = 200
RAW_OUTPUT_CHARS = 5000


class DerivationTicket:  # Settles which side of a timeout race owns the outcome write
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = "pending"

    @property
    def abandoned(self) -> bool:
        return self._state == "abandoned"

    def commit(self) -> bool:  # Claim the write for the derivation; False once abandoned
        with self._lock:
            if self._state == "pending":
                self._state = "committed"
            return self._state == "committed"

    def abandon(self) -> bool:  # Claim the write for the caller; False once committed
        with self._lock:
            if self._state == "pending":
                self._state = "abandoned"
            return self._state == "abandoned"


class FeedbackDeriver:  # Scores a finished interview and writes the result onto the session
    def __init__(
        self,
        generator: TextGenerator,
        sessions: SessionStore,
        analytics: CallAnalyticsRecorder,
        *,
        min_transcript_chars: int = 10,
    ) -> None:
        self._generator = generator
        self._sessions = sessions
        self._analytics = analytics
        self._min_chars = min_transcript_chars

    def derive(
        self,
        session_id: str,
        transcript: Optional[str],
        messages: Sequence[ConversationMessage],
        *,
        ticket: Optional[DerivationTicket] = None,
    ) -> Optional[FeedbackDocument]:
        """Return the feedback document, or ``None`` when derivation could not run.

        A ticket abandoned before the model call skips generation entirely.
        """

        try:
            session = self._sessions.get(session_id)
            if session is None:
                logger.error("Feedback derivation: session %s not found", session_id)
                return None
            formatted = render_transcript(transcript, messages)
            if len(formatted.strip()) < self._min_chars:
                document = empty_transcript_document()
                self._persist(session, document, excerpt="", ticket=ticket)
                return document

            if _abandoned(ticket):
                log_event("feedback_discarded", session_id, stage="before_generation")
                return None
            try:
                raw = self._generator.generate(build_prompt(formatted))
            except Exception as exc:  # noqa: BLE001
                logger.error("Feedback generation failed for session %s: %s", session_id, exc)
                document = model_error_document()
                if not _abandoned(ticket):
                    self._analytics.attach_diagnostics(session.session_id, session.user_id, modelError=str(exc))
                self._persist(session, document, excerpt="", ticket=ticket)
                return document

            parsed = parse_feedback(raw)
            if parsed.document.source == "repaired":
                logger.warning(
                    "Feedback JSON unparseable for session %s; using repaired document", session_id
                )
            self._persist(session, parsed.document, excerpt=parsed.cleaned, ticket=ticket)
            if not _abandoned(ticket):
                self._analytics.attach_diagnostics(
                    session.session_id, session.user_id, rawModelOutput=raw[:RAW_OUTPUT_CHARS]
                )
            return parsed.document
        except Exception:  # noqa: BLE001
            logger.exception("Feedback derivation failed unexpectedly for session %s", session_id)
            return None

    def _persist(
        self,
        session: InterviewSession,
        document: FeedbackDocument,
        *,
        excerpt: str,
        ticket: Optional[DerivationTicket],
    ) -> None:
        if ticket is not None and not ticket.commit():
            log_event("feedback_discarded", session.session_id, source=document.source)
            return
        self._sessions.record_outcome(session.session_id, outcome_from_feedback(document, excerpt=excerpt))
        log_event(
            "feedback_recorded",
            session.session_id,
            source=document.source,
            score=document.total_score,
        )


def outcome_from_feedback(document: FeedbackDocument, *, excerpt: str = "") -> SessionOutcome:  # Flatten a document onto session fields
    def _score(name: str) -> int:
        entry = document.category(name)
        return entry.score if entry is not None else MISSING_CATEGORY_SCORE

    detail = document.final_assessment.strip() or excerpt[:DETAIL_EXCERPT_CHARS].strip() or "Feedback generated"
    return SessionOutcome(
        overall_score=document.total_score,
        technical_score=_score("Technical Knowledge"),
        communication_score=_score("Communication Skills"),
        confidence_score=_score("Confidence and Clarity"),
        strengths=document.strengths,
        weaknesses=document.areas_for_improvement,
        detailed_feedback=detail,
    )


def build_prompt(transcript: str) -> str:  # Scoring prompt for the text generator
    categories = ",\n".join(
        f'    {{"name":"{name}","score":number,"comment":"..."}}' for name in CATEGORY_NAMES
    )
    header = dedent(
        """
        You are an AI interviewer analyzing a mock interview. Evaluate the candidate's performance based on the transcript below.
        TRANSCRIPT:
        """
    ).strip()
    instructions = dedent(
        """
        INSTRUCTIONS:
        - Provide scores 0-100 for each category listed below.
        - Return ONLY valid JSON (no extra text) in the exact format:
        """
    ).strip()
    return (
        f"{header}\n{transcript}\n\n{instructions}\n"
        "{\n"
        '  "totalScore": number,\n'
        '  "categoryScores": [\n'
        f"{categories}\n"
        "  ],\n"
        '  "strengths": ["..."],\n'
        '  "areasForImprovement": ["..."],\n'
        '  "finalAssessment": "..."\n'
        "}\n"
        "Be concise and return valid JSON only."
    )


def _abandoned(ticket: Optional[DerivationTicket]) -> bool:
    return ticket is not None and ticket.abandoned


__all__ = ["FEEDBACK_ROUTE_KEY", "DerivationTicket", "FeedbackDeriver", "build_prompt", "outcome_from_feedback"]
