from __future__ import annotations  # Interview session persistence layer

import json
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence
from uuid import uuid4

from storage import get_conn, utc_now

from .errors import NotFound, SessionStateError
from .models import InterviewSession, SessionOutcome, SessionStatus


logger = logging.getLogger(__name__)

_COLUMNS = (
    "session_id, user_id, role, industry, difficulty, duration, session_type, status, questions_json, "
    "created_at, started_at, ended_at, overall_score, technical_score, communication_score, "
    "confidence_score, strengths_json, weaknesses_json, detailed_feedback"
)


class SessionStore:  # SQLite-backed persistence for interview sessions
    def __init__(self, path: Path) -> None:  # Initialize store with database path
        self._path = path
        self._ensure_schema()

    def _ensure_schema(self) -> None:  # Create session table if missing
        with get_conn(self._path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS interview_sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    industry TEXT,
                    difficulty TEXT NOT NULL,
                    duration INTEGER NOT NULL,
                    session_type TEXT NOT NULL,
                    status TEXT NOT NULL,
                    questions_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    ended_at TEXT,
                    overall_score INTEGER,
                    technical_score INTEGER,
                    communication_score INTEGER,
                    confidence_score INTEGER,
                    strengths_json TEXT NOT NULL DEFAULT '[]',
                    weaknesses_json TEXT NOT NULL DEFAULT '[]',
                    detailed_feedback TEXT
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_interview_sessions_user ON interview_sessions(user_id, created_at)"
            )

    def create(
        self,
        *,
        user_id: str,
        role: str,
        industry: Optional[str],
        difficulty: str,
        duration: int,
        session_type: str,
        questions: Sequence[str],
    ) -> InterviewSession:  # Persist a new SCHEDULED session
        session = InterviewSession(
            session_id=uuid4().hex,
            user_id=user_id,
            role=role,
            industry=industry,
            difficulty=difficulty,
            duration=duration,
            session_type=session_type,
            status=SessionStatus.SCHEDULED,
            questions=list(questions),
            created_at=utc_now(),
        )
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO interview_sessions (
                    session_id, user_id, role, industry, difficulty, duration, session_type,
                    status, questions_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.user_id,
                    session.role,
                    session.industry,
                    session.difficulty,
                    session.duration,
                    session.session_type,
                    session.status.value,
                    json.dumps(session.questions),
                    session.created_at,
                ),
            )
        return session

    def get(self, session_id: str, *, user_id: Optional[str] = None) -> Optional[InterviewSession]:  # Load one session, optionally owner-scoped
        query = f"SELECT {_COLUMNS} FROM interview_sessions WHERE session_id = ?"
        params: tuple = (session_id,)
        if user_id is not None:
            query += " AND user_id = ?"
            params = (session_id, user_id)
        with get_conn(self._path) as conn:
            row = conn.execute(query, params).fetchone()
        return _row_to_session(row) if row is not None else None

    def require(self, session_id: str, *, user_id: Optional[str] = None) -> InterviewSession:
        session = self.get(session_id, user_id=user_id)
        if session is None:
            raise NotFound(f"Interview session '{session_id}' not found")
        return session

    def list_for_user(self, user_id: str) -> List[InterviewSession]:  # Owner's sessions, newest first
        with get_conn(self._path) as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM interview_sessions
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (user_id,),
            ).fetchall()
        return [_row_to_session(row) for row in rows]

    def mark_started(self, session_id: str) -> InterviewSession:  # SCHEDULED -> IN_PROGRESS, stamps started_at once
        with get_conn(self._path) as conn:
            self._advance(conn, session_id, SessionStatus.IN_PROGRESS)
            conn.execute(
                """
                UPDATE interview_sessions
                SET status = ?, started_at = COALESCE(started_at, ?)
                WHERE session_id = ?
                """,
                (SessionStatus.IN_PROGRESS.value, utc_now(), session_id),
            )
        return self.require(session_id)

    def mark_failed(self, session_id: str) -> None:
        with get_conn(self._path) as conn:
            current = self._current_status(conn, session_id)
            if not current.can_advance_to(SessionStatus.FAILED):
                logger.warning(
                    "Not marking session %s FAILED from status %s", session_id, current.value
                )
                return
            conn.execute(
                "UPDATE interview_sessions SET status = ? WHERE session_id = ?",
                (SessionStatus.FAILED.value, session_id),
            )

    def record_outcome(self, session_id: str, outcome: SessionOutcome) -> InterviewSession:  # Terminal COMPLETED write with derived scores
        with get_conn(self._path) as conn:
            self._advance(conn, session_id, SessionStatus.COMPLETED)
            conn.execute(
                """
                UPDATE interview_sessions
                SET status = ?,
                    ended_at = ?,
                    overall_score = ?,
                    technical_score = ?,
                    communication_score = ?,
                    confidence_score = ?,
                    strengths_json = ?,
                    weaknesses_json = ?,
                    detailed_feedback = ?
                WHERE session_id = ?
                """,
                (
                    SessionStatus.COMPLETED.value,
                    utc_now(),
                    outcome.overall_score,
                    outcome.technical_score,
                    outcome.communication_score,
                    outcome.confidence_score,
                    json.dumps(outcome.strengths),
                    json.dumps(outcome.weaknesses),
                    outcome.detailed_feedback,
                    session_id,
                ),
            )
        return self.require(session_id)

    def _current_status(self, conn: sqlite3.Connection, session_id: str) -> SessionStatus:
        row = conn.execute(
            "SELECT status FROM interview_sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
        if row is None:
            raise NotFound(f"Interview session '{session_id}' not found")
        return SessionStatus(row["status"])

    def _advance(self, conn: sqlite3.Connection, session_id: str, target: SessionStatus) -> None:
        current = self._current_status(conn, session_id)
        if not current.can_advance_to(target):
            raise SessionStateError(
                f"Interview session '{session_id}' cannot move from {current.value} to {target.value}"
            )


def _row_to_session(row: sqlite3.Row) -> InterviewSession:  # Map a table row to the session model
    return InterviewSession(
        session_id=row["session_id"],
        user_id=row["user_id"],
        role=row["role"],
        industry=row["industry"],
        difficulty=row["difficulty"],
        duration=row["duration"],
        session_type=row["session_type"],
        status=SessionStatus(row["status"]),
        questions=[str(item) for item in json.loads(row["questions_json"] or "[]")],
        created_at=row["created_at"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        overall_score=row["overall_score"],
        technical_score=row["technical_score"],
        communication_score=row["communication_score"],
        confidence_score=row["confidence_score"],
        strengths=json.loads(row["strengths_json"] or "[]"),
        weaknesses=json.loads(row["weaknesses_json"] or "[]"),
        detailed_feedback=row["detailed_feedback"],
    )


__all__ = ["SessionStore"]
