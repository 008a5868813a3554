from __future__ import annotations  # Call analytics persistence and best-effort recorder

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from storage import get_conn, utc_now

from .models import CallAnalytics, InterviewSession
from .transcript import ConversationMessage, message_dict


logger = logging.getLogger(__name__)

NO_TRANSCRIPT = "No transcript available"


class CallAnalyticsStore:  # SQLite-backed call analytics keyed by session id
    def __init__(self, path: Path) -> None:
        self._path = path
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with get_conn(self._path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS call_analytics (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    transcript TEXT NOT NULL DEFAULT '',
                    messages_json TEXT NOT NULL DEFAULT '[]',
                    started_at TEXT,
                    ended_at TEXT,
                    metadata_json TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def upsert(
        self,
        session_id: str,
        *,
        user_id: str,
        transcript: str,
        messages: List[Dict[str, Any]],
        started_at: Optional[str],
        ended_at: str,
        metadata: Dict[str, Any],
    ) -> None:  # Create or overwrite the call record for a session
        now = utc_now()
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO call_analytics (
                    session_id, user_id, transcript, messages_json, started_at, ended_at,
                    metadata_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    transcript = excluded.transcript,
                    messages_json = excluded.messages_json,
                    started_at = COALESCE(excluded.started_at, call_analytics.started_at),
                    ended_at = excluded.ended_at,
                    metadata_json = excluded.metadata_json,
                    updated_at = excluded.updated_at
                """,
                (
                    session_id,
                    user_id,
                    transcript,
                    json.dumps(messages),
                    started_at,
                    ended_at,
                    json.dumps(metadata, default=str),
                    now,
                    now,
                ),
            )

    def merge_metadata(self, session_id: str, *, user_id: str, fields: Dict[str, Any]) -> None:  # Add keys to the metadata bag, creating the row lazily
        now = utc_now()
        with get_conn(self._path) as conn:
            row = conn.execute(
                "SELECT metadata_json FROM call_analytics WHERE session_id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                conn.execute(
                    """
                    INSERT INTO call_analytics (session_id, user_id, metadata_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (session_id, user_id, json.dumps(fields, default=str), now, now),
                )
                return
            metadata = json.loads(row["metadata_json"] or "{}")
            metadata.update(fields)
            conn.execute(
                "UPDATE call_analytics SET metadata_json = ?, updated_at = ? WHERE session_id = ?",
                (json.dumps(metadata, default=str), now, session_id),
            )

    def get(self, session_id: str) -> Optional[CallAnalytics]:
        with get_conn(self._path) as conn:
            row = conn.execute(
                """
                SELECT session_id, user_id, transcript, messages_json, started_at, ended_at,
                       metadata_json, created_at, updated_at
                FROM call_analytics
                WHERE session_id = ?
                """,
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return CallAnalytics(
            session_id=row["session_id"],
            user_id=row["user_id"],
            transcript=row["transcript"] or "",
            messages=json.loads(row["messages_json"] or "[]"),
            started_at=row["started_at"],
            ended_at=row["ended_at"],
            metadata=json.loads(row["metadata_json"] or "{}"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class CallAnalyticsRecorder:  # Diagnostic recorder; failures are logged, never raised
    def __init__(self, store: CallAnalyticsStore) -> None:
        self._store = store

    def record_call_end(
        self,
        session: InterviewSession,
        transcript: Optional[str],
        messages: Sequence[ConversationMessage],
    ) -> bool:
        try:
            self._store.upsert(
                session.session_id,
                user_id=session.user_id,
                transcript=transcript or NO_TRANSCRIPT,
                messages=[message_dict(message) for message in messages],
                started_at=session.started_at,
                ended_at=utc_now(),
                metadata={"messages": len(messages)},
            )
        except Exception:  # noqa: BLE001
            logger.warning("Call analytics upsert failed for session %s", session.session_id, exc_info=True)
            return False
        return True

    def attach_diagnostics(self, session_id: str, user_id: str, **fields: Any) -> bool:
        try:
            self._store.merge_metadata(session_id, user_id=user_id, fields=fields)
        except Exception:  # noqa: BLE001
            logger.warning("Call analytics metadata update failed for session %s", session_id, exc_info=True)
            return False
        return True

    def load(self, session_id: str) -> Optional[CallAnalytics]:
        return self._store.get(session_id)


__all__ = ["CallAnalyticsRecorder", "CallAnalyticsStore", "NO_TRANSCRIPT"]
