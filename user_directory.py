from __future__ import annotations  # User directory mapping identities to user records

import json
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from storage import get_conn, utc_now


class UserRecord(BaseModel):  # Stored user entry
    user_id: str
    identity: str
    industry: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    created_at: str


class UserDirectory:  # SQLite-backed user directory keyed by external identity
    def __init__(self, path: Path) -> None:  # Initialize store and schema
        self._path = path
        self._ensure_schema()

    def _ensure_schema(self) -> None:  # Ensure users table exists
        with get_conn(self._path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    user_id TEXT PRIMARY KEY,
                    identity TEXT NOT NULL UNIQUE,
                    industry TEXT,
                    skills_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def find_by_identity(self, identity: str) -> Optional[UserRecord]:  # Look up the user owning an identity
        with get_conn(self._path) as conn:
            row = conn.execute(
                "SELECT user_id, identity, industry, skills_json, created_at FROM users WHERE identity = ?",
                (identity,),
            ).fetchone()
        if row is None:
            return None
        return UserRecord(
            user_id=row["user_id"],
            identity=row["identity"],
            industry=row["industry"],
            skills=[str(item) for item in json.loads(row["skills_json"] or "[]")],
            created_at=row["created_at"],
        )

    def register(
        self,
        identity: str,
        *,
        industry: Optional[str] = None,
        skills: Optional[List[str]] = None,
    ) -> UserRecord:  # Create the user record for an identity, or return the existing one
        existing = self.find_by_identity(identity)
        if existing is not None:
            return existing
        record = UserRecord(
            user_id=uuid4().hex,
            identity=identity,
            industry=industry,
            skills=[item.strip() for item in skills or [] if item.strip()],
            created_at=utc_now(),
        )
        with get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO users (user_id, identity, industry, skills_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.identity,
                    record.industry,
                    json.dumps(record.skills),
                    record.created_at,
                ),
            )
        # A concurrent register may have won the insert
        return self.find_by_identity(identity) or record


__all__ = ["UserDirectory", "UserRecord"]
