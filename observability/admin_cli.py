"""Lightweight CLI helpers for inspecting interview session tables."""
from __future__ import annotations

import argparse
from typing import List, Optional

from config.settings import settings
from storage import get_conn


def tail_sessions(limit: int = 20, db_path: Optional[str] = None) -> List[str]:
    with get_conn(db_path or settings.DB_PATH) as conn:
        rows = conn.execute(
            """
            SELECT created_at, session_id, user_id, role, status, overall_score
            FROM interview_sessions
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    lines = []
    for row in rows:
        score = "-" if row["overall_score"] is None else row["overall_score"]
        lines.append(
            f"[{row['created_at']}] {row['session_id']}/{row['user_id']} {row['role']} -> {row['status']} score={score}"
        )
    return lines


def tail_analytics(limit: int = 20, db_path: Optional[str] = None) -> List[str]:
    with get_conn(db_path or settings.DB_PATH) as conn:
        rows = conn.execute(
            """
            SELECT updated_at, session_id, user_id, length(transcript) AS chars, metadata_json
            FROM call_analytics
            ORDER BY updated_at DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    return [
        f"[{row['updated_at']}] {row['session_id']}/{row['user_id']} transcript={row['chars'] or 0} meta={row['metadata_json']}"
        for row in rows
    ]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect mock interview storage")
    parser.add_argument("table", choices=["sessions", "analytics"])
    parser.add_argument("--limit", type=int, default=20, help="Number of rows to show")
    parser.add_argument("--db", default=None, help="Override the configured database path")
    args = parser.parse_args(argv)

    tail = tail_sessions if args.table == "sessions" else tail_analytics
    for line in tail(args.limit, args.db):
        print(line)


if __name__ == "__main__":
    main()
