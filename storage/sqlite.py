"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import datetime as dt
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union


def connect(path: Union[str, Path]) -> sqlite3.Connection:
    """Open a SQLite connection with row access by column name."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_conn(path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a connection that commits on success and always closes."""

    conn = connect(path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def utc_now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


__all__ = ["connect", "get_conn", "utc_now"]
