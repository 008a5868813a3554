"""SQLite persistence helpers."""
from .sqlite import connect, get_conn, utc_now

__all__ = ["connect", "get_conn", "utc_now"]
