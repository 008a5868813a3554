"""Observability utilities for the mock interview service."""
from .logger import configure_logging, log_event
from .tracing import span

__all__ = ["configure_logging", "log_event", "span"]
