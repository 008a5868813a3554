from __future__ import annotations  # Wiring of lifecycle collaborators from settings

from pathlib import Path
from typing import Optional

from config import Settings, load_routes
from feedback import FEEDBACK_ROUTE_KEY, FeedbackDeriver
from interview_sessions import CallAnalyticsRecorder, CallAnalyticsStore, SessionStore
from llm_gateway import HttpClient, RouteTextGenerator, TextGenerator
from question_generation import QUESTION_ROUTE_KEY, QuestionGenerator
from user_directory import UserDirectory

from .lifecycle import SessionLifecycleManager


def build_manager(
    cfg: Settings,
    *,
    question_generator: Optional[TextGenerator] = None,
    feedback_generator: Optional[TextGenerator] = None,
    client: Optional[HttpClient] = None,
) -> SessionLifecycleManager:  # Construct the manager and its stores for one process
    if question_generator is None or feedback_generator is None:
        routes = load_routes(Path(cfg.CONFIG_PATH), [QUESTION_ROUTE_KEY, FEEDBACK_ROUTE_KEY])
        question_generator = question_generator or RouteTextGenerator(routes[QUESTION_ROUTE_KEY], client=client)
        feedback_generator = feedback_generator or RouteTextGenerator(routes[FEEDBACK_ROUTE_KEY], client=client)

    db_path = Path(cfg.DB_PATH)
    sessions = SessionStore(db_path)
    analytics = CallAnalyticsRecorder(CallAnalyticsStore(db_path))
    return SessionLifecycleManager(
        users=UserDirectory(db_path),
        sessions=sessions,
        analytics=analytics,
        questions=QuestionGenerator(question_generator),
        feedback=FeedbackDeriver(
            feedback_generator,
            sessions,
            analytics,
            min_transcript_chars=cfg.MIN_TRANSCRIPT_CHARS,
        ),
        feedback_timeout_s=cfg.FEEDBACK_TIMEOUT_S,
        workers=cfg.FEEDBACK_WORKERS,
        default_question_count=cfg.DEFAULT_QUESTION_COUNT,
        default_duration=cfg.DEFAULT_DURATION_MINUTES,
    )


__all__ = ["build_manager"]
