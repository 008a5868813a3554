import json
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from feedback import FeedbackDeriver
from interview_sessions import CallAnalyticsRecorder, CallAnalyticsStore, SessionStore
from question_generation import QuestionGenerator
from session_lifecycle import SessionLifecycleManager
from user_directory import UserDirectory


IDENTITY = "candidate@example.com"


def feedback_json(total: int = 85, technical: int = 90, **overrides) -> str:
    payload = {
        "totalScore": total,
        "categoryScores": [
            {"name": "Communication Skills", "score": 80, "comment": "Clear"},
            {"name": "Technical Knowledge", "score": technical, "comment": "Solid"},
            {"name": "Problem Solving", "score": 84, "comment": "Structured"},
            {"name": "Cultural Fit", "score": 82, "comment": "Good"},
            {"name": "Confidence and Clarity", "score": 78, "comment": "Calm"},
        ],
        "strengths": ["Clear explanations", "System design depth"],
        "areasForImprovement": ["Quantify impact"],
        "finalAssessment": "Strong candidate with good fundamentals.",
    }
    payload.update(overrides)
    return json.dumps(payload)


class FakeGenerator:
    """Text generator double that records prompts and replays canned replies."""

    def __init__(
        self,
        reply: str = "",
        *,
        error: Optional[Exception] = None,
        gate: Optional[threading.Event] = None,
        responder: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.reply = reply
        self.error = error
        self.gate = gate
        self.responder = responder
        self.prompts: List[str] = []
        self.entered = threading.Event()

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(prompt)
        return self.reply


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch, tmp_path):
    db_path = tmp_path / "test.db"
    monkeypatch.setattr(settings, "DB_PATH", str(db_path), raising=False)
    yield db_path


@pytest.fixture
def question_generator() -> FakeGenerator:
    return FakeGenerator(
        json.dumps(
            [
                "Walk me through a REST API you designed.",
                "How do you approach testing and/or code review?",
                "Describe a production incident you resolved.",
                "How would you scale a read-heavy service?",
            ]
        )
    )


@pytest.fixture
def feedback_generator() -> FakeGenerator:
    return FakeGenerator(feedback_json())


@pytest.fixture
def make_manager(tmp_db):
    created: List[SessionLifecycleManager] = []

    def _make(
        question_gen,
        feedback_gen,
        *,
        timeout_s: float = 5.0,
        commit_grace_s: float = 2.0,
        workers: int = 2,
        analytics: Optional[CallAnalyticsRecorder] = None,
        feedback_sessions: Optional[SessionStore] = None,
    ) -> SessionLifecycleManager:
        sessions = SessionStore(tmp_db)
        recorder = analytics or CallAnalyticsRecorder(CallAnalyticsStore(tmp_db))
        deriver_sessions = feedback_sessions if feedback_sessions is not None else sessions
        manager = SessionLifecycleManager(
            users=UserDirectory(tmp_db),
            sessions=sessions,
            analytics=recorder,
            questions=QuestionGenerator(question_gen),
            feedback=FeedbackDeriver(feedback_gen, deriver_sessions, recorder, min_transcript_chars=10),
            feedback_timeout_s=timeout_s,
            commit_grace_s=commit_grace_s,
            workers=workers,
        )
        created.append(manager)
        return manager

    yield _make
    for manager in created:
        manager.close(wait=True)


@pytest.fixture
def manager(make_manager, question_generator, feedback_generator) -> SessionLifecycleManager:
    return make_manager(question_generator, feedback_generator)


@pytest.fixture
def registered(manager):
    return manager.register_user(IDENTITY, industry="Fintech", skills=["Python", "PostgreSQL"])
