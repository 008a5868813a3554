import threading
import time

import pytest

from interview_sessions import (
    CallAnalyticsRecorder,
    CallAnalyticsStore,
    NotFound,
    SessionStateError,
    SessionStatus,
    SessionStore,
    Unauthorized,
)
from question_generation import fallback_questions
from session_lifecycle import DEGRADED_DETAIL, SessionRequest

from conftest import IDENTITY, FakeGenerator, feedback_json

TRANSCRIPT = "Interviewer: How do you design APIs?\nCandidate: I start from the resource model and versioning."


def _create(manager, **fields):
    fields.setdefault("role", "Backend Engineer")
    return manager.create(IDENTITY, SessionRequest(**fields))


def _statuses(manager):
    return [session.status for session in manager.list(IDENTITY)]


def test_create_requires_identity_and_known_user(manager) -> None:
    with pytest.raises(Unauthorized):
        manager.create(None, SessionRequest(role="Engineer"))
    with pytest.raises(Unauthorized):
        manager.create("   ", SessionRequest(role="Engineer"))
    with pytest.raises(NotFound):
        manager.create("stranger@example.com", SessionRequest(role="Engineer"))


def test_create_persists_scheduled_session_with_speech_safe_questions(manager, registered, question_generator) -> None:
    created = _create(manager, tech_stack="FastAPI")
    session = created.session
    assert session.status is SessionStatus.SCHEDULED
    assert session.user_id == registered.user_id
    assert session.industry == "Fintech"
    assert session.difficulty == "intermediate"
    assert session.session_type == "mock"
    assert session.duration == 30
    assert session.questions
    assert all("/" not in q and "*" not in q for q in session.questions)
    assert created.interview_id.startswith("interview-")
    assert not created.interview_id.startswith("interview-fallback-")
    assert "FastAPI" in question_generator.prompts[0]


def test_create_uses_fallback_when_generation_fails(make_manager, feedback_generator) -> None:
    manager = make_manager(FakeGenerator(error=RuntimeError("no route")), feedback_generator)
    manager.register_user(IDENTITY)
    created = _create(manager, role="Designer")
    assert created.session.questions == fallback_questions("Designer")
    assert created.interview_id.startswith("interview-fallback-")


def test_create_uses_fallback_for_unparseable_output(make_manager, feedback_generator) -> None:
    manager = make_manager(FakeGenerator("Sure, here are some great questions"), feedback_generator)
    manager.register_user(IDENTITY)
    assert len(_create(manager).session.questions) == 8


def test_start_moves_to_in_progress_and_returns_config(manager, registered) -> None:
    session = _create(manager).session
    started = manager.start(IDENTITY, session.session_id)
    assert started.session.status is SessionStatus.IN_PROGRESS
    assert started.session.started_at is not None
    assert started.questions == session.questions
    system_prompt = started.assistant_config.model.messages[0].content
    assert all(f"- {q}" in system_prompt for q in session.questions)


def test_start_unknown_session_is_not_found_without_mutation(manager, registered) -> None:
    session = _create(manager).session
    with pytest.raises(NotFound):
        manager.start(IDENTITY, "does-not-exist")
    assert _statuses(manager) == [SessionStatus.SCHEDULED]
    assert manager.get(IDENTITY, session.session_id).session.started_at is None


def test_start_is_owner_scoped(manager, registered) -> None:
    session = _create(manager).session
    manager.register_user("intruder@example.com")
    with pytest.raises(NotFound):
        manager.start("intruder@example.com", session.session_id)


def test_start_on_completed_session_conflicts(manager, registered) -> None:
    session = _create(manager).session
    manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    with pytest.raises(SessionStateError):
        manager.start(IDENTITY, session.session_id)


def test_start_failure_marks_session_failed(make_manager, question_generator, feedback_generator) -> None:
    manager = make_manager(question_generator, feedback_generator)
    manager.register_user(IDENTITY)
    session = _create(manager).session

    def broken_builder(_session):
        raise RuntimeError("template error")

    manager._config_builder = broken_builder
    with pytest.raises(RuntimeError):
        manager.start(IDENTITY, session.session_id)
    assert _statuses(manager) == [SessionStatus.FAILED]
    with pytest.raises(SessionStateError):
        manager.complete(IDENTITY, session.session_id, TRANSCRIPT)


def test_complete_writes_scores_from_feedback(manager, registered) -> None:
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT, ["extra utterance"])
    assert result.feedback.total_score == 85
    assert result.session.status is SessionStatus.COMPLETED
    assert result.session.overall_score == 85
    assert result.session.technical_score == result.feedback.category("Technical Knowledge").score
    detail = manager.get(IDENTITY, session.session_id)
    assert detail.analytics.transcript == TRANSCRIPT
    assert detail.analytics.metadata["messages"] == 1


def test_complete_twice_stays_completed(manager, registered) -> None:
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    first = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    second = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert first.session.status is SessionStatus.COMPLETED
    assert second.session.status is SessionStatus.COMPLETED


def test_complete_short_transcript_scores_fifty(manager, registered, feedback_generator) -> None:
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    result = manager.complete(IDENTITY, session.session_id, "hey")
    assert [c.score for c in result.feedback.category_scores] == [50] * 5
    assert result.session.status is SessionStatus.COMPLETED
    assert feedback_generator.prompts == []


def test_complete_from_scheduled_is_allowed(manager, registered) -> None:
    session = _create(manager).session
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert result.session.status is SessionStatus.COMPLETED


def test_complete_with_failing_model_still_completes(make_manager, question_generator) -> None:
    manager = make_manager(question_generator, FakeGenerator(error=RuntimeError("model offline")))
    manager.register_user(IDENTITY)
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert result.session.status is SessionStatus.COMPLETED
    assert result.session.detailed_feedback
    assert result.feedback.source == "model_error"


def test_complete_survives_analytics_failure(make_manager, question_generator, feedback_generator, tmp_db) -> None:
    class BrokenStore(CallAnalyticsStore):
        def upsert(self, *args, **kwargs):
            raise RuntimeError("analytics table locked")

    manager = make_manager(
        question_generator,
        feedback_generator,
        analytics=CallAnalyticsRecorder(BrokenStore(tmp_db)),
    )
    manager.register_user(IDENTITY)
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert feedback_generator.prompts
    assert result.session.overall_score == 85


def test_complete_timeout_writes_degraded_and_discards_late_result(make_manager, question_generator, tmp_db) -> None:
    gate = threading.Event()
    slow = FakeGenerator(feedback_json(total=95), gate=gate)
    manager = make_manager(question_generator, slow, timeout_s=0.2)
    manager.register_user(IDENTITY)
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)

    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert result.feedback is None
    assert result.session.status is SessionStatus.COMPLETED
    assert result.session.overall_score == 50
    assert result.session.detailed_feedback == DEGRADED_DETAIL

    gate.set()
    manager.close(wait=True)
    stored = SessionStore(tmp_db).require(session.session_id)
    assert stored.overall_score == 50
    assert stored.detailed_feedback == DEGRADED_DETAIL


def test_list_and_stats(manager, registered) -> None:
    first = _create(manager, role="First").session
    _create(manager, role="Second")
    manager.complete(IDENTITY, first.session_id, TRANSCRIPT)

    sessions = manager.list(IDENTITY)
    assert [s.role for s in sessions] == ["Second", "First"]
    stats = manager.stats(IDENTITY)
    assert stats.total_sessions == 2
    assert stats.completed_sessions == 1
    assert stats.average_score == 85
    assert stats.improvement_rate == 0


def test_get_unknown_session_is_not_found(manager, registered) -> None:
    with pytest.raises(NotFound):
        manager.get(IDENTITY, "nope")


def test_complete_with_partial_categories_defaults_missing_scores(make_manager, question_generator) -> None:
    reply = feedback_json(
        total=85,
        categoryScores=[{"name": "Communication Skills", "score": 72, "comment": "Clear"}],
    )
    manager = make_manager(question_generator, FakeGenerator(reply))
    manager.register_user(IDENTITY)
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert result.session.overall_score == 85
    assert result.session.communication_score == 72
    assert result.session.technical_score == 50
    assert result.session.confidence_score == 50


def test_complete_bounds_wait_for_committed_derivation(make_manager, question_generator, tmp_db) -> None:
    gate = threading.Event()

    class StalledStore(SessionStore):
        def record_outcome(self, *args, **kwargs):
            gate.wait(timeout=5)
            return super().record_outcome(*args, **kwargs)

    manager = make_manager(
        question_generator,
        FakeGenerator(feedback_json(total=95)),
        timeout_s=0.2,
        commit_grace_s=0.2,
        feedback_sessions=StalledStore(tmp_db),
    )
    manager.register_user(IDENTITY)
    session = _create(manager).session
    manager.start(IDENTITY, session.session_id)

    began = time.monotonic()
    result = manager.complete(IDENTITY, session.session_id, TRANSCRIPT)
    assert time.monotonic() - began < 3
    assert result.feedback is None
    assert result.session.status is SessionStatus.COMPLETED
    assert result.session.detailed_feedback == DEGRADED_DETAIL

    gate.set()
    manager.close(wait=True)
    assert SessionStore(tmp_db).require(session.session_id).status is SessionStatus.COMPLETED


def test_complete_timeout_never_runs_queued_derivation(make_manager, question_generator) -> None:
    gate = threading.Event()
    slow = FakeGenerator(feedback_json(total=95), gate=gate)
    manager = make_manager(question_generator, slow, timeout_s=0.2, workers=1)
    manager.register_user(IDENTITY)
    first = _create(manager, role="First").session
    second = _create(manager, role="Second").session

    assert manager.complete(IDENTITY, first.session_id, TRANSCRIPT).feedback is None
    queued = manager.complete(IDENTITY, second.session_id, TRANSCRIPT)
    assert queued.feedback is None
    assert queued.session.detailed_feedback == DEGRADED_DETAIL

    gate.set()
    manager.close(wait=True)
    assert len(slow.prompts) == 1
