from interview_sessions import CallAnalyticsStore, InterviewSession, SessionOutcome, SessionStatus, SessionStore
from observability.admin_cli import main, tail_analytics, tail_sessions
from session_lifecycle import summarize


def _session(index: int, status: SessionStatus, score=None) -> InterviewSession:
    return InterviewSession(
        session_id=f"s{index}",
        user_id="u1",
        role="Engineer",
        difficulty="Mid",
        duration=30,
        session_type="mock",
        status=status,
        created_at=f"2026-01-{index:02d}T00:00:00+00:00",
        overall_score=score,
    )


def test_summarize_empty() -> None:
    stats = summarize([])
    assert stats.total_sessions == 0
    assert stats.average_score == 0
    assert stats.improvement_rate == 0


def test_summarize_improvement_over_previous_window() -> None:
    newest_first = [
        _session(8, SessionStatus.COMPLETED, 90),
        _session(7, SessionStatus.SCHEDULED),
        _session(6, SessionStatus.COMPLETED, 80),
        _session(5, SessionStatus.COMPLETED, 70),
        _session(4, SessionStatus.COMPLETED, 60),
        _session(3, SessionStatus.FAILED),
        _session(2, SessionStatus.COMPLETED, 60),
        _session(1, SessionStatus.COMPLETED, 60),
    ]
    stats = summarize(newest_first)
    assert stats.total_sessions == 8
    assert stats.completed_sessions == 6
    assert stats.average_score == 70
    assert stats.improvement_rate == 33


def test_admin_cli_tails_tables(tmp_db, capsys) -> None:
    store = SessionStore(tmp_db)
    CallAnalyticsStore(tmp_db)
    session = store.create(
        user_id="u1",
        role="Analyst",
        industry=None,
        difficulty="Mid",
        duration=20,
        session_type="mock",
        questions=["Q"],
    )
    store.record_outcome(session.session_id, SessionOutcome.degraded("done", score=42))

    lines = tail_sessions(5)
    assert len(lines) == 1
    assert f"{session.session_id}/u1 Analyst -> COMPLETED score=42" in lines[0]
    assert tail_analytics(5, str(tmp_db)) == []

    main(["sessions", "--limit", "1"])
    assert "Analyst" in capsys.readouterr().out
