"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from api.schemas import CompleteSessionReq, CreateSessionReq, RegisterUserReq
from interview_sessions import InterviewSession, NotFound, SessionStateError, Unauthorized
from llm_gateway import LlmGatewayError
from session_lifecycle import (
    SessionCompletion,
    SessionCreated,
    SessionDetail,
    SessionLifecycleManager,
    SessionStart,
    SessionStats,
)
from user_directory import UserRecord


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_manager(request: Request) -> SessionLifecycleManager:
    return request.app.state.manager


def current_identity(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id


@contextmanager
def _service_errors(action: str) -> Iterator[None]:
    try:
        yield
    except Unauthorized as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except LlmGatewayError as exc:
        logger.exception("LLM request failed during %s", action)
        raise HTTPException(status_code=502, detail=f"LLM request failed: {exc}") from exc
    except HTTPException:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during %s", action)
        raise HTTPException(status_code=500, detail=f"Unable to {action}") from exc


@router.post("/users/me", response_model=UserRecord)
def register_user(
    req: RegisterUserReq,
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> UserRecord:
    with _service_errors("register user"):
        return manager.register_user(identity, industry=req.industry, skills=req.skills)


@router.post("/interview-sessions", response_model=SessionCreated, status_code=201)
def create_session(
    req: CreateSessionReq,
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> SessionCreated:
    with _service_errors("create interview session"):
        return manager.create(identity, req.to_request())


@router.get("/interview-sessions", response_model=List[InterviewSession])
def list_sessions(
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> List[InterviewSession]:
    with _service_errors("list interview sessions"):
        return manager.list(identity)


@router.get("/interview-sessions/stats", response_model=SessionStats)
def session_stats(
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> SessionStats:
    with _service_errors("summarize interview sessions"):
        return manager.stats(identity)


@router.get("/interview-sessions/{session_id}", response_model=SessionDetail)
def get_session(
    session_id: str,
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> SessionDetail:
    with _service_errors("load interview session"):
        return manager.get(identity, session_id)


@router.post("/interview-sessions/{session_id}/start", response_model=SessionStart)
def start_session(
    session_id: str,
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> SessionStart:
    with _service_errors("start interview session"):
        return manager.start(identity, session_id)


@router.post("/interview-sessions/{session_id}/complete", response_model=SessionCompletion)
def complete_session(
    session_id: str,
    req: CompleteSessionReq,
    identity: Optional[str] = Depends(current_identity),
    manager: SessionLifecycleManager = Depends(get_manager),
) -> SessionCompletion:
    with _service_errors("complete interview session"):
        return manager.complete(identity, session_id, req.transcript, req.messages)
