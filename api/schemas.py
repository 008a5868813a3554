"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from session_lifecycle import SessionRequest


class _CamelReq(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterUserReq(_CamelReq):
    industry: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class CreateSessionReq(_CamelReq):
    role: str = Field(min_length=1)
    industry: Optional[str] = None
    difficulty: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    session_type: Optional[str] = None
    tech_stack: Optional[str] = None
    question_count: Optional[int] = Field(default=None, ge=1, le=20)

    def to_request(self) -> SessionRequest:
        return SessionRequest(**self.model_dump())


class CompleteSessionReq(_CamelReq):
    transcript: Optional[str] = None
    messages: List[Union[str, Dict[str, Any]]] = Field(default_factory=list)
