from __future__ import annotations  # Re-export question_generation public API

from .question_generation import (  # noqa: F401
    QUESTION_ROUTE_KEY,
    GeneratedQuestions,
    QuestionGenerator,
    QuestionRequest,
    build_prompt,
    fallback_questions,
    parse_questions,
    speech_safe,
)

__all__ = [
    "GeneratedQuestions",
    "QUESTION_ROUTE_KEY",
    "QuestionGenerator",
    "QuestionRequest",
    "build_prompt",
    "fallback_questions",
    "parse_questions",
    "speech_safe",
]
