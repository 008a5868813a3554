from __future__ import annotations  # Interview question generation module

import logging
import re
from textwrap import dedent
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from llm_gateway import TextGenerator, strip_code_fences


logger = logging.getLogger(__name__)

QUESTION_ROUTE_KEY = "question_generation.generate_questions"  # Registry key for question generation route

_QUESTION_LIST = TypeAdapter(List[str])
_UNSPEAKABLE = re.compile(r"[/*]")


class QuestionRequest(BaseModel):  # Inputs describing the interview to prepare
    role: str = Field(min_length=1)
    difficulty: str = "Mid"
    tech_stack: Optional[str] = None
    session_type: str = "Mixed"
    question_count: int = Field(default=4, ge=1, le=20)


class GeneratedQuestions(BaseModel):  # Ordered questions plus whether the fallback list was used
    questions: List[str] = Field(min_length=1)
    degraded: bool = False


def fallback_questions(role: str) -> List[str]:  # Fixed generic list used whenever generation fails
    return [
        speech_safe(question)
        for question in (
            "Tell me about yourself and your background.",
            f"What interests you most about working as a {role.strip()}?",
            "What are your greatest strengths?",
            "Describe a challenging project you worked on.",
            "How do you handle working under pressure?",
            "Where do you see yourself in 5 years?",
            "Why should we hire you for this position?",
            "Do you have any questions for us?",
        )
    ]


def speech_safe(text: str) -> str:  # Drop characters that break text-to-speech rendering
    return " ".join(_UNSPEAKABLE.sub(" ", text).split())


class QuestionGenerator:  # Prompt builder and defensive parser around a text generator
    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator

    def generate(self, request: QuestionRequest, *, skills: Sequence[str] = ()) -> GeneratedQuestions:
        prompt = build_prompt(request, skills=skills)
        try:
            raw = self._generator.generate(prompt)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Question generation failed for role=%s: %s", request.role, exc)
            return GeneratedQuestions(questions=fallback_questions(request.role), degraded=True)
        questions = parse_questions(raw, limit=request.question_count)
        if not questions:
            logger.warning("Question generation returned unusable output for role=%s", request.role)
            return GeneratedQuestions(questions=fallback_questions(request.role), degraded=True)
        return GeneratedQuestions(questions=questions)


def parse_questions(raw: str, *, limit: int) -> List[str]:  # Parse a JSON array of question strings
    cleaned = strip_code_fences(raw or "")
    try:
        items = _QUESTION_LIST.validate_json(cleaned)
    except ValidationError:
        return []
    questions = [speech_safe(item) for item in items]
    return [question for question in questions if question][:limit]


def build_prompt(request: QuestionRequest, *, skills: Sequence[str] = ()) -> str:  # Build task prompt for LLM
    tech_stack = request.tech_stack or ", ".join(skill for skill in skills if skill)
    return dedent(
        f"""
        Prepare questions for a job interview.
        The job role is {request.role}.
        The job experience level is {request.difficulty}.
        The tech stack used in the job is: {tech_stack}.
        The focus between behavioural and technical questions should lean towards: {request.session_type}.
        The amount of questions required is: {request.question_count}.
        Please return only the questions, without any additional text.
        The questions are going to be read by a voice assistant so do not use "/" or "*" or any other special characters which might break the voice assistant.
        Return the questions formatted like this:
        ["Question 1", "Question 2", "Question 3"]
        """
    ).strip()


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
