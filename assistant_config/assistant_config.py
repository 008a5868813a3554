from __future__ import annotations  # Voice assistant configuration builder

from textwrap import dedent
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from interview_sessions.models import InterviewSession


ASSISTANT_NAME = "AI Interviewer"

INTERVIEWER_GUIDANCE = dedent(  # Behavioral guardrails for the live voice interviewer
    """
    Be professional, yet warm. Keep answers brief, ask follow-ups when needed.
    Ask one question at a time and wait for the candidate to finish speaking.
    Do not use "/" or "*" or any other special characters which might break the voice assistant.
    """
).strip()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TranscriberConfig(_CamelModel):  # Speech-to-text provider selection
    provider: str = "deepgram"
    model: str = "nova-2"
    language: str = "en"


class VoiceConfig(_CamelModel):  # Speech synthesis voice selection
    provider: str = "11labs"
    voice_id: str = "sarah"
    stability: float = 0.4
    similarity_boost: float = 0.8
    speed: float = 0.9
    style: float = 0.5
    use_speaker_boost: bool = True


class ModelMessage(_CamelModel):
    role: Literal["system", "assistant", "user"]
    content: str


class ModelConfig(_CamelModel):  # Conversational agent driving the call
    provider: str = "openai"
    model: str = "gpt-4"
    messages: List[ModelMessage] = Field(default_factory=list)


class AssistantConfig(_CamelModel):  # Configuration consumed by the voice-call SDK
    name: str
    first_message: str
    transcriber: TranscriberConfig
    voice: VoiceConfig
    model: ModelConfig


def build_assistant_config(
    session: InterviewSession,
    *,
    transcriber: TranscriberConfig | None = None,
    voice: VoiceConfig | None = None,
) -> AssistantConfig:  # Render persisted questions into the assistant configuration
    return AssistantConfig(
        name=ASSISTANT_NAME,
        first_message=(
            "Hello! Thank you for taking the time to speak with me today. I'm excited to learn more "
            f"about you and your experience for the {session.role} position."
        ),
        transcriber=transcriber or TranscriberConfig(),
        voice=voice or VoiceConfig(),
        model=ModelConfig(messages=[ModelMessage(role="system", content=system_instruction(session))]),
    )


def system_instruction(session: InterviewSession) -> str:  # Interviewer system prompt embedding the question flow
    lines = [
        "You are a professional job interviewer conducting a real-time voice interview with a candidate.",
        "Interview Context:",
        f"- Position: {session.role}",
        f"- Level: {session.difficulty or 'unspecified'}",
    ]
    if session.industry:
        lines.append(f"- Industry: {session.industry}")
    lines.extend(["", "Interview Guidelines:", "Focus on the structured question flow:"])
    lines.extend(format_questions(session.questions))
    lines.append(INTERVIEWER_GUIDANCE)
    return "\n".join(lines)


def format_questions(questions: List[str]) -> List[str]:
    return [f"- {question.strip()}" for question in questions if question.strip()]


__all__ = [
    "ASSISTANT_NAME",
    "AssistantConfig",
    "INTERVIEWER_GUIDANCE",
    "ModelConfig",
    "ModelMessage",
    "TranscriberConfig",
    "VoiceConfig",
    "build_assistant_config",
    "format_questions",
    "system_instruction",
]
