from __future__ import annotations  # Re-export assistant_config public API

from .assistant_config import (  # noqa: F401
    ASSISTANT_NAME,
    INTERVIEWER_GUIDANCE,
    AssistantConfig,
    ModelConfig,
    ModelMessage,
    TranscriberConfig,
    VoiceConfig,
    build_assistant_config,
    format_questions,
    system_instruction,
)

__all__ = [
    "ASSISTANT_NAME",
    "INTERVIEWER_GUIDANCE",
    "AssistantConfig",
    "ModelConfig",
    "ModelMessage",
    "TranscriberConfig",
    "VoiceConfig",
    "build_assistant_config",
    "format_questions",
    "system_instruction",
]
