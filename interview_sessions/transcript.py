"""Call message normalization for voice-call transcripts.

The voice SDK delivers its message log in loosely shaped entries: bare strings,
or objects carrying the text under ``content``, ``text`` or ``transcript``.
Everything is folded into two shapes at the boundary so the rest of the
pipeline only ever sees :class:`PlainText` or :class:`StructuredMessage`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

_TEXT_KEYS = ("content", "text", "transcript")


@dataclass(frozen=True)
class PlainText:
    """Untagged utterance; rendered as spoken by the candidate."""

    text: str


@dataclass(frozen=True)
class StructuredMessage:
    """Utterance with an explicit speaker role."""

    role: str
    content: str


ConversationMessage = Union[PlainText, StructuredMessage]


def coerce_message(raw: Any) -> Optional[ConversationMessage]:
    if isinstance(raw, (PlainText, StructuredMessage)):
        return raw
    if isinstance(raw, str):
        return PlainText(raw) if raw.strip() else None
    if not isinstance(raw, dict):
        return None
    content = ""
    for key in _TEXT_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            content = value
            break
    if not content:
        return None
    role = raw.get("role")
    if not isinstance(role, str) or not role.strip():
        role = "User" if raw.get("type") == "transcript" else "System"
    return StructuredMessage(role=role.strip(), content=content)


def coerce_messages(raw: Optional[Iterable[Any]]) -> List[ConversationMessage]:
    """Normalize a raw message log, dropping entries without text."""

    if not raw:
        return []
    messages: List[ConversationMessage] = []
    for item in raw:
        message = coerce_message(item)
        if message is not None:
            messages.append(message)
    return messages


def render_line(message: ConversationMessage) -> str:
    if isinstance(message, PlainText):
        return f"User: {message.text}"
    return f"{message.role}: {message.content}"


def render_transcript(transcript: Optional[str], messages: Sequence[ConversationMessage]) -> str:
    """Prefer the structured log; fall back to the raw transcript text."""

    if messages:
        return "\n".join(render_line(message) for message in messages)
    return transcript or ""


def message_dict(message: ConversationMessage) -> Dict[str, str]:
    if isinstance(message, PlainText):
        return {"role": "User", "content": message.text}
    return {"role": message.role, "content": message.content}


__all__ = [
    "ConversationMessage",
    "PlainText",
    "StructuredMessage",
    "coerce_message",
    "coerce_messages",
    "message_dict",
    "render_line",
    "render_transcript",
]
