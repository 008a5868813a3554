"""Parser strategies that turn raw model replies into feedback documents.

Each strategy takes the cleaned reply text and returns a JSON object or
``None``. :func:`first_success` walks them in order; when every strategy
misses, :func:`repaired_document` synthesizes a uniform document from
whatever score can still be recovered from the text.
"""
from __future__ import annotations

import json
import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from .models import CATEGORY_NAMES, CategoryScore, FeedbackDocument, FeedbackSource, uniform_document

DEFAULT_TOTAL_SCORE = 75
REPAIRED_CATEGORY_SCORE = 75
ASSESSMENT_EXCERPT_CHARS = 1000

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_OUT_OF_100_RE = re.compile(r"(\d{1,3})\s*/\s*100")
_BARE_NUMBER_RE = re.compile(r"\b(\d{1,3})\b")

Strategy = Callable[[str], Optional[Dict[str, Any]]]


class ParsedFeedback(BaseModel):
    document: FeedbackDocument
    cleaned: str


def clean_response(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_whole(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def parse_brace_span(text: str) -> Optional[Dict[str, Any]]:
    span = brace_span(text)
    if span is None:
        return None
    return parse_whole(span)


PARSE_STRATEGIES: Sequence[Strategy] = (parse_whole, parse_brace_span)


def first_success(strategies: Iterable[Strategy], text: str) -> Optional[Dict[str, Any]]:
    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    return None


def recover_total_score(text: str) -> Optional[int]:
    match = _OUT_OF_100_RE.search(text) or _BARE_NUMBER_RE.search(text)
    if match is None:
        return None
    return _clamp(int(match.group(1)))


def repaired_document(cleaned: str) -> FeedbackDocument:
    total = recover_total_score(cleaned)
    return uniform_document(
        REPAIRED_CATEGORY_SCORE,
        total_score=DEFAULT_TOTAL_SCORE if total is None else total,
        comment="Auto-generated fallback",
        areas_for_improvement=["Could not parse model JSON; using fallback values"],
        final_assessment=cleaned[:ASSESSMENT_EXCERPT_CHARS],
        source="repaired",
    )


def normalize_document(data: Dict[str, Any], *, source: FeedbackSource = "model") -> FeedbackDocument:
    """Coerce a loosely shaped JSON object into a feedback document.

    A missing or empty category list is synthesized from the total score.
    A partial list keeps only the entries the model returned, so lookups of
    absent categories fall through to their caller's default.
    """

    total = _as_score(_pick(data, "totalScore", "total_score"))
    if total is None:
        total = DEFAULT_TOTAL_SCORE
    canonical = {name.lower(): name for name in CATEGORY_NAMES}
    categories: List[CategoryScore] = []
    seen: set[str] = set()
    raw_categories = _pick(data, "categoryScores", "category_scores")
    for entry in raw_categories if isinstance(raw_categories, list) else []:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not entry["name"].strip():
            continue
        key = entry["name"].strip().lower()
        if key in seen:
            continue
        seen.add(key)
        score = _as_score(entry.get("score"))
        categories.append(
            CategoryScore(
                name=canonical.get(key, entry["name"].strip()),
                score=total if score is None else score,
                comment=str(entry.get("comment") or "").strip(),
            )
        )
    if not categories:
        categories = [CategoryScore(name=name, score=total, comment="Auto") for name in CATEGORY_NAMES]
    return FeedbackDocument(
        total_score=total,
        category_scores=categories,
        strengths=_as_str_list(data.get("strengths")),
        areas_for_improvement=_as_str_list(_pick(data, "areasForImprovement", "areas_for_improvement")),
        final_assessment=str(_pick(data, "finalAssessment", "final_assessment") or "").strip(),
        source=source,
    )


def parse_feedback(raw: str, strategies: Sequence[Strategy] = PARSE_STRATEGIES) -> ParsedFeedback:
    """Run the strategy chain, falling back to a repaired document."""

    cleaned = clean_response(raw)
    payload = brace_span(cleaned) or cleaned
    data = first_success(strategies, cleaned)
    if data is None:
        return ParsedFeedback(document=repaired_document(payload), cleaned=payload)
    return ParsedFeedback(document=normalize_document(data), cleaned=payload)


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def _as_score(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return _clamp(int(round(value)))


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


__all__ = [
    "DEFAULT_TOTAL_SCORE",
    "PARSE_STRATEGIES",
    "ParsedFeedback",
    "Strategy",
    "brace_span",
    "clean_response",
    "first_success",
    "normalize_document",
    "parse_brace_span",
    "parse_feedback",
    "parse_whole",
    "recover_total_score",
    "repaired_document",
]
