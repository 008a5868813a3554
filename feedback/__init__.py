from __future__ import annotations  # Feedback package exports

from .deriver import FEEDBACK_ROUTE_KEY, DerivationTicket, FeedbackDeriver, build_prompt, outcome_from_feedback
from .models import (
    CATEGORY_NAMES,
    CategoryScore,
    FeedbackDocument,
    empty_transcript_document,
    model_error_document,
)
from .parsers import PARSE_STRATEGIES, first_success, normalize_document, parse_feedback

__all__ = [
    "CATEGORY_NAMES",
    "CategoryScore",
    "DerivationTicket",
    "FEEDBACK_ROUTE_KEY",
    "FeedbackDeriver",
    "FeedbackDocument",
    "PARSE_STRATEGIES",
    "build_prompt",
    "empty_transcript_document",
    "first_success",
    "model_error_document",
    "normalize_document",
    "outcome_from_feedback",
    "parse_feedback",
]
