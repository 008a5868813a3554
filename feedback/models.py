from __future__ import annotations  # Feedback document models

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

CATEGORY_NAMES = (
    "Communication Skills",
    "Technical Knowledge",
    "Problem Solving",
    "Cultural Fit",
    "Confidence and Clarity",
)

FeedbackSource = Literal["model", "repaired", "empty_transcript", "model_error"]


class CategoryScore(BaseModel):  # One scored category
    name: str
    score: int = Field(ge=0, le=100)
    comment: str = ""


class FeedbackDocument(BaseModel):  # Scored feedback for a finished interview
    model_config = ConfigDict(populate_by_name=True)

    total_score: int = Field(alias="totalScore", ge=0, le=100)
    category_scores: List[CategoryScore] = Field(alias="categoryScores", min_length=1)
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(alias="areasForImprovement", default_factory=list)
    final_assessment: str = Field(alias="finalAssessment", default="")
    source: FeedbackSource = "model"

    def category(self, name: str) -> CategoryScore | None:
        wanted = name.lower()
        for entry in self.category_scores:
            if entry.name.lower() == wanted:
                return entry
        return None


def uniform_document(
    score: int,
    *,
    comment: str,
    areas_for_improvement: List[str],
    final_assessment: str,
    source: FeedbackSource,
    total_score: int | None = None,
) -> FeedbackDocument:  # Same score across all five categories
    return FeedbackDocument(
        total_score=score if total_score is None else total_score,
        category_scores=[CategoryScore(name=name, score=score, comment=comment) for name in CATEGORY_NAMES],
        strengths=[],
        areas_for_improvement=areas_for_improvement,
        final_assessment=final_assessment,
        source=source,
    )


def empty_transcript_document() -> FeedbackDocument:
    return uniform_document(
        50,
        comment="No transcript provided",
        areas_for_improvement=["Transcript not available"],
        final_assessment=(
            "No transcript was provided for analysis. Please provide the interview transcript "
            "to assess the candidate's performance."
        ),
        source="empty_transcript",
    )


def model_error_document() -> FeedbackDocument:
    return uniform_document(
        60,
        comment="Could not generate detailed feedback due to model error",
        areas_for_improvement=["Feedback generation failed"],
        final_assessment="Feedback generation encountered an error. Please retry.",
        source="model_error",
    )


__all__ = [
    "CATEGORY_NAMES",
    "CategoryScore",
    "FeedbackDocument",
    "FeedbackSource",
    "empty_transcript_document",
    "model_error_document",
    "uniform_document",
]
