"""Database models."""
from assessment_api.models.db.assessment import (
    Assessment,
    AssessmentQuestion,
    FillInBlankSentence,
    FlashcardWord,
    MatchingItem,
    MultipleChoiceQuestion,
    ProficiencyLevel,
)
from assessment_api.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus

__all__ = [
    "Assessment",
    "AssessmentQuestion",
    "FillInBlankSentence",
    "FlashcardWord",
    "MatchingItem",
    "MultipleChoiceQuestion",
    "ProficiencyLevel",
    "Attempt",
    "AttemptAnswer",
    "AttemptStatus",
]
