"""Pydantic models."""
from assessment_api.models.assessments import (
    AssessmentCreatedResponse,
    AssessmentDraft,
    AssessmentUpdate,
    ChoiceItemDraft,
    MatchItemDraft,
    QuestionDraft,
    SentenceDraft,
    WordDraft,
)
from assessment_api.models.attempts import (
    AnswerPayload,
    AttemptSubmitRequest,
    AttemptSubmitResponse,
)

__all__ = [
    "AnswerPayload",
    "AssessmentCreatedResponse",
    "AssessmentDraft",
    "AssessmentUpdate",
    "AttemptSubmitRequest",
    "AttemptSubmitResponse",
    "ChoiceItemDraft",
    "MatchItemDraft",
    "QuestionDraft",
    "SentenceDraft",
    "WordDraft",
]
