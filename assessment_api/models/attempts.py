"""Attempt-related Pydantic models."""
from pydantic import BaseModel, Field, field_validator

from assessment_api.models.questions import SubmittedAnswer


class AnswerPayload(BaseModel):
    """One submitted answer."""

    questionId: str = Field(..., min_length=1)
    answer: str | int | None = None
    itemId: str | None = None

    @field_validator("questionId", "itemId", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value


class AttemptSubmitRequest(BaseModel):
    """Answers keyed by question id, or a list of answer objects."""

    answers: dict[str, str | int | None] | list[AnswerPayload] = Field(default_factory=list)

    def to_submitted(self) -> list[SubmittedAnswer]:
        if isinstance(self.answers, dict):
            return [
                SubmittedAnswer(question_id=key, answer=_as_text(value))
                for key, value in self.answers.items()
            ]
        return [
            SubmittedAnswer(
                question_id=item.questionId,
                answer=_as_text(item.answer),
                item_id=item.itemId,
            )
            for item in self.answers
        ]


class AttemptSubmitResponse(BaseModel):
    """Model for attempt submission response."""

    attemptId: str
    score: int
    correctAnswers: int
    totalQuestions: int
    completedAt: str


def _as_text(value: str | int | None) -> str | None:
    return None if value is None else str(value)
