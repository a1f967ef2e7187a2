"""Assessment-related Pydantic models."""
from pydantic import BaseModel, Field

from assessment_api.models.db.assessment import ProficiencyLevel


class ChoiceItemDraft(BaseModel):
    """Multiple-choice item."""

    id: str | None = None
    text: str
    options: list[str] = Field(default_factory=list)
    correctAnswer: str = ""


class MatchItemDraft(BaseModel):
    """Matching pair."""

    id: str | None = None
    term: str
    translation: str


class SentenceDraft(BaseModel):
    """Fill-in-blank sentence with its expected answer."""

    id: str | None = None
    text: str
    answer: str


class WordDraft(BaseModel):
    """Flashcard word."""

    id: str | None = None
    term: str
    translation: str
    example: str | None = None


class QuestionDraft(BaseModel):
    """Question with the payload list matching its type."""

    id: str | None = None
    type: str
    title: str = ""
    instructions: str | None = None
    questions: list[ChoiceItemDraft] | None = None
    matchItems: list[MatchItemDraft] | None = None
    sentences: list[SentenceDraft] | None = None
    words: list[WordDraft] | None = None


class AssessmentDraft(BaseModel):
    """Model for creating an assessment with its questions."""

    title: str = ""
    description: str = ""
    language: str = "English"
    level: ProficiencyLevel = ProficiencyLevel.A1
    category: str | None = None
    duration: int | None = Field(None, ge=0)
    tags: list[str] = Field(default_factory=list)
    imageUrl: str | None = None
    questions: list[QuestionDraft] = Field(default_factory=list)


class AssessmentUpdate(BaseModel):
    """Model for updating assessment metadata and, optionally, its questions."""

    title: str | None = None
    description: str | None = None
    language: str | None = None
    level: ProficiencyLevel | None = None
    category: str | None = None
    duration: int | None = Field(None, ge=0)
    tags: list[str] | None = None
    imageUrl: str | None = None
    questions: list[QuestionDraft] | None = None


class AssessmentCreatedResponse(BaseModel):
    """Model for assessment creation response."""

    id: str
    title: str
    message: str = "Assessment created successfully"
