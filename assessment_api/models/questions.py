"""In-memory question types shared by the codec, grading and results."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field


class QuestionVariant(str, enum.Enum):
    """Discriminant of the four question shapes."""

    MULTIPLE_CHOICE = "multiple-choice"
    MATCHING = "matching"
    FILL_IN_BLANK = "fill-in-blank"
    FLASHCARDS = "flashcards"

    @property
    def is_gradable(self) -> bool:
        return self is not QuestionVariant.FLASHCARDS


@dataclass(frozen=True)
class ChoiceItem:
    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: str


@dataclass(frozen=True)
class MatchPair:
    id: str
    term: str
    translation: str


@dataclass(frozen=True)
class BlankSentence:
    id: str
    text: str  # contains the blank marker
    answer: str


@dataclass(frozen=True)
class Flashcard:
    id: str
    term: str
    translation: str
    example: str | None = None


@dataclass
class Question:
    """
    Tagged question: ``variant`` names which payload field is populated.

    Exactly one of ``choices``, ``pairs``, ``sentences`` and ``cards`` is
    set; the others stay ``None``.
    """

    id: str
    variant: QuestionVariant | str
    title: str
    instructions: str | None = None
    order: int = 0
    choices: tuple[ChoiceItem, ...] | None = None
    pairs: tuple[MatchPair, ...] | None = None
    sentences: tuple[BlankSentence, ...] | None = None
    cards: tuple[Flashcard, ...] | None = None

    def populated_payloads(self) -> dict[QuestionVariant, tuple]:
        """Map of variant to payload for every payload field that is set."""
        candidates = {
            QuestionVariant.MULTIPLE_CHOICE: self.choices,
            QuestionVariant.MATCHING: self.pairs,
            QuestionVariant.FILL_IN_BLANK: self.sentences,
            QuestionVariant.FLASHCARDS: self.cards,
        }
        return {key: value for key, value in candidates.items() if value is not None}

    @property
    def items(self) -> tuple:
        """Payload items of the populated variant."""
        payloads = self.populated_payloads()
        return payloads.get(QuestionVariant(self.variant), ())

    def find_item(self, item_id: str | None):
        """Payload item with ``item_id``, or ``None``."""
        if item_id is None:
            return None
        for item in self.items:
            if item.id == str(item_id):
                return item
        return None


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: str
    answer: str | None
    item_id: str | None = None


@dataclass
class QuestionGrade:
    question_id: str
    variant: QuestionVariant
    answer: str | None
    item_id: str | None
    is_correct: bool | None


@dataclass
class GradedAttempt:
    """Outcome of grading one submission."""

    score_percent: int
    correct_count: int
    total_gradable: int
    grades: list[QuestionGrade] = field(default_factory=list)

    @property
    def per_question(self) -> dict[str, bool | None]:
        return {grade.question_id: grade.is_correct for grade in self.grades}
