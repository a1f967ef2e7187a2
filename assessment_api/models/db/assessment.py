"""
Assessment, question and per-variant payload database models.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment_api.database import Base


class ProficiencyLevel(str, enum.Enum):
    """CEFR proficiency tier of an assessment."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def rank(self) -> int:
        return list(ProficiencyLevel).index(self)


class Assessment(Base):
    """
    Assessment header record.
    Owns an ordered list of questions; order_index is the display order.
    """

    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(50), default="English", nullable=False)
    level: Mapped[str] = mapped_column(
        String(2), default=ProficiencyLevel.A1.value, nullable=False
    )
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    duration: Mapped[int | None] = mapped_column(nullable=True)  # minutes
    tags_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def tags(self) -> list[str]:
        """Parse tags from JSON."""
        if not self.tags_json:
            return []
        try:
            return json.loads(self.tags_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @tags.setter
    def tags(self, value: list[str] | None) -> None:
        """Serialize tags to JSON."""
        self.tags_json = json.dumps(list(value), ensure_ascii=False) if value else None


class AssessmentQuestion(Base):
    """Question base row; payload lives in exactly one variant table."""

    __tablename__ = "assessment_questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("assessment_id", "order_index", name="uq_assessment_question_order"),
    )


class MultipleChoiceQuestion(Base):
    """Multiple-choice payload row."""

    __tablename__ = "multiple_choice_questions"

    # Item ids are unique per question
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("assessment_questions.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options_json: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    correct_answer: Mapped[str] = mapped_column(Text, default="", nullable=False)


class MatchingItem(Base):
    """Matching pair payload row."""

    __tablename__ = "matching_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("assessment_questions.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    term: Mapped[str] = mapped_column(Text, nullable=False)
    translation: Mapped[str] = mapped_column(Text, nullable=False)


class FillInBlankSentence(Base):
    """Fill-in-blank payload row."""

    __tablename__ = "fill_in_blank_sentences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("assessment_questions.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)


class FlashcardWord(Base):
    """Flashcard payload row (never graded)."""

    __tablename__ = "flashcard_words"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("assessment_questions.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    position: Mapped[int] = mapped_column(default=0, nullable=False)
    term: Mapped[str] = mapped_column(Text, nullable=False)
    translation: Mapped[str] = mapped_column(Text, nullable=False)
    example: Mapped[str | None] = mapped_column(Text, nullable=True)
