"""
Attempt and AttemptAnswer database models for assessment delivery.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assessment_api.database import Base


class AttemptStatus(str, enum.Enum):
    """Lifecycle state of an attempt, derived from completed_at."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"


class Attempt(Base):
    """
    Assessment attempt record.
    Active while completed_at is NULL; completed_at and score are written once.
    """

    __tablename__ = "assessment_attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)

    # References
    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # Results
    score: Mapped[int | None] = mapped_column(nullable=True)
    correct_count: Mapped[int | None] = mapped_column(nullable=True)
    total_questions: Mapped[int | None] = mapped_column(nullable=True)

    # At most one active attempt per (assessment, user)
    __table_args__ = (
        Index(
            "uq_active_attempt",
            "assessment_id",
            "user_id",
            unique=True,
            sqlite_where=sa.text("completed_at IS NULL"),
            postgresql_where=sa.text("completed_at IS NULL"),
        ),
    )

    @property
    def status(self) -> AttemptStatus:
        if self.completed_at is None:
            return AttemptStatus.ACTIVE
        return AttemptStatus.COMPLETED

    @property
    def is_completed(self) -> bool:
        """Check if attempt is completed."""
        return self.completed_at is not None


class AttemptAnswer(Base):
    """
    Individual answer record within an attempt.
    Written in bulk at submit time and never updated.
    """

    __tablename__ = "assessment_answers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("assessment_attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Question reference (no FK: answers outlive a question replaced later)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    position: Mapped[int] = mapped_column(nullable=False)

    # Answer data
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_correct: Mapped[bool | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
    )
