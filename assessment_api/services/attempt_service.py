"""Service layer for attempts.

An attempt is Active while ``completed_at`` is NULL and Completed once
submitted. At most one active attempt exists per (assessment, user): the
check in ``start`` is backed by the ``uq_active_attempt`` partial unique
index, and ``submit`` writes the score with an update conditioned on
``completed_at IS NULL`` so only one submission can ever win.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession, sessionmaker

from assessment_api.errors import (
    AlreadyActive,
    AlreadyCompleted,
    NotFoundError,
    StorageError,
)
from assessment_api.models.db.assessment import Assessment
from assessment_api.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus
from assessment_api.models.questions import GradedAttempt, Question, SubmittedAnswer
from assessment_api.services import grading_service
from assessment_api.services.assessment_service import load_questions

logger = logging.getLogger(__name__)


@dataclass
class AttemptRecord:
    id: str
    assessment_id: str
    user_id: str
    started_at: datetime
    completed_at: datetime | None = None
    score: int | None = None
    correct_count: int | None = None
    total_questions: int | None = None
    assessment_title: str | None = None
    assessment_level: str | None = None
    assessment_category: str | None = None

    @property
    def status(self) -> AttemptStatus:
        if self.completed_at is None:
            return AttemptStatus.ACTIVE
        return AttemptStatus.COMPLETED


@dataclass
class StartedAttempt:
    """New attempt plus the questions to present, in order."""

    attempt: AttemptRecord
    title: str
    description: str
    duration: int | None
    questions: list[Question] = field(default_factory=list)


@dataclass
class SubmissionResult:
    attempt: AttemptRecord
    graded: GradedAttempt


def _to_record(attempt: Attempt, assessment: Assessment | None = None) -> AttemptRecord:
    return AttemptRecord(
        id=attempt.id,
        assessment_id=attempt.assessment_id,
        user_id=attempt.user_id,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        score=attempt.score,
        correct_count=attempt.correct_count,
        total_questions=attempt.total_questions,
        assessment_title=assessment.title if assessment else None,
        assessment_level=assessment.level if assessment else None,
        assessment_category=assessment.category if assessment else None,
    )


def _find_active_attempt(db: DBSession, assessment_id: str, user_id: str) -> str | None:
    """Id of the user's unfinished attempt at the assessment, if any."""
    return db.execute(
        select(Attempt.id).where(
            Attempt.assessment_id == assessment_id,
            Attempt.user_id == user_id,
            Attempt.completed_at.is_(None),
        )
    ).scalar_one_or_none()


def _is_active_attempt_conflict(exc: IntegrityError) -> bool:
    """
    Whether the violation is the one-active-attempt index.

    PostgreSQL names the index; SQLite lists the indexed columns instead.
    """
    message = str(exc.orig)
    return "uq_active_attempt" in message or (
        "UNIQUE constraint failed" in message
        and "assessment_attempts.assessment_id, assessment_attempts.user_id" in message
    )


class AttemptLedger:
    """Attempt lifecycle: start -> active -> completed."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def start(self, assessment_id: str, user_id: str) -> StartedAttempt:
        """
        Open a new attempt.

        Raises:
            NotFoundError: the assessment does not exist.
            AlreadyActive: the user already has an unfinished attempt at it.
        """
        user_id = str(user_id)
        try:
            with self._session_factory.begin() as db:
                assessment = db.get(Assessment, assessment_id)
                if assessment is None:
                    raise NotFoundError("Assessment not found")

                active_id = _find_active_attempt(db, assessment_id, user_id)
                if active_id is not None:
                    logger.warning(
                        "User %s already has active attempt %s at %s",
                        user_id,
                        active_id,
                        assessment_id,
                    )
                    raise AlreadyActive()

                attempt = Attempt(
                    id=uuid.uuid4().hex,
                    assessment_id=assessment_id,
                    user_id=user_id,
                    started_at=datetime.now(timezone.utc),
                )
                db.add(attempt)
                db.flush()

                started = StartedAttempt(
                    attempt=_to_record(attempt, assessment),
                    title=assessment.title,
                    description=assessment.description,
                    duration=assessment.duration,
                    questions=load_questions(db, assessment_id),
                )
        except IntegrityError as exc:
            if not _is_active_attempt_conflict(exc):
                logger.exception("Failed to start attempt at %s", assessment_id)
                raise StorageError("Failed to start attempt") from exc
            # A concurrent start won the race on uq_active_attempt
            logger.warning("Concurrent start for %s by %s rejected", assessment_id, user_id)
            raise AlreadyActive() from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to start attempt at %s", assessment_id)
            raise StorageError("Failed to start attempt") from exc

        logger.info(
            "Started attempt %s at %s for user %s",
            started.attempt.id,
            assessment_id,
            user_id,
        )
        return started

    def submit(
        self,
        attempt_id: str,
        user_id: str,
        answers: Iterable[SubmittedAnswer],
    ) -> SubmissionResult:
        """
        Grade the answers and complete the attempt in one transaction.

        Raises:
            NotFoundError: no attempt with this id belongs to the user.
            AlreadyCompleted: the attempt was already submitted, including
                by a concurrent request that committed first.
        """
        user_id = str(user_id)
        answers = list(answers)
        try:
            with self._session_factory.begin() as db:
                attempt = db.execute(
                    select(Attempt).where(Attempt.id == attempt_id, Attempt.user_id == user_id)
                ).scalar_one_or_none()
                if attempt is None:
                    raise NotFoundError("Attempt not found")
                if attempt.is_completed:
                    logger.warning("Rejected second submit of attempt %s", attempt_id)
                    raise AlreadyCompleted()

                questions = load_questions(db, attempt.assessment_id)
                graded = grading_service.grade_submission(questions, answers)
                completed_at = datetime.now(timezone.utc)

                result = db.execute(
                    update(Attempt)
                    .where(Attempt.id == attempt_id, Attempt.completed_at.is_(None))
                    .values(
                        completed_at=completed_at,
                        score=graded.score_percent,
                        correct_count=graded.correct_count,
                        total_questions=graded.total_gradable,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    logger.warning("Attempt %s was completed by a concurrent submit", attempt_id)
                    raise AlreadyCompleted()

                rows = [
                    {
                        "id": uuid.uuid4().hex,
                        "attempt_id": attempt_id,
                        "question_id": grade.question_id,
                        "item_id": grade.item_id,
                        "position": position,
                        "answer_text": grade.answer,
                        "is_correct": grade.is_correct,
                    }
                    for position, grade in enumerate(graded.grades)
                ]
                if rows:
                    db.execute(insert(AttemptAnswer), rows)

                record = AttemptRecord(
                    id=attempt.id,
                    assessment_id=attempt.assessment_id,
                    user_id=attempt.user_id,
                    started_at=attempt.started_at,
                    completed_at=completed_at,
                    score=graded.score_percent,
                    correct_count=graded.correct_count,
                    total_questions=graded.total_gradable,
                )
        except SQLAlchemyError as exc:
            logger.exception("Failed to submit attempt %s", attempt_id)
            raise StorageError("Failed to submit attempt") from exc

        logger.info(
            "Attempt %s submitted: %d%% (%d/%d)",
            attempt_id,
            graded.score_percent,
            graded.correct_count,
            graded.total_gradable,
        )
        return SubmissionResult(attempt=record, graded=graded)

    def status_for(self, assessment_id: str, user_id: str) -> AttemptStatus:
        """State of the user's latest attempt at an assessment."""
        try:
            with self._session_factory() as db:
                latest = db.execute(
                    select(Attempt)
                    .where(Attempt.assessment_id == assessment_id, Attempt.user_id == str(user_id))
                    .order_by(Attempt.started_at.desc())
                    .limit(1)
                ).scalar_one_or_none()
                if latest is None:
                    return AttemptStatus.NOT_STARTED
                return latest.status
        except SQLAlchemyError as exc:
            logger.exception("Failed to load attempt status at %s", assessment_id)
            raise StorageError("Failed to load attempt status") from exc

    def list_for_user(self, user_id: str) -> list[AttemptRecord]:
        """Get the user's attempts, newest first, with assessment info."""
        try:
            with self._session_factory() as db:
                rows = db.execute(
                    select(Attempt, Assessment)
                    .join(Assessment, Assessment.id == Attempt.assessment_id)
                    .where(Attempt.user_id == str(user_id))
                    .order_by(Attempt.started_at.desc())
                ).all()
                return [_to_record(attempt, assessment) for attempt, assessment in rows]
        except SQLAlchemyError as exc:
            logger.exception("Failed to list attempts of user %s", user_id)
            raise StorageError("Failed to list attempts") from exc
