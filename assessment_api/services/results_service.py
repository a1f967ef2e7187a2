"""Service for assembling the result view of a completed attempt."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from assessment_api.errors import NotCompleted, NotFoundError, StorageError
from assessment_api.models.db.assessment import Assessment
from assessment_api.models.db.attempt import Attempt, AttemptAnswer
from assessment_api.services import grading_service
from assessment_api.services.assessment_service import load_questions

logger = logging.getLogger(__name__)

UNKNOWN_QUESTION_TITLE = "Unknown question"


@dataclass
class ResultItem:
    question_id: str
    question_title: str
    variant: str | None
    your_answer: str | None
    correct_answer: str | None
    is_correct: bool | None


@dataclass
class ResultView:
    attempt_id: str
    assessment_id: str
    assessment_title: str
    started_at: datetime
    completed_at: datetime
    score: int
    correct_count: int
    total_questions: int
    items: list[ResultItem] = field(default_factory=list)


class ResultsAssembler:
    """Read-only join of an attempt, its answers and the assessment questions."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def assemble(self, attempt_id: str, requester_id: str) -> ResultView:
        """
        Build "your answer" vs "correct answer" for every recorded answer.

        Raises:
            NotFoundError: attempt missing or owned by someone else.
            NotCompleted: attempt has not been submitted yet.
        """
        try:
            return self._assemble(attempt_id, requester_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to assemble results of attempt %s", attempt_id)
            raise StorageError("Failed to load results") from exc

    def _assemble(self, attempt_id: str, requester_id: str) -> ResultView:
        with self._session_factory() as db:
            row = db.execute(
                select(Attempt, Assessment.title)
                .join(Assessment, Assessment.id == Attempt.assessment_id)
                .where(Attempt.id == attempt_id, Attempt.user_id == str(requester_id))
            ).first()
            if row is None:
                raise NotFoundError("Assessment attempt not found")
            attempt, title = row
            if not attempt.is_completed:
                raise NotCompleted()

            answers = db.execute(
                select(AttemptAnswer)
                .where(AttemptAnswer.attempt_id == attempt_id)
                .order_by(AttemptAnswer.position)
            ).scalars().all()
            questions = {
                question.id: question
                for question in load_questions(db, attempt.assessment_id)
            }

            items = []
            for answer in answers:
                question = questions.get(answer.question_id)
                if question is None:
                    items.append(
                        ResultItem(
                            question_id=answer.question_id,
                            question_title=UNKNOWN_QUESTION_TITLE,
                            variant=None,
                            your_answer=answer.answer_text,
                            correct_answer=None,
                            is_correct=answer.is_correct,
                        )
                    )
                    continue
                items.append(
                    ResultItem(
                        question_id=question.id,
                        question_title=question.title,
                        variant=question.variant.value,
                        your_answer=answer.answer_text,
                        correct_answer=grading_service.expected_answer(question, answer.item_id),
                        is_correct=answer.is_correct,
                    )
                )

            return ResultView(
                attempt_id=attempt.id,
                assessment_id=attempt.assessment_id,
                assessment_title=title,
                started_at=attempt.started_at,
                completed_at=attempt.completed_at,
                score=attempt.score or 0,
                correct_count=attempt.correct_count or 0,
                total_questions=attempt.total_questions or 0,
                items=items,
            )

