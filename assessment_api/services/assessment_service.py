"""Service layer for assessment authoring.

Every write runs in a single transaction opened from the session factory
handed to ``AssessmentRepository``; a failed write leaves no partial
question set behind.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession, sessionmaker

from assessment_api.errors import (
    CreateFailed,
    ForbiddenError,
    NotFoundError,
    StorageError,
    UnknownVariant,
    ValidationError,
    VariantMismatch,
)
from assessment_api.models.assessments import AssessmentDraft, AssessmentUpdate, QuestionDraft
from assessment_api.models.db.assessment import Assessment, AssessmentQuestion
from assessment_api.models.db.attempt import Attempt, AttemptAnswer
from assessment_api.models.questions import (
    BlankSentence,
    ChoiceItem,
    Flashcard,
    MatchPair,
    Question,
)
from assessment_api.services import question_codec

logger = logging.getLogger(__name__)


@dataclass
class AssessmentRecord:
    """Assessment header plus its decoded questions (empty in listings)."""

    id: str
    title: str
    description: str
    language: str
    level: str
    category: str | None
    duration: int | None
    tags: list[str]
    image_url: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime
    question_count: int = 0
    questions: list[Question] = field(default_factory=list)


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_record(
    assessment: Assessment,
    questions: Sequence[Question] = (),
    question_count: int | None = None,
) -> AssessmentRecord:
    return AssessmentRecord(
        id=assessment.id,
        title=assessment.title,
        description=assessment.description,
        language=assessment.language,
        level=assessment.level,
        category=assessment.category,
        duration=assessment.duration,
        tags=assessment.tags,
        image_url=assessment.image_url,
        created_by=assessment.created_by,
        created_at=assessment.created_at,
        updated_at=assessment.updated_at,
        question_count=len(questions) if question_count is None else question_count,
        questions=list(questions),
    )


def _item_ids(items: Sequence[Any] | None, question_label: str) -> list[str]:
    """Keep supplied item ids, generate missing ones; ids must be unique per question."""
    if items is None:
        return []
    ids = [item.id or _new_id() for item in items]
    if len(set(ids)) != len(ids):
        raise ValidationError(f"{question_label}: item ids must be unique")
    return ids


def build_question(draft: QuestionDraft, question_id: str, order: int) -> Question:
    """Turn a draft into a tagged question; payload lists map one-to-one to fields."""
    label = f"Question {order + 1}"
    choices = pairs = sentences = cards = None
    if draft.questions is not None:
        choices = tuple(
            ChoiceItem(
                id=item_id,
                text=item.text,
                options=tuple(item.options),
                correct_answer=item.correctAnswer,
            )
            for item_id, item in zip(_item_ids(draft.questions, label), draft.questions)
        )
    if draft.matchItems is not None:
        pairs = tuple(
            MatchPair(id=item_id, term=item.term, translation=item.translation)
            for item_id, item in zip(_item_ids(draft.matchItems, label), draft.matchItems)
        )
    if draft.sentences is not None:
        sentences = tuple(
            BlankSentence(id=item_id, text=item.text, answer=item.answer)
            for item_id, item in zip(_item_ids(draft.sentences, label), draft.sentences)
        )
    if draft.words is not None:
        cards = tuple(
            Flashcard(
                id=item_id,
                term=item.term,
                translation=item.translation,
                example=item.example,
            )
            for item_id, item in zip(_item_ids(draft.words, label), draft.words)
        )
    return Question(
        id=question_id,
        variant=draft.type,
        title=draft.title.strip(),
        instructions=draft.instructions,
        order=order,
        choices=choices,
        pairs=pairs,
        sentences=sentences,
        cards=cards,
    )


def build_questions(
    drafts: Sequence[QuestionDraft],
    reusable_ids: set[str] | frozenset[str] = frozenset(),
) -> list[Question]:
    """
    Validate question drafts and assign ids and dense 0-based order.

    A supplied question id is kept only when it is in ``reusable_ids``
    (questions of the same assessment being replaced).
    """
    if not drafts:
        raise ValidationError("At least one question is required")

    questions = []
    seen_ids: set[str] = set()
    for order, draft in enumerate(drafts):
        label = f"Question {order + 1}"
        question_id = draft.id if draft.id in reusable_ids else _new_id()
        if question_id in seen_ids:
            raise ValidationError(f"{label}: duplicate question id {question_id}")
        seen_ids.add(question_id)

        question = build_question(draft, question_id, order)
        if not question.title:
            raise ValidationError(f"{label}: title is required")
        try:
            variant = question_codec.coerce_variant(question.variant)
            question_codec.encode(question)
        except (UnknownVariant, VariantMismatch) as exc:
            raise ValidationError(f"{label}: {exc.detail}") from exc
        if variant.is_gradable and not question.items:
            raise ValidationError(f"{label}: at least one {variant.value} item is required")
        questions.append(question)
    return questions


def load_questions(db: DBSession, assessment_id: str) -> list[Question]:
    """Load and decode an assessment's questions in order."""
    base_rows = list(
        db.execute(
            select(AssessmentQuestion)
            .where(AssessmentQuestion.assessment_id == assessment_id)
            .order_by(AssessmentQuestion.order_index)
        ).scalars().all()
    )
    if not base_rows:
        return []

    question_ids = [row.id for row in base_rows]
    child_rows: dict[str, dict] = defaultdict(lambda: defaultdict(list))
    for variant, model in question_codec.payload_tables().items():
        rows = db.execute(
            select(model).where(model.question_id.in_(question_ids))
        ).scalars().all()
        for row in rows:
            child_rows[row.question_id][variant].append(row)

    questions = []
    for base_row in base_rows:
        try:
            questions.append(question_codec.decode(base_row, child_rows[base_row.id]))
        except (UnknownVariant, VariantMismatch):
            logger.error("Corrupt question %s in assessment %s", base_row.id, assessment_id)
            raise
    return questions


def _insert_questions(db: DBSession, assessment_id: str, questions: Sequence[Question]) -> None:
    """Insert base rows, then one bulk statement per child table."""
    base_rows = []
    child_rows: dict[type, list[dict[str, Any]]] = defaultdict(list)
    for question in questions:
        encoded = question_codec.encode(question)
        base_rows.append({**encoded.base_row, "assessment_id": assessment_id})
        child_rows[encoded.child_model].extend(encoded.child_rows)

    db.execute(insert(AssessmentQuestion), base_rows)
    for model, rows in child_rows.items():
        if rows:
            db.execute(insert(model), rows)


def _delete_questions(db: DBSession, assessment_id: str) -> None:
    """Delete all questions of an assessment and their payload rows."""
    question_ids = select(AssessmentQuestion.id).where(
        AssessmentQuestion.assessment_id == assessment_id
    )
    for model in question_codec.payload_tables().values():
        db.execute(
            delete(model)
            .where(model.question_id.in_(question_ids))
            .execution_options(synchronize_session=False)
        )
    db.execute(
        delete(AssessmentQuestion)
        .where(AssessmentQuestion.assessment_id == assessment_id)
        .execution_options(synchronize_session=False)
    )


def _validate_header(title: str | None, description: str | None) -> None:
    if not (title or "").strip() or not (description or "").strip():
        raise ValidationError("Title and description are required")


class AssessmentRepository:
    """Atomic persistence of assessments and their question trees."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(self, author_id: str, draft: AssessmentDraft) -> AssessmentRecord:
        """Validate the draft and insert the assessment with all questions at once."""
        _validate_header(draft.title, draft.description)
        questions = build_questions(draft.questions)

        assessment_id = _new_id()
        now = datetime.now(timezone.utc)
        assessment = Assessment(
            id=assessment_id,
            title=draft.title.strip(),
            description=draft.description.strip(),
            language=draft.language,
            level=draft.level.value,
            category=draft.category,
            duration=draft.duration,
            image_url=draft.imageUrl,
            created_by=str(author_id),
            created_at=now,
            updated_at=now,
        )
        assessment.tags = draft.tags

        try:
            with self._session_factory.begin() as db:
                db.add(assessment)
                db.flush()
                _insert_questions(db, assessment_id, questions)
                record = _to_record(assessment, questions)
        except (SQLAlchemyError, UnknownVariant, VariantMismatch) as exc:
            logger.exception("Failed to create assessment %r", draft.title)
            raise CreateFailed("Failed to create assessment") from exc

        logger.info(
            "Created assessment %s with %d questions by %s",
            assessment_id,
            len(questions),
            author_id,
        )
        return record

    def replace_questions(
        self,
        assessment_id: str,
        drafts: Sequence[QuestionDraft],
        requester_id: str | None = None,
        is_admin: bool = False,
    ) -> AssessmentRecord:
        """Replace the whole question set; order indices become 0..N-1."""
        return self.update(
            assessment_id,
            AssessmentUpdate(questions=list(drafts)),
            requester_id=requester_id,
            is_admin=is_admin,
        )

    def update(
        self,
        assessment_id: str,
        changes: AssessmentUpdate,
        requester_id: str | None = None,
        is_admin: bool = False,
    ) -> AssessmentRecord:
        """Update provided metadata fields and, if given, replace the questions."""
        fields = changes.model_dump(exclude_unset=True, exclude={"questions"})
        try:
            with self._session_factory.begin() as db:
                assessment = self._get_for_edit(db, assessment_id, requester_id, is_admin)
                for key, value in fields.items():
                    if value is None and key in {"language", "level"}:
                        continue
                    if key == "tags":
                        assessment.tags = value
                    elif key == "imageUrl":
                        assessment.image_url = value
                    elif key == "level":
                        assessment.level = value.value
                    elif key in {"title", "description"}:
                        setattr(assessment, key, (value or "").strip())
                    else:
                        setattr(assessment, key, value)
                _validate_header(assessment.title, assessment.description)
                assessment.updated_at = datetime.now(timezone.utc)

                if changes.questions is not None:
                    existing_ids = set(
                        db.execute(
                            select(AssessmentQuestion.id).where(
                                AssessmentQuestion.assessment_id == assessment_id
                            )
                        ).scalars()
                    )
                    questions = build_questions(changes.questions, reusable_ids=existing_ids)
                    _delete_questions(db, assessment_id)
                    _insert_questions(db, assessment_id, questions)
                    logger.info(
                        "Replaced questions of assessment %s (%d -> %d)",
                        assessment_id,
                        len(existing_ids),
                        len(questions),
                    )
                db.flush()
                record = _to_record(assessment, load_questions(db, assessment_id))
        except SQLAlchemyError as exc:
            logger.exception("Failed to update assessment %s", assessment_id)
            raise StorageError("Failed to update assessment") from exc
        return record

    def delete(
        self,
        assessment_id: str,
        requester_id: str | None = None,
        is_admin: bool = False,
    ) -> None:
        """Delete an assessment with its questions, attempts and answers."""
        try:
            with self._session_factory.begin() as db:
                self._get_for_edit(db, assessment_id, requester_id, is_admin)
                attempt_ids = select(Attempt.id).where(Attempt.assessment_id == assessment_id)
                db.execute(
                    delete(AttemptAnswer)
                    .where(AttemptAnswer.attempt_id.in_(attempt_ids))
                    .execution_options(synchronize_session=False)
                )
                db.execute(
                    delete(Attempt)
                    .where(Attempt.assessment_id == assessment_id)
                    .execution_options(synchronize_session=False)
                )
                _delete_questions(db, assessment_id)
                db.execute(
                    delete(Assessment)
                    .where(Assessment.id == assessment_id)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete assessment %s", assessment_id)
            raise StorageError("Failed to delete assessment") from exc
        logger.info("Deleted assessment %s", assessment_id)

    def get(self, assessment_id: str) -> AssessmentRecord:
        """Get assessment with its decoded questions."""
        try:
            with self._session_factory() as db:
                assessment = db.get(Assessment, assessment_id)
                if assessment is None:
                    raise NotFoundError("Assessment not found")
                return _to_record(assessment, load_questions(db, assessment_id))
        except SQLAlchemyError as exc:
            logger.exception("Failed to load assessment %s", assessment_id)
            raise StorageError("Failed to load assessment") from exc

    def list(self, created_by: str | None = None) -> list[AssessmentRecord]:
        """List assessments newest first, with question counts."""
        counts = (
            select(
                AssessmentQuestion.assessment_id,
                func.count(AssessmentQuestion.id).label("question_count"),
            )
            .group_by(AssessmentQuestion.assessment_id)
            .subquery()
        )
        query = (
            select(Assessment, func.coalesce(counts.c.question_count, 0))
            .outerjoin(counts, counts.c.assessment_id == Assessment.id)
            .order_by(Assessment.created_at.desc())
        )
        if created_by is not None:
            query = query.where(Assessment.created_by == str(created_by))

        try:
            with self._session_factory() as db:
                return [
                    _to_record(assessment, question_count=count)
                    for assessment, count in db.execute(query).all()
                ]
        except SQLAlchemyError as exc:
            logger.exception("Failed to list assessments")
            raise StorageError("Failed to list assessments") from exc

    @staticmethod
    def _get_for_edit(
        db: DBSession,
        assessment_id: str,
        requester_id: str | None,
        is_admin: bool,
    ) -> Assessment:
        assessment = db.get(Assessment, assessment_id)
        if assessment is None:
            raise NotFoundError("Assessment not found")
        if requester_id is not None and not is_admin and assessment.created_by != str(requester_id):
            raise ForbiddenError("Permission denied")
        return assessment
