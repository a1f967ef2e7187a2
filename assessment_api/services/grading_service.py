"""Grading rules per question variant and score aggregation.

Pure computation over decoded questions; no storage access.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from assessment_api.models.questions import (
    ChoiceItem,
    GradedAttempt,
    Question,
    QuestionGrade,
    QuestionVariant,
    SubmittedAnswer,
)
from assessment_api.services.question_codec import coerce_variant

logger = logging.getLogger(__name__)

_CORRECT_MARKER = re.compile(r"\s*\(correct\)\s*$", re.IGNORECASE)


def normalize_text(value: str | None) -> str:
    """Lower-case and trim."""
    return (value or "").lower().strip()


def normalize_choice(value: str | None) -> str:
    """Drop a trailing "(correct)" marker, then lower-case and trim."""
    return _CORRECT_MARKER.sub("", value or "").lower().strip()


def _matches_option_index(options: Sequence[str], expected: str, submitted: str) -> bool:
    """
    Secondary multiple-choice check: the answer may be the 0-based position
    of the correct option instead of its text.

    A missing correct option or a non-integer answer fails the check
    without raising.
    """
    normalized_options = [normalize_choice(option) for option in options]
    try:
        correct_index = normalized_options.index(expected)
        return int(submitted.strip()) == correct_index
    except ValueError:
        return False


def _choice_matches(item: ChoiceItem, submitted: str) -> bool:
    expected = normalize_choice(item.correct_answer)
    if not expected:
        return False
    if normalize_choice(submitted) == expected:
        return True
    return _matches_option_index(item.options, expected, submitted)


@dataclass(frozen=True)
class _Rule:
    expected: Callable[[Any], str]
    matches: Callable[[Any, str], bool]
    # Without an item id, grade against the first payload item
    first_item_fallback: bool


_RULES: dict[QuestionVariant, _Rule | None] = {
    QuestionVariant.MULTIPLE_CHOICE: _Rule(
        expected=lambda item: item.correct_answer,
        matches=_choice_matches,
        first_item_fallback=True,
    ),
    QuestionVariant.FILL_IN_BLANK: _Rule(
        expected=lambda item: item.answer,
        matches=lambda item, submitted: normalize_text(submitted) == normalize_text(item.answer),
        first_item_fallback=True,
    ),
    QuestionVariant.MATCHING: _Rule(
        expected=lambda item: item.translation,
        matches=lambda item, submitted: (
            normalize_text(submitted) == normalize_text(item.translation)
        ),
        first_item_fallback=False,
    ),
    QuestionVariant.FLASHCARDS: None,
}


def _target_item(question: Question, rule: _Rule, item_id: str | None):
    item = question.find_item(item_id)
    if item is None and rule.first_item_fallback and question.items:
        item = question.items[0]
    return item


def expected_answer(question: Question, item_id: str | None = None) -> str | None:
    """Correct answer the submission is graded against, ``None`` if ungraded."""
    rule = _RULES[coerce_variant(question.variant)]
    if rule is None:
        return None
    item = _target_item(question, rule, item_id)
    return rule.expected(item) if item is not None else None


def grade_answer(question: Question, answer: SubmittedAnswer | None) -> bool | None:
    """
    Decide correctness of one answer.

    Returns ``None`` for ungraded (flashcard) questions, ``False`` for
    gradable questions left unanswered.
    """
    rule = _RULES[coerce_variant(question.variant)]
    if rule is None:
        return None
    if answer is None or answer.answer is None:
        return False
    item = _target_item(question, rule, answer.item_id)
    if item is None:
        return False
    return rule.matches(item, answer.answer)


def score_percent(correct_count: int, total_gradable: int) -> int:
    """Percentage rounded half-up; 0 when nothing is gradable."""
    if total_gradable <= 0:
        return 0
    return (correct_count * 200 + total_gradable) // (2 * total_gradable)


def grade_submission(
    questions: Sequence[Question],
    answers: Iterable[SubmittedAnswer],
) -> GradedAttempt:
    """Grade every question of an assessment against the submitted answers."""
    question_ids = {question.id for question in questions}
    submitted: dict[str, SubmittedAnswer] = {}
    for answer in answers:
        if answer.question_id not in question_ids:
            logger.warning("Ignoring answer for unknown question %s", answer.question_id)
            continue
        submitted[answer.question_id] = answer

    grades = []
    for question in questions:
        answer = submitted.get(question.id)
        grades.append(
            QuestionGrade(
                question_id=question.id,
                variant=coerce_variant(question.variant),
                answer=answer.answer if answer else None,
                item_id=answer.item_id if answer else None,
                is_correct=grade_answer(question, answer),
            )
        )

    total_gradable = sum(1 for grade in grades if grade.variant.is_gradable)
    correct_count = sum(1 for grade in grades if grade.is_correct is True)
    return GradedAttempt(
        score_percent=score_percent(correct_count, total_gradable),
        correct_count=correct_count,
        total_gradable=total_gradable,
        grades=grades,
    )
