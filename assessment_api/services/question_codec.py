"""Translate tagged questions to and from their storage rows.

Each variant is registered once in ``PAYLOAD_SHAPES`` with its table and
its row/item converters; nothing else in the service branches on the tag
to find out where a payload lives.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from assessment_api.errors import UnknownVariant, VariantMismatch
from assessment_api.models.db.assessment import (
    AssessmentQuestion,
    FillInBlankSentence,
    FlashcardWord,
    MatchingItem,
    MultipleChoiceQuestion,
)
from assessment_api.models.questions import (
    BlankSentence,
    ChoiceItem,
    Flashcard,
    MatchPair,
    Question,
    QuestionVariant,
)


@dataclass(frozen=True)
class PayloadShape:
    model: type
    field: str  # payload attribute on Question
    to_row: Callable[[Any], dict[str, Any]]
    from_row: Callable[[Any], Any]
    to_payload: Callable[[Any, bool], dict[str, Any]]
    payload_key: str  # JSON key used by the API


@dataclass
class EncodedQuestion:
    base_row: dict[str, Any]
    child_model: type
    child_rows: list[dict[str, Any]]


def _choice_payload(item: ChoiceItem, include_answers: bool) -> dict[str, Any]:
    payload = {"id": item.id, "text": item.text, "options": list(item.options)}
    if include_answers:
        payload["correctAnswer"] = item.correct_answer
    return payload


def _sentence_payload(item: BlankSentence, include_answers: bool) -> dict[str, Any]:
    payload = {"id": item.id, "text": item.text}
    if include_answers:
        payload["answer"] = item.answer
    return payload


def _pair_payload(item: MatchPair, include_answers: bool) -> dict[str, Any]:
    payload = {"id": item.id, "term": item.term}
    if include_answers:
        payload["translation"] = item.translation
    return payload


PAYLOAD_SHAPES: dict[QuestionVariant, PayloadShape] = {
    QuestionVariant.MULTIPLE_CHOICE: PayloadShape(
        model=MultipleChoiceQuestion,
        field="choices",
        to_row=lambda item: {
            "id": item.id,
            "text": item.text,
            "options_json": json.dumps(list(item.options), ensure_ascii=False),
            "correct_answer": item.correct_answer,
        },
        from_row=lambda row: ChoiceItem(
            id=row.id,
            text=row.text,
            options=tuple(json.loads(row.options_json or "[]")),
            correct_answer=row.correct_answer or "",
        ),
        to_payload=_choice_payload,
        payload_key="questions",
    ),
    QuestionVariant.MATCHING: PayloadShape(
        model=MatchingItem,
        field="pairs",
        to_row=lambda item: {
            "id": item.id,
            "term": item.term,
            "translation": item.translation,
        },
        from_row=lambda row: MatchPair(id=row.id, term=row.term, translation=row.translation),
        to_payload=_pair_payload,
        payload_key="matchItems",
    ),
    QuestionVariant.FILL_IN_BLANK: PayloadShape(
        model=FillInBlankSentence,
        field="sentences",
        to_row=lambda item: {"id": item.id, "text": item.text, "answer": item.answer},
        from_row=lambda row: BlankSentence(id=row.id, text=row.text, answer=row.answer),
        to_payload=_sentence_payload,
        payload_key="sentences",
    ),
    QuestionVariant.FLASHCARDS: PayloadShape(
        model=FlashcardWord,
        field="cards",
        to_row=lambda item: {
            "id": item.id,
            "term": item.term,
            "translation": item.translation,
            "example": item.example,
        },
        from_row=lambda row: Flashcard(
            id=row.id, term=row.term, translation=row.translation, example=row.example
        ),
        to_payload=lambda item, include_answers: {
            "id": item.id,
            "term": item.term,
            "translation": item.translation,
            "example": item.example,
        },
        payload_key="words",
    ),
}


def payload_tables() -> dict[QuestionVariant, type]:
    """Child table model per variant."""
    return {variant: shape.model for variant, shape in PAYLOAD_SHAPES.items()}


def coerce_variant(value: QuestionVariant | str) -> QuestionVariant:
    """Resolve a variant tag, raising ``UnknownVariant`` for unregistered tags."""
    try:
        variant = QuestionVariant(value)
    except ValueError:
        raise UnknownVariant(f"Unknown question variant: {value!r}") from None
    if variant not in PAYLOAD_SHAPES:
        raise UnknownVariant(f"Unknown question variant: {value!r}")
    return variant


def encode(question: Question) -> EncodedQuestion:
    """Split a tagged question into its base row and child table rows."""
    variant = coerce_variant(question.variant)
    shape = PAYLOAD_SHAPES[variant]

    populated = question.populated_payloads()
    foreign = [key.value for key in populated if key is not variant]
    if foreign:
        raise VariantMismatch(
            f"Question {question.id} is {variant.value} but carries {', '.join(foreign)} payload"
        )
    items = populated.get(variant)
    if items is None:
        if variant.is_gradable:
            raise VariantMismatch(f"Question {question.id} has no {variant.value} payload")
        items = ()

    base_row = {
        "id": question.id,
        "question_type": variant.value,
        "title": question.title,
        "instructions": question.instructions,
        "order_index": question.order,
    }
    child_rows = []
    for position, item in enumerate(items):
        row = shape.to_row(item)
        row["question_id"] = question.id
        row["position"] = position
        child_rows.append(row)
    return EncodedQuestion(base_row=base_row, child_model=shape.model, child_rows=child_rows)


def decode(
    base_row: AssessmentQuestion,
    child_rows: Mapping[QuestionVariant | str, Sequence[Any]],
) -> Question:
    """Rebuild a tagged question from its base row and child rows by variant."""
    variant = coerce_variant(base_row.question_type)

    grouped: dict[QuestionVariant, list[Any]] = {}
    for key, rows in child_rows.items():
        grouped.setdefault(coerce_variant(key), []).extend(rows)

    foreign = sorted(key.value for key, rows in grouped.items() if rows and key is not variant)
    if foreign:
        raise VariantMismatch(
            f"Question {base_row.id} is {variant.value} but has {', '.join(foreign)} rows"
        )

    variant_rows = sorted(grouped.get(variant, []), key=lambda row: row.position)
    if not variant_rows and variant.is_gradable:
        raise VariantMismatch(f"Question {base_row.id} has no {variant.value} rows")

    shape = PAYLOAD_SHAPES[variant]
    payload = tuple(shape.from_row(row) for row in variant_rows)
    return Question(
        id=base_row.id,
        variant=variant,
        title=base_row.title,
        instructions=base_row.instructions,
        order=base_row.order_index,
        **{shape.field: payload},
    )


def to_payload(question: Question, include_answers: bool = True) -> dict[str, Any]:
    """API representation of a question; answers are stripped when requested."""
    variant = coerce_variant(question.variant)
    shape = PAYLOAD_SHAPES[variant]
    payload: dict[str, Any] = {
        "id": question.id,
        "type": variant.value,
        "title": question.title,
        "instructions": question.instructions,
        "order": question.order,
        shape.payload_key: [shape.to_payload(item, include_answers) for item in question.items],
    }
    if variant is QuestionVariant.MATCHING and not include_answers:
        payload["translations"] = sorted(pair.translation for pair in question.items)
    return payload
