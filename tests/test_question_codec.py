from types import SimpleNamespace

import pytest

from assessment_api.errors import UnknownVariant, VariantMismatch
from assessment_api.models.db.assessment import (
    FlashcardWord,
    MatchingItem,
    MultipleChoiceQuestion,
)
from assessment_api.models.questions import (
    ChoiceItem,
    Flashcard,
    MatchPair,
    Question,
    QuestionVariant,
)
from assessment_api.services import question_codec


def _choice_question() -> Question:
    return Question(
        id="q1",
        variant=QuestionVariant.MULTIPLE_CHOICE,
        title="Pick one",
        order=2,
        choices=(
            ChoiceItem(id="i1", text="Colour?", options=("red", "blue"), correct_answer="red"),
        ),
    )


def test_encode_splits_base_row_and_child_rows() -> None:
    encoded = question_codec.encode(_choice_question())

    assert encoded.base_row == {
        "id": "q1",
        "question_type": "multiple-choice",
        "title": "Pick one",
        "instructions": None,
        "order_index": 2,
    }
    assert encoded.child_model is MultipleChoiceQuestion
    assert encoded.child_rows == [
        {
            "id": "i1",
            "text": "Colour?",
            "options_json": '["red", "blue"]',
            "correct_answer": "red",
            "question_id": "q1",
            "position": 0,
        }
    ]


def test_encode_rejects_foreign_payload() -> None:
    question = _choice_question()
    question.pairs = (MatchPair(id="p1", term="cat", translation="gato"),)
    with pytest.raises(VariantMismatch):
        question_codec.encode(question)


def test_encode_rejects_missing_gradable_payload() -> None:
    question = Question(id="q2", variant=QuestionVariant.MATCHING, title="Match")
    with pytest.raises(VariantMismatch):
        question_codec.encode(question)


def test_encode_allows_empty_flashcards() -> None:
    question = Question(id="q3", variant=QuestionVariant.FLASHCARDS, title="Words")
    encoded = question_codec.encode(question)
    assert encoded.child_model is FlashcardWord
    assert encoded.child_rows == []


def test_unknown_variant_is_not_coerced() -> None:
    question = Question(id="q4", variant="essay", title="Write")
    with pytest.raises(UnknownVariant):
        question_codec.encode(question)


def _base_row(variant: str, question_id: str = "q1") -> SimpleNamespace:
    return SimpleNamespace(
        id=question_id,
        question_type=variant,
        title="Match",
        instructions="Pair them up",
        order_index=0,
    )


def test_decode_orders_items_by_position() -> None:
    rows = [
        SimpleNamespace(id="p2", term="dog", translation="perro", position=1),
        SimpleNamespace(id="p1", term="cat", translation="gato", position=0),
    ]
    question = question_codec.decode(_base_row("matching"), {QuestionVariant.MATCHING: rows})

    assert question.variant is QuestionVariant.MATCHING
    assert [pair.id for pair in question.pairs] == ["p1", "p2"]
    assert question.choices is None
    assert question.sentences is None
    assert question.cards is None


def test_decode_rejects_rows_of_other_variant() -> None:
    rows = {
        "matching": [SimpleNamespace(id="p1", term="cat", translation="gato", position=0)],
        "fill-in-blank": [SimpleNamespace(id="s1", text="I ___", answer="am", position=0)],
    }
    with pytest.raises(VariantMismatch):
        question_codec.decode(_base_row("matching"), rows)


def test_decode_rejects_gradable_question_without_rows() -> None:
    with pytest.raises(VariantMismatch):
        question_codec.decode(_base_row("fill-in-blank"), {})


def test_decode_unknown_variant() -> None:
    with pytest.raises(UnknownVariant):
        question_codec.decode(_base_row("essay"), {})


def test_decode_restores_choice_options() -> None:
    rows = [
        SimpleNamespace(
            id="i1",
            text="Colour?",
            options_json='["red", "blue"]',
            correct_answer="red",
            position=0,
        )
    ]
    question = question_codec.decode(
        _base_row("multiple-choice"), {QuestionVariant.MULTIPLE_CHOICE: rows}
    )
    assert question.choices == (
        ChoiceItem(id="i1", text="Colour?", options=("red", "blue"), correct_answer="red"),
    )


def test_payload_tables_cover_every_variant() -> None:
    tables = question_codec.payload_tables()
    assert set(tables) == set(QuestionVariant)
    assert tables[QuestionVariant.MATCHING] is MatchingItem


def test_to_payload_strips_answers() -> None:
    payload = question_codec.to_payload(_choice_question(), include_answers=False)
    assert payload["type"] == "multiple-choice"
    assert payload["questions"] == [{"id": "i1", "text": "Colour?", "options": ["red", "blue"]}]


def test_to_payload_matching_lists_translations_separately() -> None:
    question = Question(
        id="q5",
        variant=QuestionVariant.MATCHING,
        title="Match",
        pairs=(
            MatchPair(id="p1", term="dog", translation="perro"),
            MatchPair(id="p2", term="cat", translation="gato"),
        ),
    )
    payload = question_codec.to_payload(question, include_answers=False)
    assert payload["matchItems"] == [{"id": "p1", "term": "dog"}, {"id": "p2", "term": "cat"}]
    assert payload["translations"] == ["gato", "perro"]


def test_to_payload_keeps_flashcard_translation() -> None:
    question = Question(
        id="q6",
        variant=QuestionVariant.FLASHCARDS,
        title="Words",
        cards=(Flashcard(id="w1", term="house", translation="casa"),),
    )
    payload = question_codec.to_payload(question, include_answers=False)
    assert payload["words"][0]["translation"] == "casa"
