import pytest

from assessment_api.errors import UnknownVariant
from assessment_api.models.questions import (
    BlankSentence,
    ChoiceItem,
    Flashcard,
    MatchPair,
    Question,
    QuestionVariant,
    SubmittedAnswer,
)
from assessment_api.services import grading_service


def _choice(question_id: str, correct: str, options: tuple[str, ...] = ()) -> Question:
    return Question(
        id=question_id,
        variant=QuestionVariant.MULTIPLE_CHOICE,
        title=f"Question {question_id}",
        choices=(ChoiceItem(id=f"{question_id}-i", text="?", options=options, correct_answer=correct),),
    )


def _blank(question_id: str, answer: str) -> Question:
    return Question(
        id=question_id,
        variant=QuestionVariant.FILL_IN_BLANK,
        title="Fill in",
        sentences=(BlankSentence(id=f"{question_id}-s", text="The capital is ___", answer=answer),),
    )


def _matching(question_id: str = "m") -> Question:
    return Question(
        id=question_id,
        variant=QuestionVariant.MATCHING,
        title="Match",
        pairs=(
            MatchPair(id="p1", term="cat", translation="Gato"),
            MatchPair(id="p2", term="dog", translation="perro"),
        ),
    )


def _flashcards(question_id: str = "f") -> Question:
    return Question(
        id=question_id,
        variant=QuestionVariant.FLASHCARDS,
        title="Words",
        cards=(Flashcard(id="w1", term="house", translation="casa"),),
    )


def _answer(question_id: str, text: str | None, item_id: str | None = None) -> SubmittedAnswer:
    return SubmittedAnswer(question_id=question_id, answer=text, item_id=item_id)


def test_normalize_choice_strips_correct_marker() -> None:
    assert grading_service.normalize_choice("  Paris (Correct)  ") == "paris"
    assert grading_service.normalize_choice("Paris(CORRECT)") == "paris"
    assert grading_service.normalize_choice("(correct) Paris") == "(correct) paris"
    assert grading_service.normalize_choice(None) == ""


def test_multiple_choice_text_match_ignores_marker_and_case() -> None:
    question = _choice("q1", "Green (correct)", ("Red", "Blue", "Green (correct)"))
    assert grading_service.grade_answer(question, _answer("q1", "  GREEN ")) is True
    assert grading_service.grade_answer(question, _answer("q1", "green (Correct)")) is True
    assert grading_service.grade_answer(question, _answer("q1", "Blue")) is False


def test_multiple_choice_index_match() -> None:
    question = _choice("q1", "green", ("Red", "Blue", "Green (Correct) "))
    assert grading_service.grade_answer(question, _answer("q1", "2")) is True
    assert grading_service.grade_answer(question, _answer("q1", " 2 ")) is True
    assert grading_service.grade_answer(question, _answer("q1", "1")) is False


def test_multiple_choice_index_parse_failure_is_incorrect() -> None:
    question = _choice("q1", "green", ("Red", "Green"))
    assert grading_service.grade_answer(question, _answer("q1", "second")) is False
    assert grading_service.grade_answer(question, _answer("q1", "1.0")) is False


def test_multiple_choice_correct_option_missing_from_options() -> None:
    question = _choice("q1", "purple", ("Red", "Green"))
    assert grading_service.grade_answer(question, _answer("q1", "0")) is False
    assert grading_service.grade_answer(question, _answer("q1", "Purple")) is True


def test_multiple_choice_without_correct_answer_is_never_correct() -> None:
    question = _choice("q1", "", ("", "Red"))
    assert grading_service.grade_answer(question, _answer("q1", "")) is False
    assert grading_service.grade_answer(question, _answer("q1", "0")) is False


def test_multiple_choice_item_id_selects_item() -> None:
    question = Question(
        id="q1",
        variant=QuestionVariant.MULTIPLE_CHOICE,
        title="Two items",
        choices=(
            ChoiceItem(id="a", text="2+2", options=("3", "4"), correct_answer="4"),
            ChoiceItem(id="b", text="3+3", options=("6", "7"), correct_answer="6"),
        ),
    )
    assert grading_service.grade_answer(question, _answer("q1", "6", item_id="b")) is True
    assert grading_service.grade_answer(question, _answer("q1", "6")) is False
    assert grading_service.expected_answer(question, "b") == "6"
    assert grading_service.expected_answer(question) == "4"


def test_fill_in_blank_case_and_whitespace_insensitive() -> None:
    question = _blank("b1", "paris")
    assert grading_service.grade_answer(question, _answer("b1", "  Paris ")) is True
    assert grading_service.grade_answer(question, _answer("b1", "pariss")) is False


def test_matching_uses_term_id() -> None:
    question = _matching()
    assert grading_service.grade_answer(question, _answer("m", " gato ", item_id="p1")) is True
    assert grading_service.grade_answer(question, _answer("m", "gato", item_id="p2")) is False
    assert grading_service.grade_answer(question, _answer("m", "gato")) is False
    assert grading_service.grade_answer(question, _answer("m", "gato", item_id="zz")) is False
    assert grading_service.expected_answer(question) is None


def test_flashcards_are_never_graded() -> None:
    question = _flashcards()
    assert grading_service.grade_answer(question, _answer("f", "casa")) is None
    assert grading_service.grade_answer(question, None) is None
    assert grading_service.expected_answer(question) is None


def test_unanswered_gradable_question_is_incorrect() -> None:
    question = _blank("b1", "paris")
    assert grading_service.grade_answer(question, None) is False
    assert grading_service.grade_answer(question, _answer("b1", None)) is False


def test_unknown_variant_raises() -> None:
    question = Question(id="x", variant="essay", title="Essay")
    with pytest.raises(UnknownVariant):
        grading_service.grade_answer(question, _answer("x", "text"))


@pytest.mark.parametrize(
    ("correct", "total", "expected"),
    [(0, 0, 0), (1, 2, 50), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 8, 38), (4, 4, 100)],
)
def test_score_percent_rounds_half_up(correct: int, total: int, expected: int) -> None:
    assert grading_service.score_percent(correct, total) == expected


def test_two_multiple_choice_scenario() -> None:
    questions = [_choice("q1", "4", ("3", "4", "5")), _choice("q2", "Yes", ("Yes", "No"))]
    graded = grading_service.grade_submission(
        questions, [_answer("q1", "4"), _answer("q2", "no")]
    )
    assert graded.score_percent == 50
    assert graded.correct_count == 1
    assert graded.total_gradable == 2
    assert graded.per_question == {"q1": True, "q2": False}


def test_flashcards_only_scores_zero() -> None:
    graded = grading_service.grade_submission([_flashcards()], [_answer("f", "casa")])
    assert graded.score_percent == 0
    assert graded.total_gradable == 0
    assert graded.correct_count == 0
    assert graded.per_question == {"f": None}


def test_submission_ignores_unknown_questions_and_keeps_last_duplicate() -> None:
    questions = [_blank("b1", "paris"), _flashcards()]
    graded = grading_service.grade_submission(
        questions,
        [
            _answer("nope", "paris"),
            _answer("b1", "london"),
            _answer("b1", "Paris"),
        ],
    )
    assert [grade.question_id for grade in graded.grades] == ["b1", "f"]
    assert graded.grades[0].answer == "Paris"
    assert graded.score_percent == 100
    assert graded.grades[1].answer is None
    assert graded.grades[1].is_correct is None
