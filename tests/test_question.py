# tests/test_question.py

import math

import pytest

from models.question import Question


def test_question_to_dict(sample_question):
    assert sample_question.to_dict() == {
        "id": 1,
        "name": "Warm-up",
        "full_score": 10,
        "weight": 1.0,
        "comment": "short answers",
    }


def test_question_from_dict_defaults_comment():
    question = Question.from_dict({"id": 3, "name": "Proof", "full_score": 25, "weight": 2})

    assert question.id == 3
    assert question.weight == 2.0
    assert question.comment == ""


def test_question_to_str(sample_question):
    assert (
        sample_question.__str__()
        == "QUESTION: id: 1, name: Warm-up, full score: 10, weight: 1.0"
    )


def test_question_numeric_strings_are_normalized():
    question = Question("4", "Essay", "20", "1.5")

    assert question.id == 4
    assert question.full_score == 20
    assert question.weight == 1.5


def test_zero_weight_is_not_weighted(sample_question):
    assert sample_question.is_weighted

    sample_question.weight = 0
    assert not sample_question.is_weighted


@pytest.mark.parametrize("bad_weight", [-0.5, math.inf, math.nan])
def test_question_rejects_invalid_weight(sample_question, bad_weight):
    with pytest.raises(ValueError):
        sample_question.weight = bad_weight

    assert sample_question.weight == 1.0


@pytest.mark.parametrize("bad_weight", ["heavy", None, True])
def test_question_rejects_non_numeric_weight(sample_question, bad_weight):
    with pytest.raises(TypeError):
        sample_question.weight = bad_weight


def test_question_rejects_negative_full_score(sample_question):
    with pytest.raises(ValueError):
        sample_question.full_score = -1


@pytest.mark.parametrize("bad_score", [7.5, "ten", True])
def test_question_rejects_non_integer_full_score(sample_question, bad_score):
    with pytest.raises(TypeError):
        sample_question.full_score = bad_score


def test_question_allows_zero_full_score(sample_question):
    sample_question.full_score = 0
    assert sample_question.full_score == 0


def test_question_rejects_empty_name():
    with pytest.raises(ValueError):
        Question(1, " ", 10)


def test_question_none_comment_becomes_empty(sample_question):
    sample_question.comment = None
    assert sample_question.comment == ""
