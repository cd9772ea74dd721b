# tests/test_aggregation.py

import pytest

from core.aggregation import compute_completion, compute_final, total_weight
from models.question import Question


@pytest.fixture
def questions():
    return [
        Question(1, "Warm-up", 10, 1.0),
        Question(2, "Essay", 20, 3.0),
    ]


def test_compute_final_weighted_average(questions):
    assert compute_final(questions, {1: 8, 2: 15}) == pytest.approx(76.25)


def test_compute_final_perfect_and_zero(questions):
    assert compute_final(questions, {1: 10, 2: 20}) == pytest.approx(100.0)
    assert compute_final(questions, {1: 0, 2: 0}) == pytest.approx(0.0)


def test_ungraded_weighted_question_is_undefined(questions):
    assert compute_final(questions, {1: 8, 2: None}) is None
    assert compute_final(questions, {1: 8}) is None
    assert not compute_completion(questions, {1: 8})


def test_zero_weight_question_is_ignored(questions):
    questions.append(Question(3, "Survey", 5, 0))

    assert compute_final(questions, {1: 8, 2: 15}) == pytest.approx(76.25)
    assert compute_completion(questions, {1: 8, 2: 15, 3: None})


def test_no_weighted_questions_is_undefined():
    questions = [Question(1, "Survey", 5, 0)]

    assert compute_final(questions, {1: 5}) is None
    assert compute_final([], {}) is None


def test_zero_full_score_weighted_question_is_undefined(questions):
    questions.append(Question(3, "Attendance", 0, 1.0))

    assert compute_final(questions, {1: 10, 2: 20, 3: 0}) is None


def test_order_of_questions_does_not_matter(questions):
    scores = {1: 3, 2: 17}

    assert compute_final(questions, scores) == compute_final(list(reversed(questions)), scores)


def test_total_weight(questions):
    questions.append(Question(3, "Survey", 5, 0))

    assert total_weight(questions) == pytest.approx(4.0)
