# core/aggregation.py

"""
Weighted final-score calculation for a single student.

    final = sum(score / full_score * weight) / sum(weight) * 100

taken over the questions with a positive weight. Questions with weight 0 are skipped in
both sums. The result is None (undefined) when:
    - no question carries a positive weight,
    - any weighted question is ungraded for the student,
    - any weighted question has a full score of 0.

These functions are pure: they read only the question list and the student's score
mapping, so the result does not depend on the order records were added.
"""

from collections.abc import Iterable, Mapping

from models.question import Question


def total_weight(questions: Iterable[Question]) -> float:
    return sum(q.weight for q in questions if q.is_weighted)


def compute_final(
    questions: Iterable[Question],
    scores: Mapping[int, int | None],
) -> float | None:
    """
    Calculates the weighted final percentage for one student.

    Args:
        questions (Iterable[Question]): Every question in the gradebook.
        scores (Mapping[int, int | None]): The student's scores keyed by question ID. Missing keys count as ungraded.

    Returns:
        The final percentage as a float in `[0, 100]`, or None if it is undefined.

    Notes:
        - No rounding is applied.
    """
    weighted = [q for q in questions if q.is_weighted]
    weight_sum = total_weight(weighted)

    if weight_sum <= 0:
        return None

    weighted_rate_sum = 0.0

    for question in weighted:
        score = scores.get(question.id)

        if score is None or question.full_score <= 0:
            return None

        rate = score / question.full_score
        weighted_rate_sum += rate * question.weight

    return weighted_rate_sum / weight_sum * 100


def compute_completion(
    questions: Iterable[Question],
    scores: Mapping[int, int | None],
) -> bool:
    return compute_final(questions, scores) is not None
