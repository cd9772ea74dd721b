# models/score_cell.py

"""
Represents one student-question grading slot in the score matrix.

Each `ScoreCell` is keyed by `(student_id, question_id)` and holds either an integer score
or None when the question has not been graded yet for that student.

Includes functionality for:
- Bounded score validation against a question's full score
- Parsing raw text typed into a score field
- Serializing to and from JSON-compatible dictionaries

Notes:
- Out-of-range scores are coerced to None (absent) rather than clamped. A clamped value would
  look like a valid grade that nobody entered.
- Cells are created and owned by the Gradebook; they are never deleted individually, only
  cleared back to None.
"""

from __future__ import annotations

from typing import Any


class ScoreCell:

    def __init__(
        self,
        student_id: str,
        question_id: int,
        score: int | None = None,
    ):
        self._student_id = student_id
        self._question_id = question_id
        self._score = score

    # === properties ===

    @property
    def key(self) -> tuple[str, int]:
        return (self._student_id, self._question_id)

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def question_id(self) -> int:
        return self._question_id

    @property
    def score(self) -> int | None:
        return self._score

    @property
    def is_graded(self) -> bool:
        return self._score is not None

    def set_score(self, score: Any, full_score: int) -> None:
        self._score = ScoreCell.coerce_score(score, full_score)

    def clear(self) -> None:
        self._score = None

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "student_id": self._student_id,
            "question_id": self._question_id,
            "score": self._score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScoreCell:
        score = data.get("score")

        if score is not None and (isinstance(score, bool) or not isinstance(score, int)):
            raise TypeError(f"Score must be an integer or null, got {score!r}.")

        student_id = data["student_id"]
        question_id = data["question_id"]

        if not isinstance(student_id, str):
            raise TypeError(f"Score student_id must be a string, got {student_id!r}.")

        if isinstance(question_id, bool) or not isinstance(question_id, int):
            raise TypeError(f"Score question_id must be an integer, got {question_id!r}.")

        return cls(
            student_id=student_id,
            question_id=question_id,
            score=score,
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"ScoreCell({self._student_id}, {self._question_id}, {self._score})"

    def __str__(self) -> str:
        score = "[UNGRADED]" if self._score is None else self._score
        return f"SCORE: student id: {self._student_id}, question id: {self._question_id}, score: {score}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScoreCell):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # === data validators ===

    @staticmethod
    def coerce_score(score: Any, full_score: int) -> int | None:
        """
        Normalizes a score against the bounds of its question.

        Args:
            score (Any): The candidate score. None clears the cell.
            full_score (int): The maximum raw score of the linked question.

        Returns:
            The score as an int if it is an integer within `[0, full_score]`, otherwise None.

        Notes:
            - Never raises; anything that is not a valid in-range integer becomes None.
            - Integer-valued floats (e.g. 7.0) are accepted.
        """
        if score is None or isinstance(score, bool):
            return None

        if isinstance(score, float):
            if not score.is_integer():
                return None
            score = int(score)

        if not isinstance(score, int):
            return None

        if score < 0 or score > full_score:
            return None

        return score

    @staticmethod
    def parse_score_input(raw: str | None, full_score: int) -> int | None:
        """
        Parses raw text from a score field into a bounded score.

        Args:
            raw (str | None): The text exactly as typed.
            full_score (int): The maximum raw score of the linked question.

        Returns:
            The parsed score, or None if the text is blank, not an integer, or out of range.
        """
        if raw is None:
            return None

        text = raw.strip()

        if not text:
            return None

        try:
            value = int(text)

        except ValueError:
            return None

        return ScoreCell.coerce_score(value, full_score)
