# models/rating_bucket.py

"""
Represents a labeled score threshold used to classify final percentages (e.g. "A" at 80 and above).

Buckets are ordered by the Gradebook, highest `min_score` first; see `core.rating` for the
classification rules.
"""

from __future__ import annotations

from typing import Any


class RatingBucket:

    def __init__(self, label: str, min_score: int):
        self.label = label
        self.min_score = min_score

    # === properties ===

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, label: str) -> None:
        if not isinstance(label, str):
            raise TypeError("Invalid input. Rating label must be a string.")
        self._label = label

    @property
    def min_score(self) -> int:
        return self._min_score

    @min_score.setter
    def min_score(self, min_score: int) -> None:
        self._min_score = RatingBucket.validate_min_score_input(min_score)

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "label": self._label,
            "min_score": self._min_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RatingBucket:
        return cls(
            label=data["label"],
            min_score=data["min_score"],
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"RatingBucket({self._label}, {self._min_score})"

    def __str__(self) -> str:
        return f"RATING: label: {self._label}, min score: {self._min_score}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RatingBucket):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # === data validators ===

    @staticmethod
    def validate_min_score_input(min_score: Any) -> int:
        """
        Validates input for a `RatingBucket` threshold.

        Args:
            min_score (Any): The input value to validate.

        Returns:
            The threshold as an int.

        Raises:
            TypeError: If the input is not an integer.
            ValueError: If the input is outside 0 to 100, inclusive.
        """
        if isinstance(min_score, bool) or not isinstance(min_score, int):
            raise TypeError("Invalid input. Rating threshold must be an integer.")

        if min_score < 0 or min_score > 100:
            raise ValueError("Invalid input. Rating threshold must be between 0 and 100.")

        return min_score
