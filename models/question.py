# models/question.py

"""
The Question model represents one gradable item on the exam sheet.

Each `Question` carries the maximum raw score (`full_score`) and a `weight` used when the
weighted final percentage is calculated. A weight of 0 excludes the question from the
weighted sum entirely; it can still be graded and displayed.

Notes:
- All numeric validation is handled through the static validators and enforced via the setters.
- The `id` is a non-negative integer and is never changed after creation.
"""

from __future__ import annotations

import math
from typing import Any


class Question:

    def __init__(
        self,
        id: int,
        name: str,
        full_score: int,
        weight: float = 1.0,
        comment: str = "",
    ):
        self._id = Question.validate_id_input(id)
        # remaining fields use setter methods for validation
        self.name = name
        self.full_score = full_score
        self.weight = weight
        self.comment = comment

    # === properties ===

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = Question.validate_name_input(name)

    @property
    def full_score(self) -> int:
        return self._full_score

    @full_score.setter
    def full_score(self, full_score: int) -> None:
        self._full_score = Question.validate_full_score_input(full_score)

    @property
    def weight(self) -> float:
        return self._weight

    @weight.setter
    def weight(self, weight: float) -> None:
        self._weight = Question.validate_weight_input(weight)

    @property
    def comment(self) -> str:
        return self._comment

    @comment.setter
    def comment(self, comment: str | None) -> None:
        self._comment = "" if comment is None else str(comment)

    @property
    def is_weighted(self) -> bool:
        return self._weight > 0

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "name": self._name,
            "full_score": self._full_score,
            "weight": self._weight,
            "comment": self._comment,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        return cls(
            id=data["id"],
            name=data["name"],
            full_score=data["full_score"],
            weight=data["weight"],
            comment=data.get("comment", ""),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Question({self._id}, {self._name}, {self._full_score}, {self._weight}, {self._comment!r})"

    def __str__(self) -> str:
        return f"QUESTION: id: {self._id}, name: {self._name}, full score: {self._full_score}, weight: {self._weight}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Question):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # === data validators ===

    @staticmethod
    def validate_id_input(id: Any) -> int:
        """
        Validates a `Question` ID.

        Args:
            id (Any): The input value to validate. Integer-valued strings are accepted.

        Returns:
            The normalized ID (int).

        Raises:
            TypeError: If the input cannot be read as an integer.
            ValueError: If the input is negative.
        """
        id = Question._coerce_int(id, "Question ID")

        if id < 0:
            raise ValueError("Invalid input. Question ID cannot be less than zero.")

        return id

    @staticmethod
    def validate_name_input(name: Any) -> str:
        if not isinstance(name, str):
            raise TypeError("Invalid input. Question name must be a string.")

        if not name.strip():
            raise ValueError("Invalid input. Question name cannot be empty.")

        return name

    @staticmethod
    def validate_full_score_input(full_score: Any) -> int:
        """
        Validates and normalizes input for a `Question` full_score value.

        Accepts any input, and then:
            - Casts to int (integer-valued floats and strings are accepted).
            - Ensures it is non-negative.

        Args:
            full_score (Any): The input value to validate.

        Returns:
            The normalized full score (int).

        Raises:
            TypeError: If the input cannot be read as an integer.
            ValueError: If the input is less than zero.
        """
        full_score = Question._coerce_int(full_score, "Full score")

        if full_score < 0:
            raise ValueError("Invalid input. Full score cannot be less than zero.")

        return full_score

    @staticmethod
    def validate_weight_input(weight: Any) -> float:
        """
        Validates and normalizes input for a `Question` weight.

        Accepts any input, and then:
            - Casts to float.
            - Ensures the number is finite.
            - Ensures it is non-negative.

        Args:
            weight (Any): The input value to validate.

        Returns:
            The normalized weight value (float).

        Raises:
            TypeError: If the input cannot be cast to float.
            ValueError: If the input is non-finite or less than zero.
        """
        if isinstance(weight, bool):
            raise TypeError("Invalid input. Weight must be a number.")

        try:
            weight = float(weight)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Weight must be a number.") from None

        if not math.isfinite(weight):
            raise ValueError("Invalid input. Weight must be a finite number.")

        if weight < 0:
            raise ValueError("Invalid input. Weight cannot be less than zero.")

        return weight

    # === helper methods ===

    @staticmethod
    def _coerce_int(value: Any, label: str) -> int:
        if isinstance(value, bool):
            raise TypeError(f"Invalid input. {label} must be an integer.")

        if isinstance(value, float):
            if not value.is_integer():
                raise TypeError(f"Invalid input. {label} must be an integer.")
            return int(value)

        try:
            return int(str(value).strip()) if isinstance(value, str) else int(value)

        except (TypeError, ValueError):
            raise TypeError(f"Invalid input. {label} must be an integer.") from None
