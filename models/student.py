# models/student.py

"""
Represents a student whose answers are graded against the question set.

Stores the identifying information only: a stable, unique ID (e.g. a registration number)
and a display name. Scores are not held on the student; they live in `ScoreCell` records
owned by the `Gradebook`.

Includes functionality for:
- Validating ID and name input
- Serializing to and from JSON-compatible dictionaries
- Mutating the name via property access
"""

from __future__ import annotations

from typing import Any


class Student:

    def __init__(self, id: str, name: str):
        self._id: str = Student.validate_id_input(id)
        self._name: str = Student.validate_name_input(name)

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = Student.validate_name_input(name)

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "name": self._name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Student:
        return cls(
            id=data["id"],
            name=data["name"],
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Student({self._id}, {self._name})"

    def __str__(self) -> str:
        return f"STUDENT: id: {self._id}, name: {self._name}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Student):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # === data validators ===

    @staticmethod
    def validate_id_input(id: Any) -> str:
        """
        Validates a `Student` ID.

        Args:
            id (Any): The input value to validate.

        Returns:
            The ID, unchanged.

        Raises:
            TypeError: If the ID is not a string.
            ValueError: If the ID is empty or only whitespace.
        """
        if not isinstance(id, str):
            raise TypeError("Invalid input. Student ID must be a string.")

        if not id.strip():
            raise ValueError("Invalid input. Student ID cannot be empty.")

        return id

    @staticmethod
    def validate_name_input(name: Any) -> str:
        if not isinstance(name, str):
            raise TypeError("Invalid input. Student name must be a string.")

        if not name.strip():
            raise ValueError("Invalid input. Student name cannot be empty.")

        return name
