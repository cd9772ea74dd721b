# models/types.py

"""
Holds TypeVar definition for simplifying type checks.
"""

from typing import TypeVar

from .question import Question
from .student import Student

RecordType = TypeVar("RecordType", Question, Student)
