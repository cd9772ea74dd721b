# core/utils.py

"""
Repository for program-wide utilities.
"""

import re
from collections.abc import Collection, Iterable
from typing import Any

_TRAILING_DIGITS = re.compile(r"^(\D*)(\d*)(.*)$")


def next_question_id(existing_ids: Iterable[int]) -> int:
    return max(existing_ids, default=0) + 1


def next_student_id(last_id: str | None, taken: Collection[str] = ()) -> str:
    """
    Derives the next synthetic student id from the most recently added one.

    The id is split into a leading non-digit prefix and the digits that follow, and the number
    is incremented with its zero-padded width kept ("A001" -> "A002", "S9" -> "S10"). Text after
    the digits is dropped. An id without digits counts as 0.

    Args:
        last_id (str | None): The id of the last student, or None if there are no students.
        taken (Collection[str]): Ids already in use; the number keeps incrementing past them.

    Returns:
        A new id that is not in `taken`. "S1" when there is no previous student.
    """
    if last_id is None:
        prefix, number, width = "S", 0, 1
    else:
        match = _TRAILING_DIGITS.match(last_id)
        assert match is not None
        prefix, digits = match.group(1), match.group(2)
        number = int(digits) if digits else 0
        width = len(digits) if digits else 1

    while True:
        number += 1
        candidate = f"{prefix}{number:0{width}d}"
        if candidate not in taken:
            return candidate


_MISSING = object()


def row_value(row: Any, field: str, default: Any = _MISSING) -> Any:
    """
    Reads a field from an import row, which may be a dictionary or an object with attributes.

    Raises:
        KeyError: If the field is missing and no default is given.
    """
    if isinstance(row, dict):
        if field in row:
            return row[field]
    elif hasattr(row, field):
        return getattr(row, field)

    if default is _MISSING:
        raise KeyError(field)

    return default
