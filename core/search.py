# core/search.py

"""
Incremental student search with a selection cursor.

A student matches a query when its id or its name contains the query. Only the ASCII letters
A-Z are folded to lower case before comparing; every other character, including full-width
and accented letters, must match exactly. This is the same rule as SQLite's `LIKE`, so the
in-memory index and `SqliteGradebookStore.search_students()` return the same students.
Matches are ordered by id and truncated to the limit.

The index runs synchronously over the in-memory student list. Each search is tagged with a
sequence number; a caller that computes results elsewhere hands them back through
`apply_results()`, which drops anything older than what is already shown.
"""

from __future__ import annotations

import itertools
import logging
import string
from collections.abc import Callable, Iterable

from models.student import Student

logger = logging.getLogger(__name__)

_ASCII_FOLD = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def fold_ascii(text: str) -> str:
    return text.translate(_ASCII_FOLD)


def match_students(
    students: Iterable[Student],
    query: str,
    limit: int,
) -> list[Student]:
    """
    Filters students by query.

    Args:
        students (Iterable[Student]): The students to search.
        query (str): The text typed by the user. Surrounding whitespace is ignored.
        limit (int): Maximum number of results.

    Returns:
        Matching students sorted ascending by id, at most `limit` of them. A blank query returns an empty list.
    """
    needle = fold_ascii(query.strip())

    if not needle or limit <= 0:
        return []

    matches = [
        student
        for student in students
        if needle in fold_ascii(student.id) or needle in fold_ascii(student.name)
    ]

    return sorted(matches, key=lambda s: s.id)[:limit]


class SearchIndex:

    def __init__(
        self,
        source: Callable[[], Iterable[Student]],
        limit: int = 30,
    ):
        self._source = source
        self._limit = limit
        self._query = ""
        self._results: list[Student] = []
        self._cursor = 0
        self._sequence = itertools.count(1)
        self._latest_issued = 0
        self._latest_applied = 0

    # === properties ===

    @property
    def query(self) -> str:
        return self._query

    @property
    def results(self) -> list[Student]:
        return list(self._results)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def selected(self) -> Student | None:
        if not self._results:
            return None
        return self._results[self._cursor]

    @property
    def latest_sequence(self) -> int:
        return self._latest_issued

    # === search ===

    def next_sequence(self) -> int:
        self._latest_issued = next(self._sequence)
        return self._latest_issued

    def search(self, query: str, limit: int | None = None) -> list[Student]:
        """
        Runs a search against the current student list and shows the results.

        Args:
            query (str): The text typed by the user.
            limit (int | None): Overrides the index's default result limit.

        Returns:
            The new result list. The cursor is reset to 0.
        """
        sequence = self.next_sequence()
        results = match_students(
            self._source(), query, self._limit if limit is None else limit
        )
        self.apply_results(sequence, query, results)

        logger.debug("Search #%d for %r returned %d result(s)", sequence, query, len(results))
        return self.results

    def apply_results(self, sequence: int, query: str, results: list[Student]) -> bool:
        """
        Shows results computed for a given search sequence number.

        Returns:
            True if the results were applied, False if they were stale and discarded.
        """
        if sequence < self._latest_applied:
            logger.debug(
                "Discarding stale search #%d (showing #%d)", sequence, self._latest_applied
            )
            return False

        self._latest_applied = sequence
        self._query = query
        self._results = list(results)
        self._cursor = 0
        return True

    def clear(self) -> None:
        self.apply_results(self.next_sequence(), "", [])

    # === cursor ===

    def move_up(self) -> int:
        self._cursor = self._clamp(self._cursor - 1)
        return self._cursor

    def move_down(self) -> int:
        self._cursor = self._clamp(self._cursor + 1)
        return self._cursor

    def move_to(self, index: int) -> int:
        self._cursor = self._clamp(index)
        return self._cursor

    def confirm(self) -> str:
        """
        Resolves the cursor to the id of the selected student.

        Returns:
            The selected student's id.

        Raises:
            LookupError: If there is no selection, or the selected student no longer exists.
        """
        selected = self.selected

        if selected is None:
            raise LookupError("No student is selected.")

        if not any(s.id == selected.id for s in self._source()):
            raise LookupError(f"Student {selected.id} no longer exists.")

        return selected.id

    # === helper methods ===

    def _clamp(self, index: int) -> int:
        if not self._results:
            return 0
        return max(0, min(index, len(self._results) - 1))
