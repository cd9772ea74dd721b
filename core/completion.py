# core/completion.py

"""
Records the first time each student's grading is finished.

`mark_once()` is idempotent: the first call for a student stores a timestamp and every later
call is a no-op, so the original finish time is never overwritten. The check and the insert
happen under one lock.

The SQLite store keeps the same record in its `grading_sessions` table; see `core.relational`.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_timestamp(moment: datetime.datetime) -> str:
    return moment.isoformat(timespec="milliseconds")


class CompletionTracker:

    def __init__(self, clock: Callable[[], datetime.datetime] = utc_now):
        self._clock = clock
        self._finished_at: dict[str, str] = {}
        self._lock = threading.Lock()

    # === properties ===

    @property
    def records(self) -> dict[str, str]:
        return dict(self._finished_at)

    def __len__(self) -> int:
        return len(self._finished_at)

    def __contains__(self, student_id: object) -> bool:
        return student_id in self._finished_at

    # === data accessors ===

    def finished_at(self, student_id: str) -> str | None:
        return self._finished_at.get(student_id)

    def list_recent(self, limit: int) -> list[str]:
        """
        Returns the `limit` most recent completion timestamps, newest first.
        """
        if limit <= 0:
            return []

        with self._lock:
            timestamps = list(self._finished_at.values())

        return sorted(timestamps, reverse=True)[:limit]

    # === data manipulators ===

    def mark_once(self, student_id: str) -> bool:
        """
        Records a completion timestamp for a student unless one already exists.

        Args:
            student_id (str): The student whose grading just finished.

        Returns:
            True if a new record was created, False if the student was already marked.
        """
        with self._lock:
            if student_id in self._finished_at:
                return False

            self._finished_at[student_id] = format_timestamp(self._clock())

        logger.debug("Marked grading complete for student %s", student_id)
        return True

    def forget(self, student_id: str) -> None:
        with self._lock:
            self._finished_at.pop(student_id, None)

    # === persistence and import ===

    def to_dict(self) -> dict[str, str]:
        return self.records

    @classmethod
    def from_dict(
        cls,
        data: dict[str, str],
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> CompletionTracker:
        tracker = cls(clock)

        for student_id, finished_at in data.items():
            if not isinstance(student_id, str) or not isinstance(finished_at, str):
                raise TypeError("Completion records must map student ids to timestamp strings.")
            tracker._finished_at[student_id] = finished_at

        return tracker
