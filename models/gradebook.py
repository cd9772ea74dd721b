# models/gradebook.py

"""
The Gradebook model is the central data object of the program and represents the "source of truth" for all data records.

Students, Questions, ScoreCells, and RatingBuckets are owned here and exposed through a command/query API.
Callers hold the Gradebook and dispatch edits through its methods; nothing else mutates the records.

The score matrix is kept complete: after any Student or Question is added, every (student, question) pair
has exactly one ScoreCell, created ungraded if missing. Removing a Student or Question removes every
ScoreCell that references it.

Provides functions for loading a Gradebook from a JSON snapshot and saving it back atomically, bulk
importing records (all-or-nothing), grading, completion tracking, rating classification, and search.
Includes attributes that are session-scoped like save_path (last used snapshot location) and
unsaved_changes (unsaved mutations to linked data).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable

import core.aggregation as aggregation
import core.formatters as formatters
import core.rating as rating
import core.row_reader as row_reader
import core.snapshot as snapshot
from core.completion import CompletionTracker
from core.config import DEFAULT_RATINGS, DEFAULT_SEARCH_LIMIT
from core.operation_gate import OperationBusyError, OperationGate
from core.response import ErrorCode, Response
from core.search import SearchIndex
from core.utils import next_question_id, next_student_id, row_value
from models.question import Question
from models.rating_bucket import RatingBucket
from models.score_cell import ScoreCell
from models.student import Student
from models.types import RecordType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableRow:
    student_id: str
    student_name: str
    scores: list[str]
    final_display: str


class Gradebook:

    def __init__(
        self,
        save_path: str | None = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self._students: dict[str, Student] = {}
        self._questions: dict[int, Question] = {}
        self._scores: dict[tuple[str, int], ScoreCell] = {}
        self._ratings: list[RatingBucket] = []
        self._completions = CompletionTracker()
        self._save_path: str | None = save_path
        self._unsaved_changes: bool = False
        self._gate = OperationGate()
        self._search = SearchIndex(lambda: self._students.values(), search_limit)

    # === properties ===

    # --- core data structures ---

    @property
    def students(self) -> dict[str, Student]:
        return self._students

    @property
    def questions(self) -> dict[int, Question]:
        return self._questions

    @property
    def scores(self) -> dict[tuple[str, int], ScoreCell]:
        return self._scores

    @property
    def ratings(self) -> list[RatingBucket]:
        return list(self._ratings)

    @property
    def completions(self) -> CompletionTracker:
        return self._completions

    @property
    def search_index(self) -> SearchIndex:
        return self._search

    # --- session fields ---

    @property
    def save_path(self) -> str | None:
        return self._save_path

    @save_path.setter
    def save_path(self, save_path: str | None) -> None:
        self._save_path = save_path

    # --- status markers ---

    @property
    def has_unsaved_changes(self) -> bool:
        return self._unsaved_changes

    @property
    def is_busy(self) -> bool:
        return self._gate.busy

    # === public classmethods ===

    @classmethod
    def create(
        cls,
        save_path: str | None = None,
        ratings: Iterable[tuple[str, int]] | None = None,
    ) -> Response:
        """
        Creates and returns a new, empty `Gradebook` instance seeded with rating buckets.

        Args:
            save_path (str | None): Where the snapshot should be written. If given, the new gradebook is saved immediately.
            ratings (Iterable[tuple[str, int]] | None): `(label, min_score)` pairs. Defaults to `core.config.DEFAULT_RATINGS`.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the `Gradebook` object was created (and saved, if a path was given).
                    - False if a rating is invalid or the initial save failed.
                - detail (str | None):
                    - On failure, a human-readable description of the error.
                    - On success, None.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_FIELD_VALUE` if a rating is invalid.
                    - Any error returned by `save()`.
                - status_code (int | None):
                    - 200 on success
                    - 400 on failure
                - data (dict | None): Payload with the following keys:
                    - On success:
                        - "gradebook" (Gradebook): The newly created `Gradebook` object.
                    - On failure:
                        - None
        """
        gradebook = cls(save_path)

        try:
            for label, min_score in DEFAULT_RATINGS if ratings is None else ratings:
                gradebook._ratings.append(RatingBucket(label, min_score))

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        gradebook._ratings = rating.sort_buckets(gradebook._ratings)

        if save_path is not None:
            save_response = gradebook.save(save_path)

            if not save_response.success:
                return save_response

        return Response.succeed(
            data={
                "gradebook": gradebook,
            },
        )

    @classmethod
    def load(cls, path: str | None) -> Response:
        """
        Loads a JSON snapshot from disk and returns a new `Gradebook` instance.

        Args:
            path (str | None): The snapshot file to read. None means the file selection was cancelled.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the snapshot was read and converted, or if the selection was cancelled.
                    - False if the file is unreadable or malformed.
                - detail (str | None):
                    - On failure, a human-readable description of the error. Parse failures include the
                      position and an excerpt of the offending line.
                    - On success, a confirmation message.
                - error (ErrorCode | str | None):
                    - `ErrorCode.IO_ERROR` if the file cannot be read.
                    - `ErrorCode.PARSE_ERROR` if the snapshot is malformed, truncated, or has the wrong shape.
                    - `ErrorCode.INTERNAL_ERROR` for unexpected errors.
                - status_code (int | None):
                    - 200 on success
                    - 400 on failure
                - data (dict | None): Payload with the following keys:
                    - On success:
                        - "gradebook" (Gradebook): The loaded `Gradebook`. Absent if cancelled.
                        - "cancelled" (bool): True if `path` was None.
                    - On failure:
                        - "diagnostic" (SnapshotDiagnostic): For `PARSE_ERROR` only.

        Notes:
            - This method never touches any existing `Gradebook`; callers swap in the result only on success.
            - The loaded gradebook's `save_path` is set to `path`.
            - ScoreCell completeness is not re-established here; the next structural edit does it.
        """
        if path is None:
            return Response.cancel("Load")

        try:
            text = snapshot.read_snapshot_text(path)
            payload = snapshot.parse_snapshot(text)

            try:
                gradebook = cls.from_snapshot(payload)

            except snapshot.SnapshotShapeError as e:
                raise snapshot.SnapshotError(snapshot.diagnose_shape_error(text, e)) from None

        except snapshot.SnapshotError as e:
            logger.warning("Rejected snapshot %s: %s", path, e.diagnostic.message)
            return Response.fail(
                detail=f"Failed to parse snapshot: {e.diagnostic.format()}",
                error=ErrorCode.PARSE_ERROR,
                data={
                    "diagnostic": e.diagnostic,
                },
            )

        except OSError as e:
            return Response.fail(
                detail=f"Failed to read snapshot from disk: {e}",
                error=ErrorCode.IO_ERROR,
            )

        except Exception as e:
            logger.exception("Unexpected error loading %s", path)
            return Response.fail(
                detail=f"Unexpected error: {e}",
                error=ErrorCode.INTERNAL_ERROR,
            )

        gradebook._save_path = path
        logger.info(
            "Loaded %s: %d student(s), %d question(s)",
            path,
            len(gradebook.students),
            len(gradebook.questions),
        )

        return Response.succeed(
            detail="Gradebook successfully loaded.",
            data={
                "gradebook": gradebook,
                "cancelled": False,
            },
        )

    @classmethod
    def from_snapshot(cls, payload: dict[str, Any]) -> Gradebook:
        """
        Builds a `Gradebook` from a parsed snapshot dictionary.

        Raises:
            SnapshotShapeError: If any record is malformed, duplicated, or references a missing record.
                The error names the section and list index of the offending entry.
        """
        gradebook = cls(payload.get("save_path"))

        def convert(
            section: str, from_dict_fn: Callable[[dict[str, Any]], Any]
        ) -> list[Any]:
            records = []

            for index, record_dict in enumerate(payload[section]):
                if not isinstance(record_dict, dict):
                    raise snapshot.SnapshotShapeError(
                        f"Entries in '{section}' must be objects.", section, index
                    )

                try:
                    records.append(from_dict_fn(record_dict))

                except KeyError as e:
                    raise snapshot.SnapshotShapeError(
                        f"Missing field {e} in {section}[{index}].", section, index
                    ) from None

                except (TypeError, ValueError) as e:
                    raise snapshot.SnapshotShapeError(
                        f"Invalid entry in {section}[{index}]: {e}", section, index
                    ) from None

            return records

        for index, question in enumerate(convert("questions", Question.from_dict)):
            if question.id in gradebook._questions:
                raise snapshot.SnapshotShapeError(
                    f"Duplicate question id {question.id}.", "questions", index
                )
            gradebook._questions[question.id] = question

        for index, student in enumerate(convert("students", Student.from_dict)):
            if student.id in gradebook._students:
                raise snapshot.SnapshotShapeError(
                    f"Duplicate student id '{student.id}'.", "students", index
                )
            gradebook._students[student.id] = student

        for index, cell in enumerate(convert("scores", ScoreCell.from_dict)):
            if cell.student_id not in gradebook._students:
                raise snapshot.SnapshotShapeError(
                    f"Score references unknown student '{cell.student_id}'.", "scores", index
                )

            if cell.question_id not in gradebook._questions:
                raise snapshot.SnapshotShapeError(
                    f"Score references unknown question {cell.question_id}.", "scores", index
                )

            if cell.key in gradebook._scores:
                raise snapshot.SnapshotShapeError(
                    f"Duplicate score for {cell.key}.", "scores", index
                )

            full_score = gradebook._questions[cell.question_id].full_score

            if cell.score is not None and ScoreCell.coerce_score(cell.score, full_score) is None:
                logger.warning("Dropping out-of-range score %s on load", cell)
                cell.clear()

            gradebook._scores[cell.key] = cell

        gradebook._ratings = rating.sort_buckets(convert("ratings", RatingBucket.from_dict))

        try:
            gradebook._completions = CompletionTracker.from_dict(payload.get("completions", {}))

        except TypeError as e:
            raise snapshot.SnapshotShapeError(str(e), "completions") from None

        for student_id in gradebook._completions.records:
            if student_id not in gradebook._students:
                raise snapshot.SnapshotShapeError(
                    f"Completion references unknown student '{student_id}'.", "completions"
                )

        return gradebook

    # === persistence and import ===

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "save_path": self._save_path,
            "questions": [q.to_dict() for q in self._questions.values()],
            "students": [s.to_dict() for s in self._students.values()],
            "scores": [c.to_dict() for c in self._scores.values()],
            "ratings": [r.to_dict() for r in self._ratings],
            "completions": self._completions.to_dict(),
        }

    def save(self, path: str | None = None) -> Response:
        """
        Serializes the gradebook and atomically writes it to disk in JSON format.

        Args:
            path (str | None):
                - The snapshot file to write.
                - If no argument is provided, `self.save_path` will be used by default.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the snapshot was written to disk.
                    - False if there is no target path, the write failed, or another operation is in flight.
                - detail (str | None):
                    - On success:
                        - "Gradebook successfully saved to disk."
                    - On failure:
                        - Description of the error if the save failed.
                - error (ErrorCode | str | None):
                    - `ErrorCode.MISSING_REQUIRED_FIELD` if there is no path to save to.
                    - `ErrorCode.INVALID_FIELD_VALUE` if the data cannot be serialized.
                    - `ErrorCode.IO_ERROR` if the directory or file cannot be written. Safe to retry.
                    - `ErrorCode.BUSY` if another save, load, or import is in flight.
                    - `ErrorCode.INTERNAL_ERROR` for unexpected errors.
                - status_code (int | None):
                    - 200 on success
                    - 400 on failure
                - data (dict | None):
                    - On success:
                        - "path" (str): The file that was written.

        Notes:
            - Missing parent directories are created.
            - The target file is never truncated in place; a failed save leaves the previous file intact.
            - `save_path` itself is not changed here; see `save_as()`.
        """
        target = path if path is not None else self._save_path

        if target is None:
            return Response.fail(
                detail="No save path. Use 'Save as' first.",
                error=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        try:
            with self._gate.hold("save"):
                snapshot.write_snapshot(target, self.to_snapshot())

        except OperationBusyError as e:
            return Response.busy(e)

        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Object not JSON serializable: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        except OSError as e:
            return Response.fail(
                detail=f"Failed to write data to disk: {e}. Please try again.",
                error=ErrorCode.IO_ERROR,
            )

        except Exception as e:
            logger.exception("Unexpected error saving to %s", target)
            return Response.fail(
                detail=f"Unexpected error: {e}",
                error=ErrorCode.INTERNAL_ERROR,
            )

        self._unsaved_changes = False

        return Response.succeed(
            detail="Gradebook successfully saved to disk.",
            data={
                "path": target,
            },
        )

    def save_as(self, path: str | None) -> Response:
        """
        Saves to a new location and remembers it as `save_path`.

        Args:
            path (str | None): The chosen file. None means the file selection was cancelled.

        Returns:
            Response: The `save()` response, or a successful no-op with `data["cancelled"] = True`.

        Notes:
            - `save_path` is only updated after the write succeeds.
        """
        if path is None:
            return Response.cancel("Save")

        previous = self._save_path
        self._save_path = path

        save_response = self.save(path)

        if not save_response.success:
            self._save_path = previous

        return save_response

    def restore(self, path: str | None) -> Response:
        """
        Replaces this gradebook's entire contents with a snapshot loaded from disk.

        Returns:
            Response: The `Gradebook.load()` response. On failure, or if cancelled, this gradebook is unchanged.
        """
        try:
            with self._gate.hold("load"):
                load_response = Gradebook.load(path)

                if not load_response.success or load_response.cancelled:
                    return load_response

                self.replace_contents(load_response.data["gradebook"])

        except OperationBusyError as e:
            return Response.busy(e)

        return Response.succeed(
            detail=load_response.detail,
            data={
                "gradebook": self,
                "cancelled": False,
            },
        )

    def replace_contents(self, other: Gradebook) -> None:
        """
        Takes over every record and the save path from another gradebook.

        Notes:
            - The search results are cleared since they may reference students that no longer exist.
            - The gradebook is considered saved afterwards.
        """
        self._students = other._students
        self._questions = other._questions
        self._scores = other._scores
        self._ratings = other._ratings
        self._completions = other._completions
        self._save_path = other._save_path
        self._unsaved_changes = False
        self._search.clear()

    def import_students_csv(self, path: str | None) -> Response:
        """
        Reads student rows from a CSV file and upserts them as one batch.

        Returns:
            Response: The `upsert_students()` response, a cancelled no-op if `path` is None, or:
                - `ErrorCode.IO_ERROR` if the file cannot be read.
                - `ErrorCode.PARSE_ERROR` if a row cannot be parsed; `data["line"]` holds the 1-based line.
        """
        return self._import_csv(path, row_reader.read_student_rows, self.upsert_students)

    def import_questions_csv(self, path: str | None) -> Response:
        return self._import_csv(path, row_reader.read_question_rows, self.upsert_questions)

    def _import_csv(
        self,
        path: str | None,
        read_fn: Callable[[str], list[Any]],
        upsert_fn: Callable[[Iterable[Any]], Response],
    ) -> Response:
        if path is None:
            return Response.cancel("Import")

        try:
            rows = read_fn(path)

        except row_reader.RowReadError as e:
            return Response.fail(
                detail=f"Failed to parse {path}: {e}",
                error=ErrorCode.PARSE_ERROR,
                data={
                    "line": e.line,
                },
            )

        except (OSError, UnicodeDecodeError) as e:
            return Response.fail(
                detail=f"Failed to read {path}: {e}",
                error=ErrorCode.IO_ERROR,
            )

        return upsert_fn(rows)

    # === data accessors ===

    # --- find record by id ---

    def find_student_by_id(self, student_id: str) -> Response:
        """
        Finds a `Student` object by ID within `gradebook.students`.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the `Student` object was found.
                - error (ErrorCode | str | None): `ErrorCode.NOT_FOUND` if no match is found.
                - status_code (int | None): 200 on success, 404 if no match is found.
                - data (dict): On success, "record" (Student): The matched `Student` object.

        Notes:
            - This method is read-only and does not raise.
        """
        student = self._students.get(student_id)

        if student is None:
            return Response.not_found(f"No matching student found for {student_id}.")

        return Response.succeed(data={"record": student})

    def find_question_by_id(self, question_id: int) -> Response:
        question = self._questions.get(question_id)

        if question is None:
            return Response.not_found(f"No matching question found for {question_id}.")

        return Response.succeed(data={"record": question})

    # --- search ---

    def find_student_by_query(self, query: str, limit: int | None = None) -> Response:
        """
        Runs an incremental search and returns the matching `Student` objects.

        Args:
            query (str): Matched against student IDs and names; only ASCII letters ignore case.
            limit (int | None): Maximum number of results. Defaults to the search index limit.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - Always True; an empty or blank query yields an empty list.
                - data (dict): Payload with the following keys:
                    - "records" (list[Student]): Matching students sorted by ID.
                    - "sequence" (int): The search sequence number.

        Notes:
            - This method is read-only with respect to records; it resets the search cursor to 0.
        """
        records = self._search.search(query, limit)

        return Response.succeed(
            data={
                "records": records,
                "sequence": self._search.latest_sequence,
            },
        )

    def confirm_search_selection(self) -> Response:
        """
        Resolves the search cursor to the selected `Student`.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the selected student still exists.
                - error (ErrorCode | str | None): `ErrorCode.NOT_FOUND` if nothing is selected or the student was removed.
                - status_code (int | None): 200 on success, 404 on failure.
                - data (dict): On success, "record" (Student): The selected student.
        """
        try:
            student_id = self._search.confirm()

        except LookupError as e:
            return Response.not_found(str(e))

        return self.find_student_by_id(student_id)

    # --- scores ---

    def get_score(self, student_id: str, question_id: int) -> int | None:
        cell = self._scores.get((student_id, question_id))
        return None if cell is None else cell.score

    def scores_for_student(self, student_id: str) -> dict[int, int | None]:
        return {
            question_id: self.get_score(student_id, question_id)
            for question_id in self._questions
        }

    def compute_final(self, student_id: str) -> float | None:
        """
        Calculates the weighted final percentage for one student.

        Returns:
            The unrounded percentage, or None if it is undefined (an ungraded or zero-point weighted
            question, no weighted questions at all, or an unknown student).
        """
        if student_id not in self._students:
            return None

        return aggregation.compute_final(
            self._questions.values(), self.scores_for_student(student_id)
        )

    def compute_completion(self, student_id: str) -> bool:
        return self.compute_final(student_id) is not None

    def final_scores(self) -> dict[str, float | None]:
        return {student_id: self.compute_final(student_id) for student_id in self._students}

    def progress(self) -> tuple[int, int]:
        """
        Returns `(total students, students with a defined final score)`.
        """
        finals = self.final_scores()
        return len(finals), sum(1 for f in finals.values() if f is not None)

    def table_rows(self) -> list[TableRow]:
        """
        Builds display rows for the grading table, one per student in insertion order.

        Notes:
            - Question columns follow `gradebook.questions` order.
            - Ungraded cells and undefined finals are empty strings.
        """
        rows = []

        for student in self._students.values():
            rows.append(
                TableRow(
                    student_id=student.id,
                    student_name=student.name,
                    scores=[
                        formatters.format_score_cell(self.get_score(student.id, q_id))
                        for q_id in self._questions
                    ],
                    final_display=formatters.format_final_score(
                        self.compute_final(student.id)
                    ),
                )
            )

        return rows

    # --- ratings ---

    def classify_student(self, student_id: str) -> RatingBucket | None:
        return rating.classify(self.compute_final(student_id), self._ratings)

    def rating_stats(self) -> list[rating.RatingStats]:
        return rating.compute_stats(self.final_scores().values(), self._ratings)

    def score_histogram(self, bin_width: int) -> list[int]:
        """
        Bins every defined final score.

        Raises:
            ValueError: If `bin_width` is outside 1 to 100.
        """
        return rating.histogram(self.final_scores().values(), bin_width)

    # === data manipulators ===

    def _mark_dirty(self) -> None:
        """
        Marks the gradebook as having unsaved changes.
        """
        self._unsaved_changes = True

    def mark_saved(self) -> None:
        """
        Clears the unsaved changes flag after the data was persisted somewhere other than `save_path`.
        """
        self._unsaved_changes = False

    # --- score matrix ---

    def maintain_completeness(self) -> int:
        """
        Creates an ungraded `ScoreCell` for every (student, question) pair that lacks one.

        Returns:
            The number of cells created. Calling again immediately returns 0.
        """
        created = 0

        for student_id in self._students:
            for question_id in self._questions:
                key = (student_id, question_id)

                if key not in self._scores:
                    self._scores[key] = ScoreCell(student_id, question_id)
                    created += 1

        if created:
            logger.debug("Filled %d missing score cell(s)", created)
            self._mark_dirty()

        return created

    def _remove_cells(self, predicate: Callable[[ScoreCell], bool]) -> int:
        doomed = [key for key, cell in self._scores.items() if predicate(cell)]

        for key in doomed:
            del self._scores[key]

        return len(doomed)

    # --- student manipulation ---

    def add_student(self, name: str, student_id: str | None = None) -> Response:
        """
        Creates a `Student` and adds it to the gradebook.

        Args:
            name (str): The student's name.
            student_id (str | None): An explicit ID. If omitted, the next ID is derived from the last student's.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the `Student` object was successfully added.
                    - False if the name or ID is invalid or the ID is already taken.
                - detail (str | None):
                    - On failure, a human-readable description of the error.
                    - On success, a simple confirmation message.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_FIELD_VALUE` if the name or ID fails validation.
                    - `ErrorCode.DUPLICATE_ID` if the ID is already in use.
                - status_code (int | None):
                    - 200 on success
                    - 400 on failure
                - data (dict | None): Payload with the following keys:
                    - On success:
                        - "record" (Student): The added `Student` object.

        Notes:
            - This method mutates `Gradebook` state, fills the score matrix, and calls `_mark_dirty()` if successful.
        """
        if student_id is None:
            last_id = next(reversed(self._students), None)
            student_id = next_student_id(last_id, self._students)

        if student_id in self._students:
            return Response.fail(
                detail=f"A student with the id '{student_id}' already exists.",
                error=ErrorCode.DUPLICATE_ID,
            )

        try:
            student = Student(student_id, name)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        self._students[student.id] = student
        self.maintain_completeness()
        self._mark_dirty()

        return Response.succeed(
            detail="Student successfully added to the gradebook.",
            data={
                "record": student,
            },
        )

    def remove_student(self, student_id: str) -> Response:
        """
        Removes a `Student` and every `ScoreCell` that references it.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the student was removed.
                - error (ErrorCode | str | None): `ErrorCode.NOT_FOUND` if the student does not exist.
                - status_code (int | None): 200 on success, 404 if not found.
                - data (dict | None): On success, "removed_cells" (int): Number of score cells removed.

        Notes:
            - The student's completion record is dropped as well.
        """
        if student_id not in self._students:
            return Response.not_found(
                f"No matching student could be found for deletion: {student_id}."
            )

        removed = self._remove_cells(lambda c: c.student_id == student_id)
        del self._students[student_id]
        self._completions.forget(student_id)
        self._mark_dirty()

        return Response.succeed(
            detail="Student successfully removed from the gradebook.",
            data={
                "removed_cells": removed,
            },
        )

    def update_student_name(self, student_id: str, name: str) -> Response:
        """
        Updates the `name` attribute of a `Student`.

        Returns:
            Response: Fails with `ErrorCode.NOT_FOUND` if the student does not exist, or
            `ErrorCode.INVALID_FIELD_VALUE` if the name is empty.
        """
        find_response = self.find_student_by_id(student_id)

        if not find_response.success:
            return find_response

        student = find_response.data["record"]

        try:
            student.name = name

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        self._mark_dirty()

        return Response.succeed(detail=f"Student name updated to: {student.name}")

    # --- question manipulation ---

    def add_question(
        self,
        name: str,
        full_score: int,
        weight: float = 1.0,
        comment: str = "",
        question_id: int | None = None,
    ) -> Response:
        """
        Creates a `Question` and adds it to the gradebook.

        Args:
            name (str): The question's display name.
            full_score (int): The maximum raw score.
            weight (float): The question's weight in the final score. 0 excludes it.
            comment (str): Free-form notes.
            question_id (int | None): An explicit ID. If omitted, one more than the largest existing ID is used.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the `Question` object was added.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_FIELD_VALUE` if any field fails validation.
                    - `ErrorCode.DUPLICATE_ID` if the ID is already in use.
                - data (dict | None): On success, "record" (Question): The added `Question` object.

        Notes:
            - This method mutates `Gradebook` state, fills the score matrix, and calls `_mark_dirty()` if successful.
        """
        if question_id is None:
            question_id = next_question_id(self._questions)

        try:
            question = Question(question_id, name, full_score, weight, comment)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        if question.id in self._questions:
            return Response.fail(
                detail=f"A question with the id {question.id} already exists.",
                error=ErrorCode.DUPLICATE_ID,
            )

        self._questions[question.id] = question
        self.maintain_completeness()
        self._mark_dirty()

        return Response.succeed(
            detail="Question successfully added to the gradebook.",
            data={
                "record": question,
            },
        )

    def remove_question(self, question_id: int) -> Response:
        if question_id not in self._questions:
            return Response.not_found(
                f"No matching question could be found for deletion: {question_id}."
            )

        removed = self._remove_cells(lambda c: c.question_id == question_id)
        del self._questions[question_id]
        self._mark_dirty()

        return Response.succeed(
            detail="Question successfully removed from the gradebook.",
            data={
                "removed_cells": removed,
            },
        )

    def _update_question_field(self, question_id: int, field: str, value: Any) -> Response:
        """
        Sets one validated attribute on a `Question`.

        Notes:
            - Lowering `full_score` clears any stored score that no longer fits.
        """
        find_response = self.find_question_by_id(question_id)

        if not find_response.success:
            return find_response

        question = find_response.data["record"]

        try:
            setattr(question, field, value)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        cleared = 0

        if field == "full_score":
            for cell in self._scores.values():
                if cell.question_id == question_id and cell.is_graded:
                    if ScoreCell.coerce_score(cell.score, question.full_score) is None:
                        cell.clear()
                        cleared += 1

        self._mark_dirty()

        return Response.succeed(
            detail=f"Question {field.replace('_', ' ')} updated to: {getattr(question, field)}",
            data={
                "cleared_cells": cleared,
            },
        )

    def update_question_name(self, question_id: int, name: str) -> Response:
        return self._update_question_field(question_id, "name", name)

    def update_question_full_score(self, question_id: int, full_score: int) -> Response:
        return self._update_question_field(question_id, "full_score", full_score)

    def update_question_weight(self, question_id: int, weight: float) -> Response:
        return self._update_question_field(question_id, "weight", weight)

    def update_question_comment(self, question_id: int, comment: str) -> Response:
        return self._update_question_field(question_id, "comment", comment)

    # --- bulk upsert ---

    def upsert_students(self, rows: Iterable[Any]) -> Response:
        """
        Inserts or overwrites a batch of students keyed by ID, all-or-nothing.

        Args:
            rows (Iterable[Any]): Objects with `id` and `name` attributes, or dictionaries with those keys.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if every row was valid and the batch was applied.
                    - False if any row failed validation; nothing is written.
                - detail (str | None):
                    - On failure, the offending ID and the reason.
                    - On success, a summary count.
                - error (ErrorCode | str | None):
                    - `ErrorCode.VALIDATION_FAILED` if any row is invalid or an ID repeats within the batch.
                    - `ErrorCode.BUSY` if another save, load, or import is in flight.
                - status_code (int | None):
                    - 200 on success
                    - 400 on failure
                - data (dict | None): Payload with the following keys:
                    - On success:
                        - "affected" (int): Rows inserted or changed. Rows identical to the stored record are not counted.
                    - On failure:
                        - "id" (Any): The offending row ID, if one could be read.

        Notes:
            - The score matrix is filled after the batch is applied.
        """

        def build(row: Any) -> Student:
            return Student(row_value(row, "id"), row_value(row, "name"))

        def apply(student: Student) -> bool:
            existing = self._students.get(student.id)

            if existing is None:
                self._students[student.id] = student
                return True

            if existing == student:
                return False

            existing.name = student.name
            return True

        return self._upsert_batch(rows, "student", build, apply)

    def upsert_questions(self, rows: Iterable[Any]) -> Response:
        """
        Inserts or overwrites a batch of questions keyed by ID, all-or-nothing.

        Args:
            rows (Iterable[Any]): Objects or dictionaries with `id`, `name`, `full_score`, `weight`, and optionally `comment`.

        Returns:
            Response: Same contract as `upsert_students()`.

        Notes:
            - Overwriting a question with a lower `full_score` clears stored scores that no longer fit.
        """

        def build(row: Any) -> Question:
            return Question(
                row_value(row, "id"),
                row_value(row, "name"),
                row_value(row, "full_score"),
                row_value(row, "weight"),
                row_value(row, "comment", ""),
            )

        def apply(question: Question) -> bool:
            existing = self._questions.get(question.id)

            if existing is None:
                self._questions[question.id] = question
                return True

            if existing == question:
                return False

            existing.name = question.name
            existing.full_score = question.full_score
            existing.weight = question.weight
            existing.comment = question.comment

            for cell in self._scores.values():
                if cell.question_id == question.id and cell.is_graded:
                    if ScoreCell.coerce_score(cell.score, question.full_score) is None:
                        cell.clear()

            return True

        return self._upsert_batch(rows, "question", build, apply)

    def _upsert_batch(
        self,
        rows: Iterable[Any],
        record_name: str,
        build_fn: Callable[[Any], RecordType],
        apply_fn: Callable[[RecordType], bool],
    ) -> Response:
        """
        Validates every row before applying any, then applies them in order.

        Notes:
            - Designed for internal use by `upsert_students()` and `upsert_questions()`.
            - Nothing is written unless every row builds into a valid record.
        """
        try:
            with self._gate.hold(f"{record_name} import"):
                records: list[Any] = []
                seen: set[Any] = set()

                for row in rows:
                    row_id = row_value(row, "id", None)

                    try:
                        record = build_fn(row)

                    except KeyError as e:
                        return self._reject_batch(record_name, row_id, f"missing field {e}")

                    except (TypeError, ValueError) as e:
                        return self._reject_batch(record_name, row_id, str(e))

                    if record.id in seen:
                        return self._reject_batch(record_name, record.id, "duplicate id in batch")

                    seen.add(record.id)
                    records.append(record)

                affected = sum(1 for record in records if apply_fn(record))
                self.maintain_completeness()

        except OperationBusyError as e:
            return Response.busy(e)

        if affected:
            self._mark_dirty()

        logger.info(
            "Upserted %d %s row(s), %d inserted or changed", len(records), record_name, affected
        )

        return Response.succeed(
            detail=f"{affected} {record_name} record(s) inserted or updated.",
            data={
                "affected": affected,
            },
        )

    def _reject_batch(self, record_name: str, row_id: Any, reason: str) -> Response:
        logger.warning("Rejected %s batch at id=%r: %s", record_name, row_id, reason)

        return Response.fail(
            detail=f"Invalid {record_name}: id={row_id!r} - {reason}. No records were imported.",
            error=ErrorCode.VALIDATION_FAILED,
            data={
                "id": row_id,
            },
        )

    # --- grading ---

    def set_score(self, student_id: str, question_id: int, score: Any) -> Response:
        """
        Records a score for one student-question pair.

        Args:
            student_id (str): The graded student.
            question_id (int): The graded question.
            score (Any): The score. None clears the cell; anything that is not an integer within
                `[0, full_score]` is stored as ungraded.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the cell was written.
                - error (ErrorCode | str | None): `ErrorCode.NOT_FOUND` if the student or question does not exist.
                - status_code (int | None): 200 on success, 404 if not found.
                - data (dict | None): On success, "score" (int | None): The value actually stored.

        Notes:
            - Creates the cell if the matrix was not yet complete (e.g. right after a load).
        """
        if student_id not in self._students:
            return self.find_student_by_id(student_id)

        question_response = self.find_question_by_id(question_id)

        if not question_response.success:
            return question_response

        question = question_response.data["record"]
        key = (student_id, question_id)
        cell = self._scores.get(key)

        if cell is None:
            cell = self._scores[key] = ScoreCell(student_id, question_id)

        cell.set_score(score, question.full_score)
        self._mark_dirty()

        return Response.succeed(
            detail="Score recorded.",
            data={
                "score": cell.score,
            },
        )

    def set_score_from_input(self, student_id: str, question_id: int, raw: str | None) -> Response:
        """
        Parses raw text from a score field and records it.

        Notes:
            - Blank, non-integer, and out-of-range text is stored as ungraded.
        """
        question = self._questions.get(question_id)
        full_score = question.full_score if question is not None else 0

        return self.set_score(
            student_id, question_id, ScoreCell.parse_score_input(raw, full_score)
        )

    def clear_scores_for_student(self, student_id: str) -> Response:
        if student_id not in self._students:
            return self.find_student_by_id(student_id)

        for cell in self._scores.values():
            if cell.student_id == student_id:
                cell.clear()

        self._mark_dirty()

        return Response.succeed(detail=f"Scores cleared for {student_id}.")

    # --- completion ---

    def mark_completed_if_done(self, student_id: str) -> Response:
        """
        Records the student's completion time the first time every weighted question is graded.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True unless the student does not exist.
                - error (ErrorCode | str | None): `ErrorCode.NOT_FOUND` if the student does not exist.
                - data (dict | None): On success:
                    - "complete" (bool): Whether the student's final score is defined.
                    - "marked" (bool): Whether a new completion record was created by this call.
        """
        if student_id not in self._students:
            return self.find_student_by_id(student_id)

        complete = self.compute_completion(student_id)
        marked = complete and self._completions.mark_once(student_id)

        if marked:
            self._mark_dirty()

        return Response.succeed(
            data={
                "complete": complete,
                "marked": marked,
            },
        )

    # --- rating buckets ---

    def _resort_ratings(self) -> None:
        self._ratings = rating.sort_buckets(self._ratings)

    def add_rating(self, label: str, min_score: int) -> Response:
        """
        Adds a rating bucket and re-sorts the bucket list.

        Returns:
            Response: Fails with `ErrorCode.INVALID_FIELD_VALUE` if the label or threshold is invalid.
            On success, "record" (RatingBucket) and "index" (int): Its position after sorting.
        """
        try:
            bucket = RatingBucket(label, min_score)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        self._ratings.append(bucket)
        self._resort_ratings()
        self._mark_dirty()

        return Response.succeed(
            detail=f"Rating '{bucket.label}' added.",
            data={
                "record": bucket,
                "index": self._ratings.index(bucket),
            },
        )

    def _find_rating(self, index: int) -> Response:
        if not 0 <= index < len(self._ratings):
            return Response.not_found(f"No rating at position {index}.")

        return Response.succeed(data={"record": self._ratings[index]})

    def update_rating_label(self, index: int, label: str) -> Response:
        find_response = self._find_rating(index)

        if not find_response.success:
            return find_response

        bucket = find_response.data["record"]

        try:
            bucket.label = label

        except TypeError as e:
            return Response.invalid_field(e)

        self._mark_dirty()

        return Response.succeed(detail=f"Rating label updated to: {label}")

    def update_rating_min_score(self, index: int, min_score: int) -> Response:
        """
        Changes a bucket's threshold and re-sorts the bucket list.

        Notes:
            - Thresholds above 100 are lowered to 100 and negative thresholds raised to 0.
            - The bucket's position may change; "index" in the response data holds the new one.
        """
        find_response = self._find_rating(index)

        if not find_response.success:
            return find_response

        bucket = find_response.data["record"]

        if isinstance(min_score, bool) or not isinstance(min_score, int):
            return Response.fail(
                detail="Invalid field value: Rating threshold must be an integer.",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        bucket.min_score = max(0, min(min_score, 100))
        self._resort_ratings()
        self._mark_dirty()

        return Response.succeed(
            detail=f"Rating '{bucket.label}' threshold updated to: {bucket.min_score}",
            data={
                "record": bucket,
                "index": self._ratings.index(bucket),
            },
        )

    def remove_rating(self, index: int) -> Response:
        find_response = self._find_rating(index)

        if not find_response.success:
            return find_response

        bucket = self._ratings.pop(index)
        self._mark_dirty()

        return Response.succeed(detail=f"Rating '{bucket.label}' removed.")

    # === dunder methods ===

    def __repr__(self) -> str:
        return (
            f"Gradebook({self._save_path}, students={len(self._students)}, "
            f"questions={len(self._questions)}, ratings={len(self._ratings)})"
        )

