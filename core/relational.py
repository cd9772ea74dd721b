# core/relational.py

"""
SQLite-backed gradebook store.

Students, questions, scores, rating buckets, and completion records live in their own tables.
Foreign keys are enforced, and deleting a student or question cascades to its scores.

Every bulk write runs in one transaction together with the score matrix fill, so a failed
batch leaves the database exactly as it was. Bulk writes and whole-gradebook transfers are
admitted one at a time through an `OperationGate`.

`export_gradebook()` and `import_gradebook()` move data between this store and an in-memory
`Gradebook`, which is how the menus edit a database file.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

import core.aggregation as aggregation
import core.formatters as formatters
import core.search as search
from core.completion import format_timestamp, utc_now
from core.operation_gate import OperationBusyError, OperationGate
from core.response import ErrorCode, Response
from core.utils import next_question_id, next_student_id, row_value
from models.gradebook import Gradebook, TableRow
from models.question import Question
from models.score_cell import ScoreCell
from models.student import Student

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS students (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS questions (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    full_score INTEGER NOT NULL,
    weight REAL NOT NULL DEFAULT 1.0,
    comment TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS scores (
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    question_id INTEGER NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
    score INTEGER,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    PRIMARY KEY (student_id, question_id)
);

CREATE TABLE IF NOT EXISTS grading_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_id TEXT NOT NULL UNIQUE REFERENCES students(id) ON DELETE CASCADE,
    finished_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ratings (
    position INTEGER PRIMARY KEY,
    label TEXT NOT NULL,
    min_score INTEGER NOT NULL
);
"""

FILL_MATRIX_SQL = """
INSERT OR IGNORE INTO scores (student_id, question_id, score)
SELECT s.id, q.id, NULL
FROM students s
CROSS JOIN questions q
"""

UPSERT_SCORE_SQL = """
INSERT INTO scores (student_id, question_id, score)
VALUES (?, ?, ?)
ON CONFLICT (student_id, question_id) DO UPDATE SET
    score = excluded.score,
    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
"""

COUNT_COMPLETED_SQL = """
SELECT COUNT(*)
FROM students s
WHERE EXISTS (SELECT 1 FROM questions WHERE weight > 0)
AND NOT EXISTS (
    SELECT 1
    FROM questions q
    LEFT JOIN scores sc ON sc.question_id = q.id AND sc.student_id = s.id
    WHERE q.weight > 0 AND (sc.score IS NULL OR q.full_score <= 0)
)
"""


class SqliteGradebookStore:

    def __init__(self, path: str):
        self._path = path
        self._conn = sqlite3.connect(path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA)
        self._gate = OperationGate()
        logger.info("Opened SQLite gradebook %s", path)

    # === properties ===

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_busy(self) -> bool:
        return self._gate.busy

    # === connection handling ===

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteGradebookStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Commits on success and rolls back on any exception, which is re-raised.
        """
        with self._conn:
            yield self._conn

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        return self._conn.execute(sql, tuple(params)).fetchall()

    def _scalar(self, sql: str, params: Iterable[Any] = ()) -> Any:
        row = self._conn.execute(sql, tuple(params)).fetchone()
        return None if row is None else row[0]

    # === students ===

    def list_students(self) -> list[Student]:
        return [
            Student(row["id"], row["name"])
            for row in self._query("SELECT id, name FROM students ORDER BY rowid")
        ]

    def insert_student(self, name: str, student_id: str | None = None) -> Response:
        """
        Inserts one student and fills its score cells.

        Args:
            name (str): The student's name.
            student_id (str | None): An explicit ID. If omitted, the next ID is derived from the most recently inserted student.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the row was inserted.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_FIELD_VALUE` if the name or ID is invalid.
                    - `ErrorCode.DUPLICATE_ID` if the ID is taken.
                    - `ErrorCode.IO_ERROR` if the database write fails.
                - data (dict | None): On success, "record" (Student): The inserted student.
        """
        if student_id is None:
            last_id = self._scalar("SELECT id FROM students ORDER BY rowid DESC LIMIT 1")
            taken = {row["id"] for row in self._query("SELECT id FROM students")}
            student_id = next_student_id(last_id, taken)

        try:
            student = Student(student_id, name)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        try:
            with self._transaction() as conn:
                conn.execute(
                    "INSERT INTO students (id, name) VALUES (?, ?)",
                    (student.id, student.name),
                )
                conn.execute(FILL_MATRIX_SQL)

        except sqlite3.IntegrityError:
            return Response.fail(
                detail=f"A student with the id '{student.id}' already exists.",
                error=ErrorCode.DUPLICATE_ID,
            )

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        return Response.succeed(
            detail="Student successfully added.",
            data={
                "record": student,
            },
        )

    def update_student_name(self, student_id: str, name: str) -> Response:
        try:
            name = Student.validate_name_input(name)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        return self._execute_one(
            "UPDATE students SET name = ? WHERE id = ?",
            (name, student_id),
            f"Student name updated to: {name}",
            f"No matching student found for {student_id}.",
        )

    def delete_student(self, student_id: str) -> Response:
        return self._execute_one(
            "DELETE FROM students WHERE id = ?",
            (student_id,),
            "Student successfully removed.",
            f"No matching student could be found for deletion: {student_id}.",
        )

    # === questions ===

    def list_questions(self) -> list[Question]:
        return [
            _question_from_row(row)
            for row in self._query(
                "SELECT id, name, full_score, weight, comment FROM questions ORDER BY id"
            )
        ]

    def insert_question(
        self,
        name: str,
        full_score: int,
        weight: float = 1.0,
        comment: str = "",
        question_id: int | None = None,
    ) -> Response:
        if question_id is None:
            question_id = next_question_id(
                row["id"] for row in self._query("SELECT id FROM questions")
            )

        try:
            question = Question(question_id, name, full_score, weight, comment)

        except (TypeError, ValueError) as e:
            return Response.invalid_field(e)

        try:
            with self._transaction() as conn:
                conn.execute(
                    "INSERT INTO questions (id, name, full_score, weight, comment) VALUES (?, ?, ?, ?, ?)",
                    _question_params(question),
                )
                conn.execute(FILL_MATRIX_SQL)

        except sqlite3.IntegrityError:
            return Response.fail(
                detail=f"A question with the id {question.id} already exists.",
                error=ErrorCode.DUPLICATE_ID,
            )

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        return Response.succeed(
            detail="Question successfully added.",
            data={
                "record": question,
            },
        )

    def update_question(self, question: Question) -> Response:
        """
        Overwrites a stored question with the given record's fields.

        Notes:
            - Stored scores that exceed a lowered `full_score` are cleared in the same transaction.
        """
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "UPDATE questions SET name = ?, full_score = ?, weight = ?, comment = ? WHERE id = ?",
                    (question.name, question.full_score, question.weight, question.comment, question.id),
                )

                if cursor.rowcount == 0:
                    return Response.not_found(f"No matching question found for {question.id}.")

                conn.execute(
                    "UPDATE scores SET score = NULL WHERE question_id = ? AND score > ?",
                    (question.id, question.full_score),
                )

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        return Response.succeed(detail=f"Question {question.id} updated.")

    def delete_question(self, question_id: int) -> Response:
        return self._execute_one(
            "DELETE FROM questions WHERE id = ?",
            (question_id,),
            "Question successfully removed.",
            f"No matching question could be found for deletion: {question_id}.",
        )

    # === bulk upsert ===

    def upsert_students(self, rows: Iterable[Any]) -> Response:
        """
        Inserts or overwrites students keyed by ID in one transaction, then fills the score matrix.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if every row was valid and the transaction committed.
                - error (ErrorCode | str | None):
                    - `ErrorCode.VALIDATION_FAILED` if any row is invalid; nothing is written.
                    - `ErrorCode.IO_ERROR` if the database rejects the write; the transaction is rolled back.
                    - `ErrorCode.BUSY` if another bulk operation is in flight.
                - data (dict | None):
                    - On success, "affected" (int): Rows inserted or changed.
                    - On validation failure, "id" (Any): The offending row ID.
        """
        return self._upsert_batch(
            rows,
            "student",
            lambda row: Student(row_value(row, "id"), row_value(row, "name")),
            """
            INSERT INTO students (id, name) VALUES (?, ?)
            ON CONFLICT (id) DO UPDATE SET name = excluded.name
            WHERE students.name IS NOT excluded.name
            """,
            lambda student: (student.id, student.name),
        )

    def upsert_questions(self, rows: Iterable[Any]) -> Response:
        return self._upsert_batch(
            rows,
            "question",
            lambda row: Question(
                row_value(row, "id"),
                row_value(row, "name"),
                row_value(row, "full_score"),
                row_value(row, "weight"),
                row_value(row, "comment", ""),
            ),
            """
            INSERT INTO questions (id, name, full_score, weight, comment) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET
                name = excluded.name,
                full_score = excluded.full_score,
                weight = excluded.weight,
                comment = excluded.comment
            WHERE questions.name IS NOT excluded.name
               OR questions.full_score IS NOT excluded.full_score
               OR questions.weight IS NOT excluded.weight
               OR questions.comment IS NOT excluded.comment
            """,
            _question_params,
        )

    def _upsert_batch(self, rows, record_name, build_fn, sql, params_fn) -> Response:
        records = []
        seen = set()

        for row in rows:
            row_id = row_value(row, "id", None)

            try:
                record = build_fn(row)

            except KeyError as e:
                return _reject_batch(record_name, row_id, f"missing field {e}")

            except (TypeError, ValueError) as e:
                return _reject_batch(record_name, row_id, str(e))

            if record.id in seen:
                return _reject_batch(record_name, record.id, "duplicate id in batch")

            seen.add(record.id)
            records.append(record)

        try:
            with self._gate.hold(f"{record_name} import"), self._transaction() as conn:
                affected = 0

                for record in records:
                    affected += conn.execute(sql, params_fn(record)).rowcount

                if record_name == "question":
                    for record in records:
                        conn.execute(
                            "UPDATE scores SET score = NULL WHERE question_id = ? AND score > ?",
                            (record.id, record.full_score),
                        )

                conn.execute(FILL_MATRIX_SQL)

        except OperationBusyError as e:
            return Response.busy(e)

        except sqlite3.Error as e:
            logger.error("Rolled back %s batch: %s", record_name, e)
            return Response.fail(
                detail=f"Database error: {e}. No records were imported.",
                error=ErrorCode.IO_ERROR,
            )

        logger.info("Upserted %d %s row(s), %d inserted or changed", len(records), record_name, affected)

        return Response.succeed(
            detail=f"{affected} {record_name} record(s) inserted or updated.",
            data={
                "affected": affected,
            },
        )

    def fill_matrix(self) -> int:
        """
        Creates an ungraded score row for every missing (student, question) pair.

        Returns:
            The number of rows created.
        """
        with self._transaction() as conn:
            return conn.execute(FILL_MATRIX_SQL).rowcount

    # === scores ===

    def set_score(self, student_id: str, question_id: int, score: Any) -> Response:
        """
        Upserts one score. Values outside `[0, full_score]` are stored as ungraded.

        Returns:
            Response: Fails with `ErrorCode.NOT_FOUND` if the student or question does not exist.
            On success, "score" (int | None): The value actually stored.
        """
        full_score = self._scalar("SELECT full_score FROM questions WHERE id = ?", (question_id,))

        if full_score is None:
            return Response.not_found(f"No matching question found for {question_id}.")

        if self._scalar("SELECT 1 FROM students WHERE id = ?", (student_id,)) is None:
            return Response.not_found(f"No matching student found for {student_id}.")

        stored = ScoreCell.coerce_score(score, full_score)

        try:
            with self._transaction() as conn:
                conn.execute(UPSERT_SCORE_SQL, (student_id, question_id, stored))

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        return Response.succeed(
            detail="Score recorded.",
            data={
                "score": stored,
            },
        )

    def get_scores_for_student(self, student_id: str) -> dict[int, int | None]:
        """
        Returns the student's score for every question, None where ungraded or missing.
        """
        return {
            row["id"]: row["score"]
            for row in self._query(
                """
                SELECT q.id, sc.score
                FROM questions q
                LEFT JOIN scores sc ON sc.question_id = q.id AND sc.student_id = ?
                ORDER BY q.id
                """,
                (student_id,),
            )
        }

    def compute_final(self, student_id: str) -> float | None:
        return aggregation.compute_final(
            self.list_questions(), self.get_scores_for_student(student_id)
        )

    # === search ===

    def search_students(self, query: str, limit: int) -> list[Student]:
        """
        Matches IDs and names with `LIKE`, which ignores case for ASCII letters only, ordered by ID.
        """
        needle = query.strip()

        if not needle or limit <= 0:
            return []

        pattern = "%" + _escape_like(needle) + "%"

        return [
            Student(row["id"], row["name"])
            for row in self._query(
                """
                SELECT id, name FROM students
                WHERE id LIKE ?1 ESCAPE '\\' OR name LIKE ?1 ESCAPE '\\'
                ORDER BY id
                LIMIT ?2
                """,
                (pattern, limit),
            )
        ]

    def search_index(self, limit: int) -> search.SearchIndex:
        return search.SearchIndex(self.list_students, limit)

    # === progress and completion ===

    def count_total_students(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM students")

    def count_completed_students(self) -> int:
        """
        Counts students whose every weighted question is graded and has a positive full score.
        """
        return self._scalar(COUNT_COMPLETED_SQL)

    def mark_completed_once(self, student_id: str, finished_at: str | None = None) -> Response:
        """
        Records the completion time unless the student already has one.

        Returns:
            Response: On success, `data["created"]` is True if a new record was inserted.
                Fails with `ErrorCode.NOT_FOUND` for an unknown student, or
                `ErrorCode.IO_ERROR` if the database write fails.
        """
        finished_at = finished_at or format_timestamp(utc_now())

        try:
            if not self._scalar("SELECT COUNT(*) FROM students WHERE id = ?", (student_id,)):
                return Response.not_found(f"No matching student found for {student_id}.")

            with self._transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO grading_sessions (student_id, finished_at)
                    SELECT ?, ?
                    WHERE NOT EXISTS (SELECT 1 FROM grading_sessions WHERE student_id = ?)
                    """,
                    (student_id, finished_at, student_id),
                )

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        created = cursor.rowcount == 1

        return Response.succeed(
            detail=f"Completion {'recorded' if created else 'already recorded'} for {student_id}.",
            data={
                "created": created,
            },
        )

    def list_completion_times_latest(self, limit: int) -> list[str]:
        if limit <= 0:
            return []

        return [
            row["finished_at"]
            for row in self._query(
                "SELECT finished_at FROM grading_sessions ORDER BY finished_at DESC LIMIT ?",
                (limit,),
            )
        ]

    # === table view ===

    def fetch_table_join_all(self) -> list[TableRow]:
        """
        Builds grading table rows with one joined query over students, questions, and scores.
        """
        questions = self.list_questions()
        rows = self._query(
            """
            SELECT s.id AS student_id, s.name AS student_name, q.id AS question_id, sc.score
            FROM students s
            CROSS JOIN questions q
            LEFT JOIN scores sc ON sc.student_id = s.id AND sc.question_id = q.id
            ORDER BY s.rowid, q.id
            """
        )

        grouped: dict[str, tuple[str, dict[int, int | None]]] = {}

        for row in rows:
            _, scores = grouped.setdefault(row["student_id"], (row["student_name"], {}))
            scores[row["question_id"]] = row["score"]

        if not questions:
            grouped = {s.id: (s.name, {}) for s in self.list_students()}

        return [
            TableRow(
                student_id=student_id,
                student_name=name,
                scores=[formatters.format_score_cell(scores.get(q.id)) for q in questions],
                final_display=formatters.format_final_score(
                    aggregation.compute_final(questions, scores)
                ),
            )
            for student_id, (name, scores) in grouped.items()
        ]

    # === transfer ===

    def export_gradebook(self) -> Response:
        """
        Reads the whole database into a new in-memory `Gradebook`.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if every table was read.
                - error (ErrorCode | str | None):
                    - `ErrorCode.BUSY` if another bulk operation is in flight.
                    - `ErrorCode.IO_ERROR` if the database cannot be read.
                    - `ErrorCode.INVALID_FIELD_VALUE` if a stored row fails model validation.
                - data (dict | None): On success, "gradebook" (Gradebook).

        Notes:
            - The returned gradebook has no `save_path` and no unsaved changes.
        """
        try:
            with self._gate.hold("export"):
                payload = {
                    "save_path": None,
                    "questions": [
                        dict(row)
                        for row in self._query(
                            "SELECT id, name, full_score, weight, comment FROM questions ORDER BY id"
                        )
                    ],
                    "students": [
                        dict(row) for row in self._query("SELECT id, name FROM students ORDER BY rowid")
                    ],
                    "scores": [
                        dict(row)
                        for row in self._query(
                            "SELECT student_id, question_id, score FROM scores ORDER BY rowid"
                        )
                    ],
                    "ratings": [
                        dict(row)
                        for row in self._query("SELECT label, min_score FROM ratings ORDER BY position")
                    ],
                    "completions": {
                        row["student_id"]: row["finished_at"]
                        for row in self._query("SELECT student_id, finished_at FROM grading_sessions")
                    },
                }

                gradebook = Gradebook.from_snapshot(payload)

        except OperationBusyError as e:
            return Response.busy(e)

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        except ValueError as e:
            return Response.fail(
                detail=f"Invalid stored record: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        return Response.succeed(
            detail="Gradebook read from database.",
            data={
                "gradebook": gradebook,
            },
        )

    def import_gradebook(self, gradebook: Gradebook) -> Response:
        """
        Replaces the database contents with an in-memory `Gradebook` in one transaction.

        Notes:
            - On failure the transaction is rolled back and the database keeps its previous contents.
        """
        try:
            with self._gate.hold("import"), self._transaction() as conn:
                for table in ("grading_sessions", "scores", "ratings", "questions", "students"):
                    conn.execute(f"DELETE FROM {table}")

                conn.executemany(
                    "INSERT INTO questions (id, name, full_score, weight, comment) VALUES (?, ?, ?, ?, ?)",
                    [_question_params(q) for q in gradebook.questions.values()],
                )
                conn.executemany(
                    "INSERT INTO students (id, name) VALUES (?, ?)",
                    [(s.id, s.name) for s in gradebook.students.values()],
                )
                conn.executemany(
                    "INSERT INTO scores (student_id, question_id, score) VALUES (?, ?, ?)",
                    [(c.student_id, c.question_id, c.score) for c in gradebook.scores.values()],
                )
                conn.executemany(
                    "INSERT INTO ratings (position, label, min_score) VALUES (?, ?, ?)",
                    [(i, r.label, r.min_score) for i, r in enumerate(gradebook.ratings)],
                )
                conn.executemany(
                    "INSERT INTO grading_sessions (student_id, finished_at) VALUES (?, ?)",
                    list(gradebook.completions.records.items()),
                )
                conn.execute(FILL_MATRIX_SQL)

        except OperationBusyError as e:
            return Response.busy(e)

        except sqlite3.Error as e:
            logger.error("Rolled back gradebook import into %s: %s", self._path, e)
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        logger.info("Wrote gradebook to %s", self._path)

        return Response.succeed(detail=f"Gradebook written to {self._path}.")

    # === helper methods ===

    def _execute_one(self, sql: str, params: tuple, success: str, not_found: str) -> Response:
        try:
            with self._transaction() as conn:
                cursor = conn.execute(sql, params)

        except sqlite3.Error as e:
            return Response.fail(detail=f"Database error: {e}", error=ErrorCode.IO_ERROR)

        if cursor.rowcount == 0:
            return Response.not_found(not_found)

        return Response.succeed(detail=success)


def _question_from_row(row: sqlite3.Row) -> Question:
    return Question(row["id"], row["name"], row["full_score"], row["weight"], row["comment"])


def _question_params(question: Question) -> tuple:
    return (question.id, question.name, question.full_score, question.weight, question.comment)


def _reject_batch(record_name: str, row_id: Any, reason: str) -> Response:
    logger.warning("Rejected %s batch at id=%r: %s", record_name, row_id, reason)

    return Response.fail(
        detail=f"Invalid {record_name}: id={row_id!r} - {reason}. No records were imported.",
        error=ErrorCode.VALIDATION_FAILED,
        data={
            "id": row_id,
        },
    )


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
