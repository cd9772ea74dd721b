# core/row_reader.py

"""
Reads student and question rows from CSV files for bulk import.

Both formats have a header row, which is skipped. Fields are trimmed.
    - students:  id, name
    - questions: id, name, full_score, weight[, comment]

Rows are only parsed here; range checks (empty names, negative weights, etc.) belong to the
Gradebook's batch validation so that a bad file is rejected as a whole. Errors carry the
1-based line number in the file, counting the header as line 1.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RowReadError(ValueError):
    def __init__(self, line: int, message: str):
        self.line = line
        super().__init__(f"line {line}: {message}")


@dataclass(frozen=True)
class StudentRow:
    id: str
    name: str


@dataclass(frozen=True)
class QuestionRow:
    id: int
    name: str
    full_score: int
    weight: float
    comment: str = ""


def read_student_rows(path: str) -> list[StudentRow]:
    """
    Reads `id, name` rows from a CSV file.

    Raises:
        OSError: If the file cannot be opened.
        RowReadError: If a row is missing a field.
    """
    rows = []

    for line, record in _records(path):
        rows.append(
            StudentRow(
                id=_field(record, 0, "id", line),
                name=_field(record, 1, "name", line),
            )
        )

    logger.info("Read %d student row(s) from %s", len(rows), path)
    return rows


def read_question_rows(path: str) -> list[QuestionRow]:
    """
    Reads `id, name, full_score, weight[, comment]` rows from a CSV file.

    Raises:
        OSError: If the file cannot be opened.
        RowReadError: If a row is missing a field or a numeric field cannot be parsed.
    """
    rows = []

    for line, record in _records(path):
        rows.append(
            QuestionRow(
                id=_parse(int, _field(record, 0, "id", line), "id", line),
                name=_field(record, 1, "name", line),
                full_score=_parse(
                    int, _field(record, 2, "full_score", line), "full_score", line
                ),
                weight=_parse(float, _field(record, 3, "weight", line), "weight", line),
                comment=record[4] if len(record) > 4 else "",
            )
        )

    logger.info("Read %d question row(s) from %s", len(rows), path)
    return rows


def preview_rows(rows: list[T], n: int) -> list[T]:
    return rows[: max(n, 0)]


# === helper methods ===


def _records(path: str):
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)

        try:
            next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise RowReadError(1, f"csv read error: {e}") from None

        while True:
            try:
                record = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                raise RowReadError(reader.line_num, f"csv read error: {e}") from None

            record = [field.strip() for field in record]

            if not any(record):
                continue

            yield reader.line_num, record


def _field(record: list[str], index: int, name: str, line: int) -> str:
    if index >= len(record):
        raise RowReadError(line, f"missing {name}")
    return record[index]


def _parse(kind: type[T], text: str, name: str, line: int) -> T:
    try:
        return kind(text)  # type: ignore[call-arg]
    except ValueError:
        raise RowReadError(line, f"invalid {name}: {text!r}") from None
