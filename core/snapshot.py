# core/snapshot.py

"""
Whole-gradebook JSON snapshots: atomic writes and diagnosable reads.

A snapshot is one JSON object:

    {
      "save_path": "/path/to/gradebook.json" | null,
      "questions": [...],
      "students": [...],
      "scores": [...],
      "ratings": [...],
      "completions": {...}        (optional)
    }

Writes never truncate the target in place. The payload goes to a temporary file in the same
directory, is flushed to disk, and then replaces the target with `os.replace()`.

Reads that fail produce a `SnapshotDiagnostic` naming the error category, a 1-based
line/column position, and an excerpt of the offending line. Categories:
    - "syntax": the text is not valid JSON
    - "data":   valid JSON with the wrong shape or field types
    - "eof":    the text ends early (empty or truncated file)
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

SNAPSHOT_SECTIONS = ("questions", "students", "scores", "ratings")

SYNTAX = "syntax"
DATA = "data"
EOF = "eof"

_CATEGORY_LABELS = {
    SYNTAX: "JSON syntax error",
    DATA: "JSON structure/type mismatch",
    EOF: "Unexpected end of file",
}

EXCERPT_WIDTH = 60


@dataclass(frozen=True)
class SnapshotDiagnostic:
    category: str
    line: int
    column: int
    excerpt: str
    message: str

    def format(self) -> str:
        label = _CATEGORY_LABELS.get(self.category, "JSON parse error")
        caret = " " * max(self.column - 1, 0) + "^"
        text = f"{label} at line {self.line}, column {self.column}: {self.message}"

        if self.excerpt:
            text += f"\n{self.excerpt}\n{caret}"

        if self.category == DATA:
            text += "\nHint: field name misspelled? wrong type? missing field?"

        return text

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "line": self.line,
            "column": self.column,
            "excerpt": self.excerpt,
            "message": self.message,
        }


class SnapshotError(Exception):
    def __init__(self, diagnostic: SnapshotDiagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.format())


class SnapshotShapeError(ValueError):
    """
    Raised while converting a parsed snapshot into records.

    Carries the section and list index of the offending entry so the error can be traced
    back to a position in the source text.
    """

    def __init__(self, message: str, section: str | None = None, index: int | None = None):
        self.section = section
        self.index = index
        super().__init__(message)


# === reading ===


def read_snapshot_text(path: str) -> str:
    """
    Reads a snapshot file as UTF-8 text.

    Raises:
        OSError: If the file cannot be opened or read.
        SnapshotError: If the bytes are not valid UTF-8.
    """
    with open(path, "rb") as f:
        raw = f.read()

    try:
        return raw.decode("utf-8")

    except UnicodeDecodeError as e:
        prefix = raw[: e.start].decode("utf-8", errors="replace")
        line = prefix.count("\n") + 1
        column = len(prefix) - (prefix.rfind("\n") + 1) + 1
        raise SnapshotError(
            SnapshotDiagnostic(
                category=SYNTAX,
                line=line,
                column=column,
                excerpt="",
                message=f"Invalid UTF-8: {e.reason}",
            )
        ) from None


def parse_snapshot(text: str) -> dict[str, Any]:
    """
    Parses snapshot text into a dictionary and checks the top-level shape.

    Args:
        text (str): The raw file contents.

    Returns:
        The parsed snapshot dictionary.

    Raises:
        SnapshotError: For empty, truncated, malformed, or wrongly shaped input.
    """
    if not text.strip():
        raise SnapshotError(
            SnapshotDiagnostic(EOF, 1, 1, "", "The snapshot file is empty.")
        )

    try:
        payload = json.loads(text)

    except json.JSONDecodeError as e:
        raise SnapshotError(_diagnose_decode_error(text, e)) from None

    if not isinstance(payload, dict):
        raise SnapshotError(
            _diagnostic_at(text, _first_content_offset(text), DATA, "Expected a JSON object at the top level.")
        )

    for section in SNAPSHOT_SECTIONS:
        if section not in payload:
            raise SnapshotError(
                _diagnostic_at(text, _first_content_offset(text), DATA, f"Missing field '{section}'.")
            )

        if not isinstance(payload[section], list):
            raise SnapshotError(
                diagnose_shape_error(
                    text,
                    SnapshotShapeError(f"Field '{section}' must be a list.", section),
                )
            )

    save_path = payload.get("save_path")

    if save_path is not None and not isinstance(save_path, str):
        raise SnapshotError(
            diagnose_shape_error(
                text,
                SnapshotShapeError("Field 'save_path' must be a string or null.", "save_path"),
            )
        )

    completions = payload.get("completions", {})

    if not isinstance(completions, dict):
        raise SnapshotError(
            diagnose_shape_error(
                text,
                SnapshotShapeError("Field 'completions' must be an object.", "completions"),
            )
        )

    return payload


def diagnose_shape_error(text: str, error: SnapshotShapeError) -> SnapshotDiagnostic:
    """
    Builds a diagnostic for a shape error, pointing at the offending entry where possible.

    Notes:
        - Falls back to the section key, and then to the start of the document, if the entry cannot be located.
    """
    offset = _locate(text, error.section, error.index)
    return _diagnostic_at(text, offset, DATA, str(error))


# === writing ===


def write_snapshot(path: str, payload: dict[str, Any]) -> None:
    """
    Serializes a snapshot and atomically replaces the file at `path`.

    Args:
        path (str): The target file path. Missing parent directories are created.
        payload (dict[str, Any]): The JSON-compatible snapshot dictionary.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written.
        TypeError, ValueError: If the payload cannot be serialized.

    Notes:
        - Serialization happens before anything touches the disk.
        - On any failure the temporary file is removed and the original file is left as it was.
        - An existing file keeps its permission bits.
    """
    text = json.dumps(payload, indent=2, ensure_ascii=False)

    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=parent
    )

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        if os.path.exists(path):
            os.chmod(temp_path, stat.S_IMODE(os.stat(path).st_mode))

        os.replace(temp_path, path)

    except BaseException:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise

    logger.info("Wrote snapshot to %s (%d bytes)", path, len(text.encode("utf-8")))


# === helper methods ===


def _diagnose_decode_error(text: str, e: json.JSONDecodeError) -> SnapshotDiagnostic:
    truncated = e.pos >= len(text.rstrip()) or e.msg.startswith("Unterminated string")
    category = EOF if truncated else SYNTAX

    return SnapshotDiagnostic(
        category=category,
        line=e.lineno,
        column=e.colno,
        excerpt=_excerpt(text, e.lineno, e.colno),
        message=e.msg,
    )


def _diagnostic_at(text: str, offset: int, category: str, message: str) -> SnapshotDiagnostic:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1

    return SnapshotDiagnostic(
        category=category,
        line=line,
        column=column,
        excerpt=_excerpt(text, line, column),
        message=message,
    )


def _excerpt(text: str, line: int, column: int) -> str:
    lines = text.splitlines()

    if not 1 <= line <= len(lines):
        return ""

    line_text = lines[line - 1]

    if len(line_text) <= EXCERPT_WIDTH:
        return line_text

    start = max(0, min(column - 1 - EXCERPT_WIDTH // 2, len(line_text) - EXCERPT_WIDTH))
    return line_text[start : start + EXCERPT_WIDTH]


def _first_content_offset(text: str) -> int:
    return len(text) - len(text.lstrip())


def _skip_ws(text: str, offset: int) -> int:
    while offset < len(text) and text[offset] in " \t\r\n":
        offset += 1
    return offset


def _member_offsets(text: str) -> dict[str, int]:
    """
    Maps each top-level key of a valid JSON object to the offset where its value starts.
    """
    decoder = json.JSONDecoder()
    offsets: dict[str, int] = {}

    offset = _skip_ws(text, 0)
    if offset >= len(text) or text[offset] != "{":
        return offsets

    offset = _skip_ws(text, offset + 1)

    while offset < len(text) and text[offset] != "}":
        key, offset = decoder.raw_decode(text, offset)
        offset = _skip_ws(text, offset) + 1  # ':'
        offset = _skip_ws(text, offset)
        offsets[key] = offset
        _, offset = decoder.raw_decode(text, offset)
        offset = _skip_ws(text, offset)
        if offset < len(text) and text[offset] == ",":
            offset = _skip_ws(text, offset + 1)

    return offsets


def _element_offset(text: str, list_offset: int, index: int) -> int | None:
    decoder = json.JSONDecoder()

    if list_offset >= len(text) or text[list_offset] != "[":
        return None

    offset = _skip_ws(text, list_offset + 1)
    position = 0

    while offset < len(text) and text[offset] != "]":
        if position == index:
            return offset
        _, offset = decoder.raw_decode(text, offset)
        offset = _skip_ws(text, offset)
        if offset < len(text) and text[offset] == ",":
            offset = _skip_ws(text, offset + 1)
        position += 1

    return None


def _locate(text: str, section: str | None, index: int | None) -> int:
    try:
        members = _member_offsets(text)

    except (json.JSONDecodeError, IndexError):
        return _first_content_offset(text)

    if section is None or section not in members:
        return _first_content_offset(text)

    section_offset = members[section]

    if index is None:
        return section_offset

    try:
        element_offset = _element_offset(text, section_offset, index)

    except (json.JSONDecodeError, IndexError):
        return section_offset

    return section_offset if element_offset is None else element_offset
