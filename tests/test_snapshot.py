# tests/test_snapshot.py

import json
import os
import stat

import pytest

from core import snapshot
from models.gradebook import Gradebook


def minimal_payload(**overrides):
    payload = {
        "save_path": None,
        "questions": [],
        "students": [],
        "scores": [],
        "ratings": [],
    }
    payload.update(overrides)
    return payload


# === parsing ===


def test_parse_valid_snapshot():
    payload = snapshot.parse_snapshot(json.dumps(minimal_payload()))

    assert payload["students"] == []


def test_parse_empty_file_is_eof():
    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.parse_snapshot("")

    assert excinfo.value.diagnostic.category == snapshot.EOF
    assert excinfo.value.diagnostic.line == 1


def test_parse_truncated_file_is_eof():
    text = json.dumps(minimal_payload(), indent=2)[:-10]

    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.parse_snapshot(text)

    assert excinfo.value.diagnostic.category == snapshot.EOF


def test_parse_syntax_error_position():
    text = '{\n  "questions": [1,, 2]\n}'

    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.parse_snapshot(text)

    diagnostic = excinfo.value.diagnostic
    assert diagnostic.category == snapshot.SYNTAX
    assert diagnostic.line == 2
    assert diagnostic.column == 19
    assert diagnostic.excerpt == '  "questions": [1,, 2]'


def test_parse_missing_section_is_data_error():
    payload = minimal_payload()
    del payload["ratings"]

    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.parse_snapshot(json.dumps(payload))

    assert excinfo.value.diagnostic.category == snapshot.DATA
    assert "ratings" in excinfo.value.diagnostic.message


def test_parse_section_with_wrong_type_points_at_value():
    text = json.dumps(minimal_payload(students={"id": "S001"}), indent=2)

    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.parse_snapshot(text)

    diagnostic = excinfo.value.diagnostic
    lines = text.splitlines()
    students_line = next(i for i, line in enumerate(lines) if '"students"' in line) + 1

    assert diagnostic.category == snapshot.DATA
    assert diagnostic.line == students_line


def test_diagnose_record_error_points_at_entry():
    payload = minimal_payload(
        students=[
            {"id": "S001", "name": "Ada Lovelace"},
            {"id": 7, "name": "Grace Hopper"},
        ]
    )
    text = json.dumps(payload, indent=2)

    with pytest.raises(snapshot.SnapshotShapeError) as excinfo:
        Gradebook.from_snapshot(snapshot.parse_snapshot(text))

    diagnostic = snapshot.diagnose_shape_error(text, excinfo.value)
    lines = text.splitlines()

    assert excinfo.value.section == "students"
    assert excinfo.value.index == 1
    assert diagnostic.category == snapshot.DATA
    # the opening brace sits on the line above the bad id
    assert diagnostic.line == lines.index('      "id": 7,')
    assert diagnostic.column == 5
    assert diagnostic.excerpt == "    {"


def test_diagnostic_format_includes_caret_and_hint():
    diagnostic = snapshot.SnapshotDiagnostic(snapshot.DATA, 3, 5, "    {", "Invalid entry")

    text = diagnostic.format()

    assert "line 3, column 5" in text
    assert "    {\n    ^" in text
    assert "Hint:" in text


def test_read_invalid_utf8(tmp_path):
    path = tmp_path / "bad.json"
    path.write_bytes(b'{\n  "x": "\xff"\n}')

    with pytest.raises(snapshot.SnapshotError) as excinfo:
        snapshot.read_snapshot_text(str(path))

    assert excinfo.value.diagnostic.category == snapshot.SYNTAX
    assert excinfo.value.diagnostic.line == 2


# === writing ===


def test_write_creates_parent_directories(tmp_path):
    path = tmp_path / "a" / "b" / "gradebook.json"

    snapshot.write_snapshot(str(path), minimal_payload())

    assert json.loads(path.read_text(encoding="utf-8")) == minimal_payload()


def test_write_replaces_existing_file(tmp_path):
    path = tmp_path / "gradebook.json"
    path.write_text("old", encoding="utf-8")

    snapshot.write_snapshot(str(path), minimal_payload())

    assert json.loads(path.read_text(encoding="utf-8"))["questions"] == []


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_write_keeps_existing_permissions(tmp_path):
    path = tmp_path / "gradebook.json"
    path.write_text("old", encoding="utf-8")
    os.chmod(path, 0o644)

    snapshot.write_snapshot(str(path), minimal_payload())

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


def test_failed_write_leaves_original_intact(tmp_path):
    path = tmp_path / "gradebook.json"
    path.write_text("original", encoding="utf-8")

    with pytest.raises(TypeError):
        snapshot.write_snapshot(str(path), {"questions": [object()]})

    assert path.read_text(encoding="utf-8") == "original"
    assert os.listdir(tmp_path) == ["gradebook.json"]


def test_write_keeps_non_ascii_text(tmp_path):
    path = tmp_path / "gradebook.json"

    snapshot.write_snapshot(str(path), minimal_payload(students=[{"id": "S1", "name": "Zoë"}]))

    assert "Zoë" in path.read_text(encoding="utf-8")
