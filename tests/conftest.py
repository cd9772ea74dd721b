# tests/conftest.py

import datetime

import pytest

from core.relational import SqliteGradebookStore
from models.gradebook import Gradebook
from models.question import Question
from models.student import Student


@pytest.fixture
def sample_student():
    return Student("S001", "Ada Lovelace")


@pytest.fixture
def sample_question():
    return Question(1, "Warm-up", 10, 1.0, "short answers")


@pytest.fixture
def empty_gradebook():
    gradebook_response = Gradebook.create()
    return gradebook_response.data["gradebook"]


@pytest.fixture
def sample_gradebook(empty_gradebook):
    """
    Two weighted questions (10 points x1, 20 points x3) and three students.
    S001 is fully graded (final 76.25), S002 is half graded, S003 is ungraded.
    """
    gb = empty_gradebook

    gb.add_question("Warm-up", 10, 1.0)
    gb.add_question("Essay", 20, 3.0)

    gb.add_student("Ada Lovelace", "S001")
    gb.add_student("Grace Hopper", "S002")
    gb.add_student("Alan Turing", "S003")

    gb.set_score("S001", 1, 8)
    gb.set_score("S001", 2, 15)
    gb.set_score("S002", 1, 10)

    gb.mark_saved()
    return gb


@pytest.fixture
def snapshot_path(tmp_path):
    return str(tmp_path / "gradebook.json")


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqliteGradebookStore(str(tmp_path / "gradebook.db"))
    yield store
    store.close()


@pytest.fixture
def fixed_clock():
    """
    A clock that advances one minute per call, starting at 2025-01-01 09:00 UTC.
    """
    start = datetime.datetime(2025, 1, 1, 9, 0, tzinfo=datetime.timezone.utc)
    ticks = iter(range(10_000))

    def clock():
        return start + datetime.timedelta(minutes=next(ticks))

    return clock
