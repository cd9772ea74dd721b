# tests/test_relational.py

import pytest

from core.relational import SqliteGradebookStore
from core.response import ErrorCode
from models.gradebook import Gradebook
from models.question import Question


@pytest.fixture
def seeded_store(sqlite_store):
    """
    Same records as the `sample_gradebook` fixture, written through the store API.
    """
    store = sqlite_store

    store.insert_question("Warm-up", 10, 1.0)
    store.insert_question("Essay", 20, 3.0)

    store.insert_student("Ada Lovelace", "S001")
    store.insert_student("Grace Hopper", "S002")
    store.insert_student("Alan Turing", "S003")

    store.set_score("S001", 1, 8)
    store.set_score("S001", 2, 15)
    store.set_score("S002", 1, 10)

    return store


def score_row_count(store):
    return store._scalar("SELECT COUNT(*) FROM scores")


# === students and questions ===


def test_insert_fills_matrix(seeded_store):
    assert score_row_count(seeded_store) == 6
    assert seeded_store.fill_matrix() == 0


def test_insert_student_generates_id(seeded_store):
    response = seeded_store.insert_student("Katherine Johnson")

    assert response.success
    assert response.data["record"].id == "S004"


def test_insert_student_duplicate_id(seeded_store):
    response = seeded_store.insert_student("Someone", "S001")

    assert response.error is ErrorCode.DUPLICATE_ID
    assert seeded_store.list_students()[0].name == "Ada Lovelace"


def test_insert_student_invalid_name(sqlite_store):
    assert sqlite_store.insert_student("").error is ErrorCode.INVALID_FIELD_VALUE


def test_list_students_in_insertion_order(seeded_store):
    seeded_store.insert_student("Early Bird", "A001")

    assert [s.id for s in seeded_store.list_students()] == ["S001", "S002", "S003", "A001"]


def test_delete_student_cascades(seeded_store):
    seeded_store.mark_completed_once("S001")

    response = seeded_store.delete_student("S001")

    assert response.success
    assert score_row_count(seeded_store) == 4
    assert seeded_store.list_completion_times_latest(10) == []


def test_delete_unknown_student(seeded_store):
    response = seeded_store.delete_student("S999")

    assert response.error is ErrorCode.NOT_FOUND
    assert response.status_code == 404


def test_update_student_name(seeded_store):
    assert seeded_store.update_student_name("S002", "Grace B. Hopper").success
    assert seeded_store.update_student_name("S999", "Nobody").error is ErrorCode.NOT_FOUND
    assert seeded_store.update_student_name("S002", " ").error is ErrorCode.INVALID_FIELD_VALUE

    assert seeded_store.list_students()[1].name == "Grace B. Hopper"


def test_insert_question_duplicate_id(seeded_store):
    response = seeded_store.insert_question("Proof", 5, question_id=1)

    assert response.error is ErrorCode.DUPLICATE_ID


def test_update_question_clears_scores_that_no_longer_fit(seeded_store):
    response = seeded_store.update_question(Question(2, "Essay", 10, 3.0))

    assert response.success
    assert seeded_store.get_scores_for_student("S001") == {1: 8, 2: None}


def test_update_unknown_question(seeded_store):
    response = seeded_store.update_question(Question(9, "Nope", 10))

    assert response.error is ErrorCode.NOT_FOUND


def test_delete_question_cascades(seeded_store):
    assert seeded_store.delete_question(1).success
    assert score_row_count(seeded_store) == 3
    assert [q.id for q in seeded_store.list_questions()] == [2]


# === scores ===


def test_set_score_coerces_out_of_range(seeded_store):
    response = seeded_store.set_score("S003", 1, 11)

    assert response.success
    assert response.data["score"] is None
    assert seeded_store.get_scores_for_student("S003") == {1: None, 2: None}


def test_set_score_unknown_records(seeded_store):
    assert seeded_store.set_score("S999", 1, 5).error is ErrorCode.NOT_FOUND
    assert seeded_store.set_score("S001", 9, 5).error is ErrorCode.NOT_FOUND


def test_compute_final(seeded_store):
    assert seeded_store.compute_final("S001") == pytest.approx(76.25)
    assert seeded_store.compute_final("S002") is None


def test_count_completed_students(seeded_store):
    assert seeded_store.count_total_students() == 3
    assert seeded_store.count_completed_students() == 1

    seeded_store.set_score("S002", 2, 20)

    assert seeded_store.count_completed_students() == 2


def test_count_completed_ignores_zero_weight_questions(seeded_store):
    seeded_store.insert_question("Survey", 5, 0)

    assert seeded_store.count_completed_students() == 1


def test_count_completed_without_weighted_questions(sqlite_store):
    sqlite_store.insert_student("Ada Lovelace", "S001")

    assert sqlite_store.count_completed_students() == 0


# === bulk upsert ===


def test_upsert_students(seeded_store):
    response = seeded_store.upsert_students(
        [
            {"id": "S001", "name": "Ada Lovelace"},
            {"id": "S002", "name": "Grace B. Hopper"},
            {"id": "S004", "name": "Katherine Johnson"},
        ]
    )

    assert response.success
    assert response.data["affected"] == 2
    assert score_row_count(seeded_store) == 8


def test_upsert_students_invalid_row_writes_nothing(seeded_store):
    response = seeded_store.upsert_students(
        [{"id": "S004", "name": "Katherine Johnson"}, {"id": "S005", "name": ""}]
    )

    assert response.error is ErrorCode.VALIDATION_FAILED
    assert response.data["id"] == "S005"
    assert seeded_store.count_total_students() == 3


def test_upsert_failing_mid_transaction_rolls_back(seeded_store, monkeypatch):
    monkeypatch.setattr("core.relational.FILL_MATRIX_SQL", "INSERT INTO missing_table VALUES (1)")

    response = seeded_store.upsert_students(
        [
            {"id": "S002", "name": "Grace B. Hopper"},
            {"id": "S004", "name": "Katherine Johnson"},
        ]
    )

    assert response.error is ErrorCode.IO_ERROR
    assert [s.id for s in seeded_store.list_students()] == ["S001", "S002", "S003"]
    assert seeded_store.list_students()[1].name == "Grace Hopper"
    assert score_row_count(seeded_store) == 6


def test_upsert_questions_clears_scores(seeded_store):
    response = seeded_store.upsert_questions(
        [
            {"id": 2, "name": "Essay", "full_score": 10, "weight": 3.0},
            {"id": 3, "name": "Proof", "full_score": 5, "weight": 1.0},
        ]
    )

    assert response.success
    assert response.data["affected"] == 2
    assert seeded_store.get_scores_for_student("S001") == {1: 8, 2: None, 3: None}
    assert score_row_count(seeded_store) == 9


def test_upsert_identical_rows_are_not_counted(seeded_store):
    response = seeded_store.upsert_questions(
        [{"id": 1, "name": "Warm-up", "full_score": 10, "weight": 1.0, "comment": ""}]
    )

    assert response.data["affected"] == 0


def test_upsert_rejected_while_busy(seeded_store):
    with seeded_store._gate.hold("import"):
        response = seeded_store.upsert_students([{"id": "S004", "name": "K"}])

    assert response.error is ErrorCode.BUSY
    assert response.status_code == 409
    assert seeded_store.count_total_students() == 3


# === search ===


def test_search_students(seeded_store):
    assert [s.id for s in seeded_store.search_students("s00", 10)] == ["S001", "S002", "S003"]
    assert [s.id for s in seeded_store.search_students("Grace", 10)] == ["S002"]
    assert [s.id for s in seeded_store.search_students("grace", 10)] == ["S002"]
    assert seeded_store.search_students("  ", 10) == []
    assert len(seeded_store.search_students("S", 2)) == 2


def test_search_students_matches_in_memory_rule(seeded_store, sample_gradebook):
    seeded_store.insert_student("Élodie Durand", "K001")
    sample_gradebook.add_student("Élodie Durand", "K001")

    for query in ["s00", "ALAN", "élodie", "Élodie", "e D"]:
        expected = sample_gradebook.find_student_by_query(query).data["records"]
        assert seeded_store.search_students(query, 30) == expected


def test_search_students_treats_wildcards_literally(seeded_store):
    seeded_store.insert_student("100% Effort", "P_1")

    assert [s.id for s in seeded_store.search_students("%", 10)] == ["P_1"]
    assert [s.id for s in seeded_store.search_students("_", 10)] == ["P_1"]


def test_search_index_reads_current_students(seeded_store):
    index = seeded_store.search_index(10)
    index.search("Alan")

    assert index.confirm() == "S003"

    seeded_store.delete_student("S003")

    with pytest.raises(LookupError):
        index.confirm()


# === completion ===


def test_mark_completed_once(seeded_store):
    first = seeded_store.mark_completed_once("S001", "2025-01-01T09:00:00.000+00:00")
    second = seeded_store.mark_completed_once("S001", "2025-01-02T09:00:00.000+00:00")

    assert first.success and first.data["created"]
    assert second.success and not second.data["created"]

    assert seeded_store.list_completion_times_latest(5) == ["2025-01-01T09:00:00.000+00:00"]


def test_mark_completed_once_unknown_student(seeded_store):
    response = seeded_store.mark_completed_once("nobody")

    assert response.error is ErrorCode.NOT_FOUND
    assert response.status_code == 404
    assert seeded_store.list_completion_times_latest(5) == []


def test_list_completion_times_latest(seeded_store):
    seeded_store.mark_completed_once("S001", "2025-01-01T09:00:00.000+00:00")
    seeded_store.mark_completed_once("S002", "2025-01-01T09:05:00.000+00:00")
    seeded_store.mark_completed_once("S003", "2025-01-01T09:02:00.000+00:00")

    assert seeded_store.list_completion_times_latest(2) == [
        "2025-01-01T09:05:00.000+00:00",
        "2025-01-01T09:02:00.000+00:00",
    ]
    assert seeded_store.list_completion_times_latest(0) == []


# === table view ===


def test_fetch_table_join_all(seeded_store):
    rows = seeded_store.fetch_table_join_all()

    assert [r.student_id for r in rows] == ["S001", "S002", "S003"]
    assert rows[0].scores == ["8", "15"]
    assert rows[0].final_display == "76.2500"
    assert rows[1].scores == ["10", ""]
    assert rows[1].final_display == ""


def test_fetch_table_without_questions(sqlite_store):
    sqlite_store.insert_student("Ada Lovelace", "S001")

    rows = sqlite_store.fetch_table_join_all()

    assert len(rows) == 1
    assert rows[0].scores == []
    assert rows[0].final_display == ""


def test_table_matches_in_memory_gradebook(seeded_store, sample_gradebook):
    assert seeded_store.fetch_table_join_all() == sample_gradebook.table_rows()


# === transfer ===


def test_export_gradebook(seeded_store):
    seeded_store.mark_completed_once("S001", "2025-01-01T09:00:00.000+00:00")

    response = seeded_store.export_gradebook()

    assert response.success
    gb = response.data["gradebook"]
    assert list(gb.students) == ["S001", "S002", "S003"]
    assert gb.get_score("S001", 2) == 15
    assert gb.compute_final("S001") == pytest.approx(76.25)
    assert gb.completions.finished_at("S001") == "2025-01-01T09:00:00.000+00:00"
    assert not gb.has_unsaved_changes


def test_import_then_export_round_trip(sqlite_store, sample_gradebook):
    sample_gradebook.mark_completed_if_done("S001")

    assert sqlite_store.import_gradebook(sample_gradebook).success

    exported = sqlite_store.export_gradebook().data["gradebook"]

    assert list(exported.students.values()) == list(sample_gradebook.students.values())
    assert list(exported.questions.values()) == list(sample_gradebook.questions.values())
    assert exported.final_scores() == sample_gradebook.final_scores()
    assert exported.ratings == sample_gradebook.ratings
    assert exported.completions.records == sample_gradebook.completions.records


def test_import_replaces_previous_contents(seeded_store):
    gb = Gradebook.create().data["gradebook"]
    gb.add_student("Only One", "X1")

    assert seeded_store.import_gradebook(gb).success

    assert [s.id for s in seeded_store.list_students()] == ["X1"]
    assert seeded_store.list_questions() == []
    assert score_row_count(seeded_store) == 0


def test_import_rejected_while_busy(seeded_store, empty_gradebook):
    with seeded_store._gate.hold("export"):
        response = seeded_store.import_gradebook(empty_gradebook)

    assert response.error is ErrorCode.BUSY
    assert seeded_store.count_total_students() == 3


def test_store_persists_across_connections(tmp_path):
    path = str(tmp_path / "gradebook.db")

    with SqliteGradebookStore(path) as store:
        store.insert_student("Ada Lovelace", "S001")

    with SqliteGradebookStore(path) as store:
        assert [s.id for s in store.list_students()] == ["S001"]
