# tests/test_model_formatters.py

import cli.model_formatters as model_formatters
from core.rating import RatingStats


def test_format_student_oneline(sample_student):
    assert model_formatters.format_student_oneline(sample_student) == "S001         | Ada Lovelace"


def test_format_student_multiline(sample_gradebook):
    text = model_formatters.format_student_multiline(sample_gradebook.students["S001"], sample_gradebook)

    assert "... Final: 76.2500" in text
    assert "... Rating: B" in text
    assert "... Completed: [NOT YET]" in text


def test_format_student_multiline_incomplete(sample_gradebook):
    text = model_formatters.format_student_multiline(sample_gradebook.students["S003"], sample_gradebook)

    assert "... Final: [INCOMPLETE]" in text
    assert "... Rating: [UNRATED]" in text


def test_format_question_multiline_excluded_weight(sample_question):
    sample_question.weight = 0

    text = model_formatters.format_question_multiline(sample_question)

    assert "... Weight: [EXCLUDED]" in text
    assert "... Comment: short answers" in text


def test_format_score_line(sample_question):
    assert model_formatters.format_score_line(sample_question, None).endswith("   - / 10")
    assert model_formatters.format_score_line(sample_question, 7).endswith("   7 / 10")


def test_format_table(sample_gradebook):
    table = model_formatters.format_table(
        sample_gradebook.table_rows(), list(sample_gradebook.questions.values())
    )
    lines = table.splitlines()

    assert lines[0].split(" | ")[0].strip() == "ID"
    assert set(lines[1]) <= {"-", "+"}
    assert "76.2500" in lines[2]
    assert len(lines) == 5


def test_format_rating_stats_line():
    line = model_formatters.format_rating_stats_line(RatingStats("B", 70, 1, 1 / 3))

    assert line == "B        | >=  70 |    1 |  33.3%"


def test_format_histogram_labels():
    lines = model_formatters.format_histogram([0, 0, 1, 2], 30).splitlines()

    assert lines[0].startswith("  0-29 ")
    assert lines[3].startswith(" 90-100")
    assert lines[3].endswith("#" * 30)


def test_format_histogram_single_value_bin():
    lines = model_formatters.format_histogram([0] * 20 + [1], 5).splitlines()

    assert lines[-1].startswith("100")
