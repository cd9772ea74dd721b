# cli/menus/grading_menu.py

"""
Grade Students menu for the ScoreMatrix CLI.

A student is picked through the incremental search, then scores are entered question by
question as raw text. Blank, non-numeric, or out-of-range input leaves the cell ungraded.
The first time a student's final score becomes defined, the completion time is recorded.
"""

from typing import cast

import cli.menu_helpers as helpers
import cli.model_formatters as model_formatters
import core.formatters as formatters
from cli.menu_helpers import MenuSignal
from models.gradebook import Gradebook
from models.question import Question
from models.student import Student

RECENT_COMPLETIONS = 5


def run(gradebook: Gradebook, search_limit: int | None = None) -> None:
    """
    Top-level loop with dispatch for the Grade Students menu.

    Args:
        gradebook (Gradebook): The active `Gradebook`.
        search_limit (int | None): Maximum number of search results. Defaults to the gradebook's search limit.

    Raises:
        RuntimeError: If the menu response is unrecognized.
    """
    title = formatters.format_banner_text("Grade Students")
    options = [
        ("Search and Grade a Student", lambda: search_and_grade(gradebook, search_limit)),
        ("View Grading Table", lambda: view_table(gradebook)),
        ("View Progress", lambda: view_progress(gradebook)),
    ]
    zero_option = "Return to Course Manager menu"

    helpers.run_menu(title, options, zero_option)

    helpers.returning_to("Course Manager menu")


# === grade student ===


def search_and_grade(gradebook: Gradebook, search_limit: int | None = None) -> None:
    if not gradebook.questions:
        print("\nThere are no questions to grade yet.")
        return

    student = helpers.find_student_by_search(gradebook, search_limit)

    if student is MenuSignal.CANCEL:
        return
    student = cast(Student, student)

    grade_student(student, gradebook)


def grade_student(student: Student, gradebook: Gradebook) -> None:
    """
    Interface for entering the scores of one `Student`.

    Notes:
        - "Grade all questions" walks every question in order; blank input clears a score, "-" keeps it.
        - Completion is checked after every change.
    """
    title = formatters.format_banner_text(f"Grading {student.id} {student.name}")
    options = [
        ("Grade all questions in order", grade_all_questions),
        ("Grade a single question", grade_single_question),
        ("Clear all scores", clear_scores),
    ]
    zero_option = "Finish grading this student"

    helpers.run_menu(
        title,
        options,
        zero_option,
        student,
        gradebook,
        before=lambda: print_student_scores(student, gradebook),
    )

    helpers.returning_to("Grade Students menu")


def print_student_scores(student: Student, gradebook: Gradebook) -> None:
    print(f"\n{model_formatters.format_student_multiline(student, gradebook)}")

    for question in gradebook.questions.values():
        score = gradebook.get_score(student.id, question.id)
        print(model_formatters.format_score_line(question, score))


def grade_all_questions(student: Student, gradebook: Gradebook) -> None:
    for question in gradebook.questions.values():
        raw = helpers.prompt_user_input(
            f"{model_formatters.format_score_line(question, gradebook.get_score(student.id, question.id))}\n"
            "Enter score (blank to clear, - to keep):"
        )

        if raw == "-":
            continue

        record_score(student, question, raw, gradebook)


def grade_single_question(student: Student, gradebook: Gradebook) -> None:
    question = helpers.find_question_from_list(gradebook)

    if question is MenuSignal.CANCEL:
        return
    question = cast(Question, question)

    raw = helpers.prompt_user_input(
        f"Enter score for {question.name} out of {question.full_score} (blank to clear):"
    )

    record_score(student, question, raw, gradebook)


def record_score(student: Student, question: Question, raw: str, gradebook: Gradebook) -> None:
    """
    Stores a raw score entry and reports a newly completed student.
    """
    gradebook_response = gradebook.set_score_from_input(student.id, question.id, raw)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
        return

    if raw and gradebook_response.data["score"] is None:
        print(f"\n'{raw}' is not a score between 0 and {question.full_score}; left ungraded.")

    check_completion(student, gradebook)


def check_completion(student: Student, gradebook: Gradebook) -> None:
    gradebook_response = gradebook.mark_completed_if_done(student.id)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
        return

    if gradebook_response.data["marked"]:
        final = formatters.format_final_score(gradebook.compute_final(student.id))
        print(f"\nGrading complete for {student.name}: final score {final}.")


def clear_scores(student: Student, gradebook: Gradebook) -> None:
    if not helpers.confirm_action(f"Clear every score for {student.name}?"):
        helpers.returning_without_changes()
        return

    gradebook_response = gradebook.clear_scores_for_student(student.id)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
    else:
        print(f"\n{gradebook_response.detail}")


# === views ===


def view_table(gradebook: Gradebook) -> None:
    banner = formatters.format_banner_text("Grading Table")
    print(f"\n{banner}")

    if not gradebook.students:
        print("There are no students yet.")
        return

    print(model_formatters.format_table(gradebook.table_rows(), list(gradebook.questions.values())))


def view_progress(gradebook: Gradebook) -> None:
    total, completed = gradebook.progress()
    ratio = completed / total if total else 0.0

    print(f"\nGraded: {completed} / {total} ({formatters.format_percent(ratio)})")

    recent = gradebook.completions.list_recent(RECENT_COMPLETIONS)

    if recent:
        print("\nMost recent completions:")
        helpers.display_results(recent)
