# cli/menus/students_menu.py

"""
Manage Students menu for the ScoreMatrix CLI.

Adding, renaming, removing, and bulk-importing students all go through the `Gradebook`, which
keeps the score matrix complete: a new student gets one empty cell per question, and removing a
student drops its row of scores.
"""

from typing import cast

import cli.menu_helpers as helpers
import cli.model_formatters as model_formatters
import core.formatters as formatters
import core.row_reader as row_reader
from cli.menu_helpers import MenuSignal
from cli.path_utils import resolve_existing_file
from models.gradebook import Gradebook
from models.student import Student

IMPORT_PREVIEW_ROWS = 5


def run(gradebook: Gradebook) -> None:
    title = formatters.format_banner_text("Manage Students")
    options = [
        ("Add Student", add_student),
        ("Rename Student", find_and_rename_student),
        ("Remove Student", find_and_remove_student),
        ("Import Students from CSV", import_students),
        ("View Individual Student", view_individual_student),
        ("View All Students", view_all_students),
    ]

    helpers.run_menu(title, options, "Return to Course Manager menu", gradebook)

    helpers.returning_to("Course Manager menu")


# === add student ===


def add_student(gradebook: Gradebook) -> None:
    """
    Adds students one after another until the user stops.

    A blank ID lets the gradebook derive the next one from the last student added,
    keeping its zero-padding (S009 is followed by S010).
    """
    keep_going = True

    while keep_going:
        name = prompt_name_input_or_cancel()

        if name is MenuSignal.CANCEL:
            break

        student_id = helpers.prompt_user_input_or_none(
            "Enter student ID (leave blank to generate one):"
        )

        add_response = gradebook.add_student(cast(str, name), student_id)

        if helpers.report_response(add_response, f"{name} was not added."):
            print(model_formatters.format_student_oneline(add_response.data["record"]))

        keep_going = helpers.confirm_action("Add another student?")

    helpers.returning_to("Manage Students menu")


def prompt_name_input_or_cancel() -> str | MenuSignal:
    """
    Asks for a student name until it validates. Blank input cancels.
    """
    while True:
        name_input = helpers.prompt_user_input_or_cancel(
            "Enter student name (leave blank to cancel):"
        )

        if name_input is MenuSignal.CANCEL:
            return name_input

        try:
            return Student.validate_name_input(name_input)

        except (TypeError, ValueError) as e:
            print(f"\n[ERROR] {e} Please try again.")


# === rename and remove ===


def find_and_rename_student(gradebook: Gradebook) -> None:
    student = prompt_find_student(gradebook)

    if student is MenuSignal.CANCEL:
        return

    student = cast(Student, student)
    new_name = prompt_name_input_or_cancel()

    if new_name is MenuSignal.CANCEL:
        helpers.returning_without_changes()
        return

    print(f"\n{student.id}: {student.name} -> {new_name}")

    if not helpers.confirm_make_change():
        helpers.returning_without_changes()
        return

    helpers.report_response(
        gradebook.update_student_name(student.id, cast(str, new_name)),
        "Student name was not updated.",
    )


def find_and_remove_student(gradebook: Gradebook) -> None:
    student = prompt_find_student(gradebook)

    if student is MenuSignal.CANCEL:
        return

    student = cast(Student, student)

    helpers.caution_banner()
    print("This student and every score recorded for them will be deleted:")
    print(model_formatters.format_student_multiline(student, gradebook))

    if not helpers.confirm_action("Delete this student? This cannot be undone."):
        helpers.returning_without_changes()
        return

    helpers.report_response(gradebook.remove_student(student.id), "Student was not removed.")


# === import students ===


def import_students(gradebook: Gradebook) -> None:
    """
    Previews a student CSV file (header `id, name`) and upserts it after confirmation.

    Existing IDs are renamed, new IDs are added, and one bad row rejects the whole file.
    """
    path_input = helpers.prompt_path_or_none("Enter path to the student CSV file")

    if path_input is None:
        helpers.returning_without_changes()
        return

    path = resolve_existing_file(path_input)

    if path is None:
        print(f"\nFile not found: {path_input}")
        return

    try:
        rows = row_reader.read_student_rows(path)

    except (row_reader.RowReadError, OSError, UnicodeDecodeError) as e:
        print(f"\n[ERROR] Could not read {path}: {e}")
        return

    print(f"\nRead {len(rows)} row(s). Preview:")
    helpers.display_results(
        row_reader.preview_rows(rows, IMPORT_PREVIEW_ROWS),
        formatter=lambda row: f"{row.id:<12} | {row.name}",
    )

    if not helpers.confirm_action("Import these students?"):
        helpers.returning_without_changes()
        return

    helpers.report_response(gradebook.upsert_students(rows))


# === view students ===


def view_individual_student(gradebook: Gradebook) -> None:
    student = prompt_find_student(gradebook)

    if student is not MenuSignal.CANCEL:
        print(model_formatters.format_student_multiline(cast(Student, student), gradebook))


def view_all_students(gradebook: Gradebook) -> None:
    print(f"\n{formatters.format_banner_text('All Students')}")

    if not gradebook.students:
        print("There are no students yet.")
        return

    helpers.display_results(
        gradebook.students.values(), formatter=model_formatters.format_student_oneline
    )


# === finder ===


def prompt_find_student(gradebook: Gradebook) -> Student | MenuSignal:
    """
    Lets the user pick a student either by search or from the full list.

    Returns:
        The chosen `Student`, or `MenuSignal.CANCEL`.
    """
    menu_response = helpers.display_menu(
        formatters.format_banner_text("Student Selection"),
        [
            ("Search for a student", helpers.find_student_by_search),
            ("Select from all students", helpers.find_student_from_list),
        ],
        "Return and cancel",
    )

    if menu_response is MenuSignal.EXIT:
        return MenuSignal.CANCEL

    return menu_response(gradebook)
