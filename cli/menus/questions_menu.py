# cli/menus/questions_menu.py

"""
Manage Questions menu for the ScoreMatrix CLI.

Provides adding, editing, removing, importing, and viewing `Question` records.
Every change goes through the `Gradebook`, which keeps the score matrix complete.
"""

from collections.abc import Callable
from typing import cast

import cli.menu_helpers as helpers
import cli.model_formatters as model_formatters
import core.formatters as formatters
import core.row_reader as row_reader
from cli.menu_helpers import MenuSignal
from cli.path_utils import resolve_existing_file
from models.gradebook import Gradebook
from models.question import Question

IMPORT_PREVIEW_ROWS = 5


def run(gradebook: Gradebook) -> None:
    """
    Top-level loop with dispatch for the Manage Questions menu.

    Args:
        gradebook (Gradebook): The active `Gradebook`.

    Raises:
        RuntimeError: If the menu response is unrecognized.
    """
    title = formatters.format_banner_text("Manage Questions")
    options = [
        ("Add Question", add_question),
        ("Edit Question", find_and_edit_question),
        ("Remove Question", find_and_remove_question),
        ("Import Questions from CSV", import_questions),
        ("View All Questions", view_all_questions),
    ]
    zero_option = "Return to Course Manager menu"

    helpers.run_menu(title, options, zero_option, gradebook)

    helpers.returning_to("Course Manager menu")


# === add question ===


def add_question(gradebook: Gradebook) -> None:
    """
    Loops a prompt to add new questions to the gradebook.

    Notes:
        - The question ID is assigned by the gradebook.
        - Weight defaults to 1 when left blank. A weight of 0 excludes the question from final scores.
    """
    while True:
        name = helpers.prompt_user_input_or_cancel(
            "Enter question name (leave blank to cancel):"
        )

        if name is MenuSignal.CANCEL:
            break
        name = cast(str, name)

        full_score = helpers.prompt_int_or_cancel(
            "Enter full score (leave blank to cancel):"
        )

        if full_score is MenuSignal.CANCEL:
            break
        full_score = cast(int, full_score)

        weight = helpers.prompt_float_or_default(
            "Enter weight (leave blank for 1, 0 to exclude from the final score):"
        )
        weight = 1.0 if weight is MenuSignal.DEFAULT else cast(float, weight)

        comment = helpers.prompt_user_input_or_none("Enter a comment (optional):") or ""

        gradebook_response = gradebook.add_question(name, full_score, weight, comment)

        if not gradebook_response.success:
            helpers.display_response_failure(gradebook_response)
            print(f"\n{name} was not added.")

        else:
            print(f"\n{gradebook_response.detail}")
            print(model_formatters.format_question_oneline(gradebook_response.data["record"]))

        if not helpers.confirm_action(
            "Would you like to continue adding new questions?"
        ):
            break

    helpers.returning_to("Manage Questions menu")


# === edit question ===


def get_editable_fields() -> list[tuple[str, Callable[[Question, Gradebook], None]]]:
    """
    Helper method to organize the list of editable fields and their related functions.
    """
    return [
        ("Name", edit_name_and_confirm),
        ("Full Score", edit_full_score_and_confirm),
        ("Weight", edit_weight_and_confirm),
        ("Comment", edit_comment_and_confirm),
    ]


def find_and_edit_question(gradebook: Gradebook) -> None:
    question = helpers.find_question_from_list(gradebook)

    if question is MenuSignal.CANCEL:
        return
    question = cast(Question, question)

    edit_question(question, gradebook)


def edit_question(question: Question, gradebook: Gradebook) -> None:
    """
    Interface for editing fields of a `Question` record.

    Raises:
        RuntimeError: If the menu response is unrecognized.

    Notes:
        - All edit operations are dispatched through `Gradebook` to ensure proper mutation and state tracking.
    """
    print("\nYou are editing the following question:")
    print(model_formatters.format_question_multiline(question))

    title = formatters.format_banner_text("Editable Fields")
    options = get_editable_fields()
    zero_option = "Finish editing and return"

    while True:
        menu_response = helpers.display_menu(title, options, zero_option)

        if menu_response is MenuSignal.EXIT:
            break
        elif callable(menu_response):
            menu_response(question, gradebook)
        else:
            raise RuntimeError(f"Unexpected MenuResponse received: {menu_response}")

        if not helpers.confirm_action(
            "Would you like to continue editing this question?"
        ):
            break

    helpers.returning_to("Manage Questions menu")


def edit_name_and_confirm(question: Question, gradebook: Gradebook) -> None:
    new_name = helpers.prompt_user_input_or_cancel(
        "Enter new name (leave blank to cancel):"
    )

    if new_name is MenuSignal.CANCEL:
        helpers.returning_without_changes()
        return

    print(f"\nCurrent name: {question.name} -> New name: {new_name}")

    apply_edit(gradebook.update_question_name, question, new_name)


def edit_full_score_and_confirm(question: Question, gradebook: Gradebook) -> None:
    """
    Prompts for a new full score.

    Notes:
        - Scores that no longer fit are cleared by the gradebook; the count is reported.
    """
    new_full_score = helpers.prompt_int_or_cancel(
        "Enter new full score (leave blank to cancel):"
    )

    if new_full_score is MenuSignal.CANCEL:
        helpers.returning_without_changes()
        return

    print(f"\nCurrent full score: {question.full_score} -> New full score: {new_full_score}")

    if new_full_score < question.full_score:  # type: ignore[operator]
        print("Scores above the new full score will be cleared.")

    apply_edit(gradebook.update_question_full_score, question, new_full_score)


def edit_weight_and_confirm(question: Question, gradebook: Gradebook) -> None:
    new_weight = helpers.prompt_float_or_default(
        "Enter new weight (leave blank to cancel, 0 to exclude):"
    )

    if new_weight is MenuSignal.DEFAULT:
        helpers.returning_without_changes()
        return

    print(
        f"\nCurrent weight: {formatters.format_weight(question.weight)} -> "
        f"New weight: {formatters.format_weight(cast(float, new_weight))}"
    )

    apply_edit(gradebook.update_question_weight, question, new_weight)


def edit_comment_and_confirm(question: Question, gradebook: Gradebook) -> None:
    new_comment = helpers.prompt_user_input_or_none(
        "Enter new comment (leave blank to clear):"
    )

    print(f"\nCurrent comment: {question.comment or '[NONE]'} -> New comment: {new_comment or '[NONE]'}")

    apply_edit(gradebook.update_question_comment, question, new_comment or "")


def apply_edit(update_fn: Callable, question: Question, value) -> None:
    if not helpers.confirm_make_change():
        helpers.returning_without_changes()
        return

    gradebook_response = update_fn(question.id, value)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
        print("\nQuestion was not updated.")
        helpers.returning_without_changes()
        return

    print(f"\n{gradebook_response.detail}")

    cleared = gradebook_response.data.get("cleared_cells", 0)

    if cleared:
        print(f"{cleared} score(s) were cleared.")


# === remove question ===


def find_and_remove_question(gradebook: Gradebook) -> None:
    """
    Deletes a `Question` and all of its scores after preview and user confirmation.
    """
    question = helpers.find_question_from_list(gradebook)

    if question is MenuSignal.CANCEL:
        return
    question = cast(Question, question)

    helpers.caution_banner()
    print("You are about to permanently delete the following question:")
    print(model_formatters.format_question_multiline(question))
    print("\nThis will also delete every score recorded for this question.")

    if not helpers.confirm_action(
        "Are you sure you want to permanently delete this question? This action cannot be undone."
    ):
        helpers.returning_without_changes()
        return

    gradebook_response = gradebook.remove_question(question.id)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
        print("\nQuestion was not removed.")
    else:
        print(f"\n{gradebook_response.detail}")


# === import questions ===


def import_questions(gradebook: Gradebook) -> None:
    """
    Reads a question CSV file, previews the first rows, and upserts the batch after confirmation.

    Notes:
        - The file must have an `id, name, full_score, weight[, comment]` header row.
    """
    path_input = helpers.prompt_path_or_none("Enter path to the question CSV file")

    if path_input is None:
        helpers.returning_without_changes()
        return

    path = resolve_existing_file(path_input)

    if path is None:
        print(f"\nFile not found: {path_input}")
        return

    try:
        rows = row_reader.read_question_rows(path)

    except (row_reader.RowReadError, OSError, UnicodeDecodeError) as e:
        print(f"\n[ERROR] Could not read {path}: {e}")
        return

    print(f"\nRead {len(rows)} row(s). Preview:")
    helpers.display_results(
        row_reader.preview_rows(rows, IMPORT_PREVIEW_ROWS),
        formatter=lambda row: f"Q{row.id:<4} | {row.name:<20} | {row.full_score:>4} pts | weight {row.weight:g}",
    )

    if not helpers.confirm_action("Import these questions?"):
        helpers.returning_without_changes()
        return

    gradebook_response = gradebook.upsert_questions(rows)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
    else:
        print(f"\n{gradebook_response.detail}")


# === view questions ===


def view_all_questions(gradebook: Gradebook) -> None:
    banner = formatters.format_banner_text("All Questions")
    print(f"\n{banner}")

    if not gradebook.questions:
        print("There are no questions yet.")
        return

    helpers.display_results(
        gradebook.questions.values(),
        formatter=model_formatters.format_question_oneline,
        sort_key=lambda x: x.id,
    )
