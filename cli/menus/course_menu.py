# cli/menus/course_menu.py

"""
Course Manager menu for the ScoreMatrix CLI.

Provides calls to the menus for managing Questions, Students, grading, and ratings, as well as
options to save the gradebook. When the gradebook was opened from an SQLite database, saving
writes back to that database; "Save As" always writes a JSON snapshot.
"""

import cli.menu_helpers as helpers
import core.formatters as formatters
from cli.menus import grading_menu, questions_menu, ratings_menu, students_menu
from cli.path_utils import file_exists, resolve_file_path
from core.config import DEFAULT_SNAPSHOT_NAME, Settings, get_settings
from core.relational import SqliteGradebookStore
from core.response import Response
from models.gradebook import Gradebook


def run(
    gradebook: Gradebook,
    store: SqliteGradebookStore | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Top-level loop with dispatch for the Course Manager menu.

    Args:
        gradebook (Gradebook): The active `Gradebook`.
        store (SqliteGradebookStore | None): The database the gradebook was read from, if any.
        settings (Settings | None): Resolved settings. Read from the environment if omitted.

    Raises:
        RuntimeError: If the menu response is unrecognized.

    Notes:
        - The finally block guarantees a check for unsaved changes before returning.
    """
    settings = settings or get_settings()
    source = store.path if store is not None else gradebook.save_path or "unsaved"

    title = formatters.format_banner_text(f"ScoreMatrix - {source}")
    options = [
        ("Manage Questions", lambda: questions_menu.run(gradebook)),
        ("Manage Students", lambda: students_menu.run(gradebook)),
        ("Grade Students", lambda: grading_menu.run(gradebook, settings.search_limit)),
        (
            "Ratings and Statistics",
            lambda: ratings_menu.run(gradebook, settings.histogram_bin_width),
        ),
        ("Save Gradebook", lambda: helpers.report_response(save_gradebook(gradebook, store))),
        ("Save Snapshot As ...", lambda: save_gradebook_as(gradebook, settings)),
    ]
    zero_option = "Return to Start Menu"

    try:
        helpers.run_menu(title, options, zero_option)

    finally:
        helpers.prompt_if_dirty(gradebook, lambda: save_gradebook(gradebook, store))

    helpers.returning_to("Start Menu")


# === save ===


def save_gradebook(gradebook: Gradebook, store: SqliteGradebookStore | None = None) -> Response:
    """
    Persists the gradebook to its database if it has one, otherwise to its snapshot path.
    """
    if store is None:
        return gradebook.save()

    store_response = store.import_gradebook(gradebook)

    if store_response.success:
        gradebook.mark_saved()

    return store_response


def save_gradebook_as(gradebook: Gradebook, settings: Settings) -> None:
    path_input = helpers.prompt_path_or_none(
        f"Enter a snapshot path or directory (default file name {DEFAULT_SNAPSHOT_NAME})"
    )

    if path_input is None:
        helpers.report_response(gradebook.save_as(None))
        return

    path = resolve_file_path(path_input, str(settings.default_snapshot_path), DEFAULT_SNAPSHOT_NAME)

    if file_exists(path) and not helpers.confirm_action(f"{path} already exists. Overwrite it?"):
        helpers.returning_without_changes()
        return

    helpers.report_response(gradebook.save_as(path))
