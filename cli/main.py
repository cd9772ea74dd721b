# cli/main.py

"""
Start Menu for the ScoreMatrix CLI.

Provides functions for creating a Gradebook, loading a JSON snapshot, or opening an SQLite database.
"""

import os
import sqlite3
from textwrap import dedent

import cli.menu_helpers as helpers
import core.formatters as formatters
from cli.menu_helpers import MenuSignal
from cli.menus import course_menu
from cli.path_utils import file_exists, resolve_existing_file, resolve_file_path
from core.config import DEFAULT_DATABASE_NAME, DEFAULT_SNAPSHOT_NAME, Settings, get_settings
from core.logging_config import configure_logging
from core.relational import SqliteGradebookStore
from models.gradebook import Gradebook


def run_cli() -> None:
    """
    Top-level loop with dispatch for the Start menu.

    Raises:
        RuntimeError: If the menu response is unrecognized.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    title = formatters.format_banner_text("SCOREMATRIX GRADEBOOK")
    options = [
        ("Create a new Gradebook", lambda: create_gradebook(settings)),
        ("Load a Gradebook snapshot", lambda: load_gradebook(settings)),
        ("Open an SQLite Gradebook", lambda: open_database(settings)),
    ]
    zero_option = "Exit Program"

    while True:
        menu_response = helpers.display_menu(title, options, zero_option)

        if menu_response is MenuSignal.EXIT:
            exit_program()

        elif callable(menu_response):
            menu_response()

        else:
            raise RuntimeError(f"Unexpected MenuResponse received: {menu_response}")


def create_gradebook(settings: Settings) -> None:
    """
    Prompts the user for a snapshot location and creates a new `Gradebook` there.

    Notes:
        - A blank path uses `<SCOREMATRIX_HOME>/gradebook.json`.
        - If a file already exists at the resolved path, the user must explicitly confirm before it is overwritten.
        - New gradebooks start with the configured rating buckets.
    """
    while True:
        path_input = helpers.prompt_user_input_or_none(
            f"Enter a path or directory for the new Gradebook (leave blank for {settings.default_snapshot_path}):"
        )

        path = resolve_file_path(
            path_input, str(settings.default_snapshot_path), DEFAULT_SNAPSHOT_NAME
        )

        if file_exists(path):
            warning_banner = formatters.format_banner_text("WARNING!")
            print(f"\n{warning_banner}")
            print(
                dedent(
                    f"""\
                    A file already exists at {path}.
                    Creating a new Gradebook here will overwrite it."""
                )
            )

            if not helpers.confirm_action("\nDo you wish to continue?"):
                if helpers.confirm_action("Choose a different location?"):
                    continue
                return

        print("\nCreating Gradebook ...")

        gradebook_response = Gradebook.create(path, settings.default_ratings)

        if not gradebook_response.success:
            helpers.display_response_failure(gradebook_response)

            if helpers.confirm_action("Try again?"):
                continue
            return

        print("... Gradebook created successfully.")

        course_menu.run(gradebook_response.data["gradebook"], settings=settings)
        return


def load_gradebook(settings: Settings) -> None:
    """
    Prompts the user to load a `Gradebook` from a JSON snapshot.

    Notes:
        - Parse failures print the error position and an excerpt of the offending line, then re-prompt.
    """
    while True:
        path_input = helpers.prompt_path_or_none("Enter path to a Gradebook snapshot")

        if path_input is None:
            return

        path = resolve_existing_file(path_input)

        if path is None:
            print(f"\nFile not found: {path_input}. Please try again.")
            continue

        print("\nLoading Gradebook ...")

        gradebook_response = Gradebook.load(path)

        if not gradebook_response.success:
            helpers.display_response_failure(gradebook_response)
            continue

        print("... Gradebook loaded successfully.")

        course_menu.run(gradebook_response.data["gradebook"], settings=settings)
        return


def open_database(settings: Settings) -> None:
    """
    Opens (or creates) an SQLite gradebook, reads it into memory, and runs the Course Manager menu.

    Notes:
        - Saving from the Course Manager menu writes the gradebook back to the database.
        - A new, empty database is seeded with the configured rating buckets.
    """
    path_input = helpers.prompt_user_input_or_none(
        f"Enter path to an SQLite Gradebook (leave blank for {settings.default_database_path}):"
    )

    path = resolve_file_path(
        path_input, str(settings.default_database_path), DEFAULT_DATABASE_NAME
    )

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        store = SqliteGradebookStore(path)

    except (OSError, sqlite3.Error) as e:
        print(f"\n[ERROR] Could not open {path}: {e}")
        return

    try:
        store_response = store.export_gradebook()

        if not store_response.success:
            helpers.display_response_failure(store_response)
            return

        gradebook = store_response.data["gradebook"]

        if not gradebook.ratings and not gradebook.students and not gradebook.questions:
            for label, min_score in settings.default_ratings:
                gradebook.add_rating(label, min_score)

        print(f"\n... Opened {path}.")

        course_menu.run(gradebook, store, settings)

    finally:
        store.close()


def exit_program():
    """
    Displays an exit banner and terminates the CLI program.

    Raises:
        SystemExit: Always raised to immediately terminate execution.
    """
    exit_banner = formatters.format_banner_text("Exiting Program")
    print(f"\n{exit_banner}\n")

    raise SystemExit


if __name__ == "__main__":
    run_cli()
