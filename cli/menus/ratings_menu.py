# cli/menus/ratings_menu.py

"""
Ratings menu for the ScoreMatrix CLI.

Edits the rating buckets and shows how the final scores fall into them, either per bucket
or as a fixed-width histogram.
"""

from typing import cast

import cli.menu_helpers as helpers
import cli.model_formatters as model_formatters
import core.formatters as formatters
from cli.menu_helpers import MenuSignal
from core.config import DEFAULT_HISTOGRAM_BIN_WIDTH
from models.gradebook import Gradebook


def run(gradebook: Gradebook, bin_width: int = DEFAULT_HISTOGRAM_BIN_WIDTH) -> None:
    """
    Top-level loop with dispatch for the Ratings menu.

    Args:
        gradebook (Gradebook): The active `Gradebook`.
        bin_width (int): Default histogram bin width.

    Raises:
        RuntimeError: If the menu response is unrecognized.
    """
    title = formatters.format_banner_text("Ratings and Statistics")
    options = [
        ("View Rating Buckets", lambda: view_ratings(gradebook)),
        ("Add Rating Bucket", lambda: add_rating(gradebook)),
        ("Edit Rating Bucket", lambda: edit_rating(gradebook)),
        ("Remove Rating Bucket", lambda: remove_rating(gradebook)),
        ("View Rating Statistics", lambda: view_rating_stats(gradebook)),
        ("View Score Histogram", lambda: view_histogram(gradebook, bin_width)),
    ]
    zero_option = "Return to Course Manager menu"

    helpers.run_menu(title, options, zero_option)

    helpers.returning_to("Course Manager menu")


# === bucket editing ===


def view_ratings(gradebook: Gradebook) -> None:
    banner = formatters.format_banner_text("Rating Buckets")
    print(f"\n{banner}")

    if not gradebook.ratings:
        print("There are no rating buckets.")
        return

    helpers.display_results(gradebook.ratings, True, model_formatters.format_rating_oneline)


def prompt_rating_index(gradebook: Gradebook) -> int | MenuSignal:
    """
    Prompts the user to pick a rating bucket by its position in the sorted list.

    Returns:
        The zero-based index of the bucket, or `MenuSignal.CANCEL`.
    """
    if not gradebook.ratings:
        print("\nThere are no rating buckets.")
        return MenuSignal.CANCEL

    while True:
        view_ratings(gradebook)

        choice = helpers.prompt_user_input("Select a bucket (0 to cancel):")

        if choice == "0":
            return MenuSignal.CANCEL

        try:
            index = int(choice) - 1

        except ValueError:
            print("\nInvalid selection. Please try again.")
            continue

        if 0 <= index < len(gradebook.ratings):
            return index

        print("\nInvalid selection. Please try again.")


def add_rating(gradebook: Gradebook) -> None:
    label = helpers.prompt_user_input_or_cancel("Enter label (leave blank to cancel):")

    if label is MenuSignal.CANCEL:
        helpers.returning_without_changes()
        return

    min_score = helpers.prompt_int_or_cancel(
        "Enter minimum final score, 0 to 100 (leave blank to cancel):"
    )

    if min_score is MenuSignal.CANCEL:
        helpers.returning_without_changes()
        return

    gradebook_response = gradebook.add_rating(cast(str, label), cast(int, min_score))

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
    else:
        print(f"\n{gradebook_response.detail}")


def edit_rating(gradebook: Gradebook) -> None:
    """
    Changes the label or threshold of a rating bucket.

    Notes:
        - Thresholds outside 0 to 100 are clamped by the gradebook.
        - Buckets are re-sorted after a threshold change.
    """
    index = prompt_rating_index(gradebook)

    if index is MenuSignal.CANCEL:
        return
    index = cast(int, index)

    bucket = gradebook.ratings[index]
    print(f"\nEditing: {model_formatters.format_rating_oneline(bucket)}")

    label = helpers.prompt_user_input_or_none("Enter new label (leave blank to keep):")

    if label is not None:
        gradebook_response = gradebook.update_rating_label(index, label)

        if not gradebook_response.success:
            helpers.display_response_failure(gradebook_response)
            return

        print(f"\n{gradebook_response.detail}")

    min_score = helpers.prompt_int_or_cancel("Enter new minimum score (leave blank to keep):")

    if min_score is not MenuSignal.CANCEL:
        gradebook_response = gradebook.update_rating_min_score(index, cast(int, min_score))

        if not gradebook_response.success:
            helpers.display_response_failure(gradebook_response)
            return

        print(f"\n{gradebook_response.detail}")


def remove_rating(gradebook: Gradebook) -> None:
    index = prompt_rating_index(gradebook)

    if index is MenuSignal.CANCEL:
        return
    index = cast(int, index)

    bucket = gradebook.ratings[index]

    if not helpers.confirm_action(f"Remove rating bucket '{bucket.label}'?"):
        helpers.returning_without_changes()
        return

    gradebook_response = gradebook.remove_rating(index)

    if not gradebook_response.success:
        helpers.display_response_failure(gradebook_response)
    else:
        print(f"\n{gradebook_response.detail}")


# === statistics ===


def view_rating_stats(gradebook: Gradebook) -> None:
    banner = formatters.format_banner_text("Rating Statistics")
    print(f"\n{banner}")

    total, completed = gradebook.progress()
    print(f"{completed} of {total} student(s) have a final score.\n")

    helpers.display_results(gradebook.rating_stats(), formatter=model_formatters.format_rating_stats_line)


def view_histogram(gradebook: Gradebook, default_width: int) -> None:
    width = helpers.prompt_int_or_cancel(
        f"Enter bin width, 1 to 100 (leave blank for {default_width}):"
    )
    width = default_width if width is MenuSignal.CANCEL else cast(int, width)

    try:
        bins = gradebook.score_histogram(width)

    except ValueError as e:
        print(f"\n[ERROR] {e}")
        return

    banner = formatters.format_banner_text(f"Histogram (width {width})")
    print(f"\n{banner}")
    print(model_formatters.format_histogram(bins, width))
