# cli/menu_helpers.py

"""
Shared prompts, pickers, and messages for the ScoreMatrix menus.

Every menu reads input through `prompt_user_input()`, so tests only need to replace `input()`.
Blank input is the universal "back out" gesture; each prompt family decides what blank maps to.
"""

from enum import Enum
from typing import Any, Callable, Iterable

import cli.model_formatters as model_formatters
import core.formatters as formatters
from core.response import Response
from models.gradebook import Gradebook
from models.question import Question
from models.student import Student
from models.types import RecordType

YES_ANSWERS = frozenset({"y", "yes"})
NO_ANSWERS = frozenset({"n", "no"})


class MenuSignal(Enum):
    CANCEL = "CANCEL"
    DEFAULT = "DEFAULT"
    EXIT = "EXIT"


# === display methods ===


def display_menu(
    title: str,
    options: list[tuple[str, Callable[..., Any]]],
    zero_option: str = "Return",
) -> MenuSignal | Callable[..., Any]:
    """
    Shows a numbered menu until the user picks a valid entry.

    Returns:
        MenuSignal.EXIT for "0", otherwise the action paired with the chosen label.
    """
    actions = {str(number): action for number, (_, action) in enumerate(options, 1)}
    lines = [f"{number}. {label}" for number, (label, _) in enumerate(options, 1)]
    lines.append(f"0. {zero_option}")
    menu_text = "\n".join(lines)

    while True:
        print(f"\n{title}\n{menu_text}")

        choice = prompt_user_input("\nSelect an option: ")

        if choice == "0":
            return MenuSignal.EXIT

        if choice in actions:
            return actions[choice]

        print("Invalid selection. Please try again.")


def run_menu(
    title: str,
    options: list[tuple[str, Callable[..., Any]]],
    zero_option: str,
    *args: Any,
    before: Callable[[], None] | None = None,
) -> None:
    """
    Repeats `display_menu()` and calls the chosen action with `args` until the user picks "0".

    Args:
        before (Callable[[], None], optional): Runs ahead of every redraw, e.g. to print a summary.

    Raises:
        RuntimeError: If `display_menu()` yields something that is neither an action nor EXIT.
    """
    while True:
        if before is not None:
            before()

        menu_response = display_menu(title, options, zero_option)

        if menu_response is MenuSignal.EXIT:
            return

        if not callable(menu_response):
            raise RuntimeError(f"Unexpected MenuResponse received: {menu_response}")

        menu_response(*args)


def display_results(
    results: Iterable[Any],
    show_index: bool = False,
    formatter: Callable[[Any], str] = str,
    sort_key: Callable[[Any], Any] | None = None,
) -> None:
    """
    Prints one formatted line per result, optionally sorted first and numbered from 1.
    """
    if sort_key is not None:
        results = sorted(results, key=sort_key)

    for number, result in enumerate(results, 1):
        prefix = f"{number:>2}. " if show_index else ""
        print(f"{prefix}{formatter(result)}")


# === prompt user input methods ===

# Blank input conventions:
#   - `_or_cancel` prompts return MenuSignal.CANCEL
#   - `_or_default` prompts return MenuSignal.DEFAULT (keep the current value)
#   - `_or_none` prompts return None


def prompt_user_input(prompt: str) -> str:
    return input(f"\n{prompt}\n  >> ").strip()


def _blank_as(prompt: str, blank_value: Any) -> Any:
    answer = prompt_user_input(prompt)
    return blank_value if answer == "" else answer


def prompt_user_input_or_cancel(prompt: str) -> str | MenuSignal:
    return _blank_as(prompt, MenuSignal.CANCEL)


def prompt_user_input_or_default(prompt: str) -> str | MenuSignal:
    return _blank_as(prompt, MenuSignal.DEFAULT)


def prompt_user_input_or_none(prompt: str) -> str | None:
    return _blank_as(prompt, None)


def _prompt_number(
    prompt: str, parse: Callable[[str], Any], blank_value: MenuSignal, hint: str
) -> Any:
    while True:
        answer = _blank_as(prompt, blank_value)

        if answer is blank_value:
            return answer

        try:
            return parse(answer)

        except ValueError:
            print(f"\n[ERROR] Please enter {hint}.")


def prompt_int_or_cancel(prompt: str) -> int | MenuSignal:
    return _prompt_number(prompt, int, MenuSignal.CANCEL, "a whole number")


def prompt_float_or_default(prompt: str) -> float | MenuSignal:
    return _prompt_number(prompt, float, MenuSignal.DEFAULT, "a number")


def prompt_path_or_none(prompt: str) -> str | None:
    """
    Asks for a file path. Blank input means the selection was cancelled.
    """
    return prompt_user_input_or_none(f"{prompt} (leave blank to cancel):")


def confirm_action(prompt: str) -> bool:
    while True:
        answer = prompt_user_input(f"{prompt} (y/n): ").lower()

        if answer in YES_ANSWERS:
            return True

        if answer in NO_ANSWERS:
            return False

        print("Invalid selection. Please try again.")


def confirm_make_change() -> bool:
    return confirm_action("Do you want to make this change?")


def prompt_if_dirty(
    gradebook: Gradebook, save_fn: Callable[[], Response] | None = None
) -> None:
    """
    Offers to save before leaving a gradebook with unsaved edits.

    `save_fn` overrides the default `gradebook.save()`, e.g. to write through an SQLite store.
    """
    if not gradebook.has_unsaved_changes:
        return

    if not confirm_action("There are unsaved changes to the Gradebook. Do you want to save now?"):
        return

    save_response = gradebook.save() if save_fn is None else save_fn()

    if save_response.success:
        print(f"\n{save_response.detail}")
    else:
        display_response_failure(save_response)


# === finder, search, and select methods ===


def _pick_by_number(items: list[Any], choice: str) -> Any | None:
    if not choice.isdigit() or not 1 <= int(choice) <= len(items):
        return None

    return items[int(choice) - 1]


def prompt_selection_from_list(
    list_data: list[RecordType],
    list_description: str,
    sort_key: Callable[[RecordType], Any] = lambda x: x,
    formatter: Callable[[RecordType], str] = str,
) -> RecordType | None:
    """
    Numbers the records and asks the user to pick one.

    Args:
        list_data (list[RecordType]): The records to choose from.
        list_description (str): Plural noun used in headings and prompts, e.g. "Students".
        sort_key (Callable[[RecordType], Any], optional): Display order. Defaults to identity.
        formatter (Callable[[RecordType], str], optional): One-line rendering. Defaults to str().

    Returns:
        The chosen record, or None if the list is empty or the user enters "0".
    """
    noun = list_description.lower()

    if not list_data:
        print(f"\nThere are no {noun}.")
        return None

    print(f"\nThere are {len(list_data)} {noun}.")

    ordered = sorted(list_data, key=sort_key)
    banner = formatters.format_banner_text(list_description)

    while True:
        print(f"\n{banner}")
        display_results(ordered, show_index=True, formatter=formatter)

        choice = prompt_user_input("Select an option (0 to cancel):")

        if choice == "0":
            return None

        picked = _pick_by_number(ordered, choice)

        if picked is not None:
            return picked

        print("\nInvalid selection. Please try again.")


# --- students ---


def search_students(gradebook: Gradebook, limit: int | None = None) -> list[Student]:
    query = prompt_user_input("Search for a student by id or name:")

    search_response = gradebook.find_student_by_query(query, limit)

    return search_response.data["records"] if search_response.success else []


def _print_search_page(gradebook: Gradebook) -> None:
    index = gradebook.search_index

    print(f"\nYour search for '{index.query}' returned {len(index.results)}:")

    for position, student in enumerate(index.results):
        marker = ">" if position == index.cursor else " "
        print(f"{marker} {position + 1:>2}. {model_formatters.format_student_oneline(student)}")


def prompt_student_selection_from_search(gradebook: Gradebook) -> Student | None:
    """
    Walks the search cursor over the current results until the user confirms one.

    Commands: a row number jumps there, "+" and "-" step the cursor, blank confirms, "0" cancels.
    A single result is confirmed without asking.
    """
    index = gradebook.search_index

    if not index.results:
        print("\nYour search returned no results.")
        return None

    cursor_moves = {"+": index.move_down, "-": index.move_up}

    while len(index.results) > 1:
        _print_search_page(gradebook)

        choice = prompt_user_input(
            "Enter a number to select, + / - to move, blank to confirm (0 to cancel):"
        )

        if choice == "0":
            return None

        if choice == "":
            break

        if choice in cursor_moves:
            cursor_moves[choice]()
        elif choice.isdigit():
            index.move_to(int(choice) - 1)
        else:
            print("\nInvalid selection. Please try again.")

    confirm_response = gradebook.confirm_search_selection()

    if not confirm_response.success:
        display_response_failure(confirm_response)
        return None

    return confirm_response.data["record"]


def find_student_by_search(
    gradebook: Gradebook, limit: int | None = None
) -> Student | MenuSignal:
    search_students(gradebook, limit)

    student = prompt_student_selection_from_search(gradebook)

    return MenuSignal.CANCEL if student is None else student


def _find_record_from_list(
    records: dict, description: str, formatter: Callable[[Any], str]
) -> Any:
    picked = prompt_selection_from_list(
        list(records.values()), description, lambda x: x.id, formatter
    )

    return MenuSignal.CANCEL if picked is None else picked


def find_student_from_list(gradebook: Gradebook) -> Student | MenuSignal:
    return _find_record_from_list(
        gradebook.students, "Students", model_formatters.format_student_oneline
    )


# --- questions ---


def find_question_from_list(gradebook: Gradebook) -> Question | MenuSignal:
    return _find_record_from_list(
        gradebook.questions, "Questions", model_formatters.format_question_oneline
    )


# === often used messages ===


def returning_without_changes() -> None:
    print("\nReturning without changes.")


def returning_to(destination: str) -> None:
    print(f"\nReturning to {destination}.")


def caution_banner() -> None:
    print(f"\n{formatters.format_banner_text('CAUTION!')}")


def display_response_failure(response: Response) -> None:
    """
    Prints "[ERROR: <code>] <detail>" for a failed response; successful responses print nothing.
    """
    if response.success:
        return

    error_label = (
        response.error.name if isinstance(response.error, Enum) else str(response.error)
    )

    print(f"\n[ERROR: {error_label}] {response.detail}")


def report_response(response: Response, failure_note: str | None = None) -> bool:
    """
    Prints the detail of a successful response, or the error plus `failure_note` for a failed one.

    Returns:
        Whether the response succeeded.
    """
    if response.success:
        print(f"\n{response.detail}")
        return True

    display_response_failure(response)

    if failure_note is not None:
        print(f"\n{failure_note}")

    return False
