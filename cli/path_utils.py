# cli/path_utils.py

import os


def resolve_file_path(user_input: str | None, default_path: str, default_name: str) -> str:
    """
    Resolves a gradebook file path from user input or the default location.

    Args:
        user_input (str | None): An optional user-specified path. If None or blank, `default_path` is used.
        default_path (str): The path used when no input is given.
        default_name (str): The file name appended when the input points at a directory.

    Returns:
        An absolute path with `~` expanded.

    Notes:
        - Input ending in a path separator, or naming an existing directory, is treated as a directory.
    """
    if user_input is None or not user_input.strip():
        path = default_path
    else:
        path = user_input.strip()

    is_dir_input = path.endswith(os.sep)
    path = os.path.abspath(os.path.expanduser(path))

    if is_dir_input or os.path.isdir(path):
        path = os.path.join(path, default_name)

    return path


def resolve_existing_file(user_input: str) -> str | None:
    """
    Expands a user-specified path and checks that it points at an existing file.

    Returns:
        The absolute path, or None if no such file exists.
    """
    path = os.path.abspath(os.path.expanduser(user_input.strip()))
    return path if os.path.isfile(path) else None


def file_exists(path: str) -> bool:
    return os.path.isfile(path)
