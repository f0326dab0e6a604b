"""Utility functions for file, path and size handling."""

import itertools
import os


def _reserve(path: str) -> bool:
    """Create an empty placeholder at path; False if something is already there."""
    try:
        os.close(os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY))
    except FileExistsError:
        return False
    return True


def get_unique_path(path: str) -> str:
    """Reserve an output path that no other file is using.

    Tries path itself, then name(1).ext, name(2).ext and so on. The winning
    path is created empty (O_EXCL), so two writers saving into the same
    folder never pick the same name. Callers overwrite the placeholder.

    Examples:
        >>> get_unique_path("/out/exif-photo.jpg")  # free
        '/out/exif-photo.jpg'
        >>> get_unique_path("/out/exif-photo.jpg")  # taken
        '/out/exif-photo(1).jpg'
    """
    if _reserve(path):
        return path

    base, ext = os.path.splitext(path)
    for n in itertools.count(1):
        candidate = f"{base}({n}){ext}"
        if _reserve(candidate):
            return candidate


def checkout_dir(path: str) -> str:
    """Make sure the output directory exists and return it.

    Raises:
        ValueError: If path is an existing regular file.
    """
    if os.path.isfile(path):
        raise ValueError(f"Cannot create directory: {path} exists as a file")

    os.makedirs(path, exist_ok=True)
    return path


def normalize_path(path: str) -> str:
    """Normalize a path: strip whitespace, expand ~, fix separators."""
    return os.path.normpath(os.path.expanduser(path.strip()))


def to_readable_size(size: int) -> str:
    """Format a byte count for display.

    Examples:
        >>> to_readable_size(512)
        '512 B'
        >>> to_readable_size(1536)
        '1.5 KB'
        >>> to_readable_size(3 * 1024 * 1024)
        '3.00 MB'
    """
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"
