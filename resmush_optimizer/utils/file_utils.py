"""
File handling utilities
"""

import os
from pathlib import Path
from typing import Tuple, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if not"""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def split_filename(filename: Union[str, Path]) -> Tuple[str, str]:
    """
    Split a file name into stem and extension (with the dot).

    Unlike ``os.path.splitext``, a name made only of an extension such as
    ``.jpg`` is treated as an empty stem with extension ``.jpg``.
    """
    name = os.path.basename(str(filename))
    stem, ext = os.path.splitext(name)
    if not ext and name.startswith(".") and name.count(".") == 1 and len(name) > 1:
        return "", name
    return stem, ext


def get_file_extension(filename: Union[str, Path]) -> str:
    """Get file extension from filename, lowercase and without the dot"""
    return split_filename(filename)[1].lstrip(".").lower()


def default_file_mode() -> int:
    """Permission bits a newly created file gets under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def generate_unique_filename(file: Union[str, Path]) -> str:
    """
    Return a path in the same directory that does not exist yet.

    ``photo.jpg`` becomes ``photo-1.jpg``, then ``photo-2.jpg``. The counter
    always replaces the suffix added here, so a name that already carries a
    hyphen-digit part (``photo-2024.jpg``) keeps it: ``photo-2024-1.jpg``.

    Args:
        file: Desired file path

    Returns:
        The desired path if free, otherwise the first free numbered variant
    """
    path = str(file)
    directory = os.path.dirname(path)
    stem, ext = split_filename(path)

    candidate = path
    number = 0
    while os.path.exists(candidate):
        number += 1
        candidate = os.path.join(directory, f"{stem}-{number}{ext}")

    return candidate
