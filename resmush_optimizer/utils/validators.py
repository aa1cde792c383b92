"""
Validation utilities for source and destination images.

The source is judged by its content (python-magic), the destination only by
its extension.
"""

import os
import magic
from typing import Iterable, Optional

from .error_handlers import ValidationError
from .file_utils import get_file_extension


def validate_file_extension(filename: str, allowed_extensions: Iterable[str]) -> str:
    """
    Validate and return file extension.

    Args:
        filename: Name or path of the file
        allowed_extensions: Lowercase extensions without the dot

    Returns:
        Lowercase extension without the dot

    Raises:
        ValidationError: If extension is not allowed
    """
    extension = get_file_extension(filename)
    allowed = set(allowed_extensions)

    if extension not in allowed:
        raise ValidationError(
            f"Destination file ({filename}) does not have a valid extension.",
            code="INVALID_EXTENSION",
            details={"extension": extension, "allowed": sorted(allowed)}
        )

    return extension


def validate_source_exists(file_path: str) -> None:
    """Raise ValidationError if the source file is missing."""
    if not os.path.isfile(file_path):
        raise ValidationError(
            f"Source file ({file_path}) does not exist.",
            code="SOURCE_NOT_FOUND",
            details={"path": file_path}
        )


def detect_mime_type(file_path: str) -> str:
    """Detect MIME type from file content using python-magic."""
    mime = magic.Magic(mime=True)
    return mime.from_file(file_path)


def validate_mime_type(file_path: str, allowed_mime_types: Iterable[str]) -> str:
    """
    Validate MIME type using python-magic.

    Args:
        file_path: Path to the file
        allowed_mime_types: Accepted MIME types

    Returns:
        Detected MIME type

    Raises:
        ValidationError: If MIME type is not allowed or cannot be detected
    """
    try:
        detected_mime = detect_mime_type(file_path)
    except (magic.MagicException, OSError) as e:
        raise ValidationError(
            f"Could not determine file type of ({file_path}): {str(e)}",
            code="MIME_CHECK_FAILED",
            details={"error": str(e)}
        )

    allowed = list(allowed_mime_types)
    if detected_mime not in allowed:
        raise ValidationError(
            f"Source file ({file_path}) is not an allowed image type ({detected_mime}).",
            code="INVALID_MIME_TYPE",
            details={"detected": detected_mime, "allowed": allowed}
        )

    return detected_mime


def validate_file_size(file_path: str, max_file_size: int, file_size: Optional[int] = None) -> int:
    """
    Validate file size is below the limit.

    Args:
        file_path: Path to the file
        max_file_size: Exclusive upper bound in bytes
        file_size: Pre-computed size, read from disk if omitted

    Returns:
        File size in bytes

    Raises:
        ValidationError: If the file is too large
    """
    if file_size is None:
        file_size = os.path.getsize(file_path)

    if file_size >= max_file_size:
        raise ValidationError(
            f"Source file ({file_path}) exceeded maximum allowed size limit of "
            f"{max_file_size / (1024 * 1024):.0f}MB.",
            code="FILE_TOO_LARGE",
            details={"size": file_size, "max_size": max_file_size}
        )

    return file_size
