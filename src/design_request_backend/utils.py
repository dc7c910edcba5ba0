"""
Utility functions for file system operations and string sanitization.

This module provides helper functions for:
- Turning user-influenced names into opaque, storage-safe object keys
- Masking contact details before they leave the admin boundary
- Ensuring directory creation with proper error handling
"""

from __future__ import annotations

import re
from pathlib import Path

# Pattern to match characters that are not safe for storage keys
# Allows: alphanumeric characters, dots, underscores, and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")
_DOT_RUN_PATTERN = re.compile(r"\.{2,}")

MAX_FILENAME_LENGTH = 128
EMAIL_MASK = "***"


def sanitize_filename(filename: str, fallback: str = "document", max_length: int = MAX_FILENAME_LENGTH) -> str:
    """
    Generate an opaque, storage-safe filename from a suggested name.

    Directory components are discarded, unsafe characters are replaced with
    hyphens and runs of dots are collapsed so the result can never contain a
    path separator or a traversal sequence.

    Args:
        filename: The suggested filename (may contain a path)
        fallback: Stem to use if nothing usable remains
        max_length: Maximum length of the returned name, extension included

    Returns:
        A filename made only of ``[a-zA-Z0-9._-]``

    Example:
        >>> sanitize_filename("../../etc/passwd.pdf")
        "passwd.pdf"
        >>> sanitize_filename("My Request!.PDF")
        "My-Request.pdf"
    """
    stem, suffix = split_extension(filename.replace("\\", "/"))
    safe_suffix = SANITIZE_PATTERN.sub("", suffix.lower())
    safe_suffix = _DOT_RUN_PATTERN.sub(".", safe_suffix)
    if safe_suffix == ".":
        safe_suffix = ""

    safe_stem = SANITIZE_PATTERN.sub("-", stem)
    safe_stem = _DOT_RUN_PATTERN.sub(".", safe_stem).strip("-_.")
    safe_stem = safe_stem or fallback

    safe_suffix = safe_suffix[:16]
    safe_stem = safe_stem[: max(1, max_length - len(safe_suffix))].rstrip("-_.") or fallback
    return f"{safe_stem}{safe_suffix}"


def mask_email(email: str) -> str:
    """
    Mask an email address for the administrative listing.

    Example:
        >>> mask_email("alice@example.com")
        "ali***"
    """
    return f"{email[:3]}{EMAIL_MASK}"


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    This is a safe idempotent operation that won't fail if the directory
    already exists.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining

    Raises:
        OSError: If directory creation fails due to permissions or other I/O errors
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a filename into stem and extension components.

    Args:
        filename: The filename to split (can include path)

    Returns:
        A tuple of (stem, extension) where extension includes the dot

    Example:
        >>> split_extension("document.pdf")
        ("document", ".pdf")
        >>> split_extension("/path/to/file.tar.gz")
        ("file.tar", ".gz")
    """
    path = Path(filename)
    return path.stem, path.suffix
