"""
Path Normalization Module

This module canonicalizes path strings so that paths coming from the
filesystem, from saved trees and from remote callers compare equal regardless
of platform conventions.
"""

import os
import re
import logging
from typing import Optional
from urllib.parse import unquote

# Set up logging
logger = logging.getLogger(__name__)

_DRIVE_WITH_LEADING_SLASH = re.compile(r'^/[a-zA-Z]:')
_DRIVE_LETTER = re.compile(r'^[a-zA-Z]:/')
_DUPLICATE_SLASHES = re.compile(r'/+')


def _normalize_once(filepath: str) -> str:
    decoded = unquote(filepath, errors='strict') if '%' in filepath else filepath
    forward_slashed = decoded.replace('\\', '/')
    no_quotes = forward_slashed.replace('"', '')
    deduped = _DUPLICATE_SLASHES.sub('/', no_quotes)
    if _DRIVE_WITH_LEADING_SLASH.match(deduped):
        deduped = deduped[1:]
    if len(deduped) > 1 and deduped.endswith('/'):
        deduped = deduped[:-1]
    return deduped


def normalize_path(filepath: str) -> str:
    """
    Normalize a file path for consistent comparison across platforms.

    The result is URL-decoded, uses forward slashes, has no quote characters,
    no duplicate slashes, no trailing slash and no leading slash before a
    Windows drive letter. Normalizing an already-normalized path returns it
    unchanged.

    Args:
        filepath: The path string to normalize

    Returns:
        The canonical path, or the original string if it could not be decoded

    Examples:
        >>> normalize_path('C:\\\\Users\\\\dev\\\\project\\\\')
        'C:/Users/dev/project'
        >>> normalize_path('/C:/Users/dev%20files//src')
        'C:/Users/dev files/src'
    """
    if not filepath:
        return ''

    try:
        # A pass that changes the string shortens it or removes a backslash,
        # so repeating until it settles terminates
        current = filepath
        while True:
            normalized = _normalize_once(current)
            if normalized == current:
                return current
            current = normalized
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Failed to normalize path {filepath!r}: {e}")
        return filepath


def to_platform_path(normalized_path: str) -> str:
    """Convert a normalized forward-slash path to the host OS separator."""
    return os.sep.join(normalized_path.split('/'))


def is_absolute_path(filepath: str) -> bool:
    """Return True for POSIX absolute paths and Windows drive-letter paths."""
    return filepath.startswith('/') or bool(_DRIVE_LETTER.match(filepath))


def normalize_and_resolve_path(input_path: str, base_directory: Optional[str] = None) -> str:
    """
    Normalize a path and resolve it against a base directory when relative.

    Args:
        input_path: Absolute or relative path, possibly URL-encoded
        base_directory: Directory relative paths are resolved against
            (defaults to the current working directory)

    Returns:
        The canonical absolute path
    """
    base = normalize_path(base_directory or os.getcwd())
    if input_path in ('.', './', ''):
        return base

    cleaned = normalize_path(input_path)
    if is_absolute_path(cleaned):
        return cleaned

    logger.debug(f"Resolving relative path {cleaned} against base {base}")
    return normalize_path(os.path.abspath(os.path.join(to_platform_path(base), to_platform_path(cleaned))))


def relative_path(filepath: str, base_directory: str) -> str:
    """
    Return ``filepath`` relative to ``base_directory`` using forward slashes.

    Both arguments are expected in normalized form; a path outside the base
    is returned unchanged.
    """
    if filepath == base_directory:
        return ''
    prefix = base_directory if base_directory.endswith('/') else base_directory + '/'
    if filepath.startswith(prefix):
        return filepath[len(prefix):]
    return filepath
