"""
Exclusion Filter Module

This module decides which filesystem entries are skipped during a scan. A few
names are always excluded; everything else is matched against user-supplied
glob patterns compiled once into anchored regular expressions.
"""

import os
import re
import logging
from typing import List, Optional, Sequence, Tuple

from scope_core.paths import normalize_path, relative_path

# Set up logging
logger = logging.getLogger(__name__)

# Excluded regardless of configuration: version control metadata and package/module caches
ALWAYS_EXCLUDED_NAMES = frozenset({'.git', 'node_modules', '__pycache__'})

_REGEX_SPECIALS = set('.+^${}()|[]\\')


def glob_to_regex(pattern: str) -> 're.Pattern[str]':
    """
    Convert a glob pattern to an anchored, case-insensitive regular expression.

    ``**`` matches any run of characters including separators (a leading
    ``**/`` also matches zero directories), ``*`` matches any run of
    non-separator characters and ``?`` exactly one non-separator character.

    Args:
        pattern: The glob pattern

    Returns:
        The compiled regular expression

    Examples:
        >>> bool(glob_to_regex('**/*.log').match('logs/app.log'))
        True
        >>> bool(glob_to_regex('dist/*').match('dist/sub/file.js'))
        False
    """
    parts: List[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith('**/', i):
            parts.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            parts.append('.*')
            i += 2
        elif char == '*':
            parts.append(r'[^/\\]*')
            i += 1
        elif char == '?':
            parts.append(r'[^/\\]')
            i += 1
        else:
            parts.append('\\' + char if char in _REGEX_SPECIALS else char)
            i += 1
    return re.compile('^' + ''.join(parts) + '$', re.IGNORECASE)


def _is_extension_pattern(pattern: str) -> bool:
    return pattern.startswith('**/*.') or '/*.' in pattern


class ExclusionFilter:
    """
    Decides whether a path under a scan root should be skipped.

    The filter is built once per scan from the configured pattern list and is
    read-only afterwards.
    """

    def __init__(self, base_dir: str, patterns: Optional[Sequence[str]] = None):
        """
        Initialize the filter.

        Args:
            base_dir: The scan root; patterns are matched against paths relative to it
            patterns: Ordered glob patterns from the exclusion configuration
        """
        self.base_dir = normalize_path(base_dir)
        self.patterns: List[str] = list(patterns or [])
        self._compiled: List[Tuple[str, 're.Pattern[str]', bool]] = []

        for pattern in self.patterns:
            try:
                self._compiled.append((pattern, glob_to_regex(pattern), _is_extension_pattern(pattern)))
            except re.error as e:
                logger.warning(f"Ignoring invalid exclude pattern {pattern!r}: {e}")

        logger.debug(f"Compiled {len(self._compiled)} exclude patterns for {self.base_dir}")

    def is_always_excluded(self, filepath: str) -> bool:
        """Return True if any segment of the path is an always-excluded name."""
        rel = relative_path(normalize_path(filepath), self.base_dir)
        return any(segment in ALWAYS_EXCLUDED_NAMES for segment in rel.split('/'))

    def is_excluded(self, filepath: str) -> bool:
        """
        Check whether a path should be skipped.

        Args:
            filepath: Absolute path of the entry

        Returns:
            True if the entry is excluded
        """
        normalized = normalize_path(filepath)
        if self.is_always_excluded(normalized):
            logger.debug(f"Always-excluded path: {normalized}")
            return True

        rel = relative_path(normalized, self.base_dir)
        filename = os.path.basename(normalized)

        for pattern, regex, match_filename in self._compiled:
            if regex.match(rel):
                logger.debug(f"Path {rel} matches exclude pattern {pattern}")
                return True
            if match_filename and regex.match(filename):
                logger.debug(f"Filename {filename} matches exclude pattern {pattern}")
                return True

        return False

    def __call__(self, filepath: str) -> bool:
        return self.is_excluded(filepath)
