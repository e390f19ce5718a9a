"""
Directory scanning and exclusion filtering.

The scanner itself lives in ``scope_core.scanner.directory_scanner``.
"""

from scope_core.scanner.filters import ALWAYS_EXCLUDED_NAMES, ExclusionFilter, glob_to_regex

__all__ = ['ALWAYS_EXCLUDED_NAMES', 'ExclusionFilter', 'glob_to_regex']
