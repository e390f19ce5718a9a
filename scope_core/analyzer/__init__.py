"""
Analyzer package for extracting and resolving imports from source files.
"""

from scope_core.analyzer.imports import (
    FileAnalysis,
    LocalImport,
    PackageImport,
    SUPPORTED_EXTENSIONS,
    analyze_file,
    classify_import,
    get_language_spec,
)
from scope_core.analyzer.manifest import PackageManifest

__all__ = [
    'FileAnalysis',
    'LocalImport',
    'PackageImport',
    'PackageManifest',
    'SUPPORTED_EXTENSIONS',
    'analyze_file',
    'classify_import',
    'get_language_spec',
]
