"""
File Scope Core Package

This package scans a project directory into a file tree, links the files
by their imports in both directions and ranks every file by importance.
"""

from scope_core.context import ScopeContext
from scope_core.manager import FileScopeManager
from scope_core.models import FileNode, FileTreeConfig, FileTreeStorage, PackageDependency
from scope_core.storage.json_storage import JSONTreeStorage
from scope_core.api import create_app

__all__ = [
    'ScopeContext',
    'FileScopeManager',
    'FileNode',
    'FileTreeConfig',
    'FileTreeStorage',
    'PackageDependency',
    'JSONTreeStorage',
    'create_app',
]
