"""
Directory Scanner Module

This module walks a project directory and builds the file tree. Each file is
analysed for imports and given its initial importance as it is found; the
dependents and refined scores are filled in by ``create_file_tree`` once the
whole tree exists.
"""

import os
import logging
from typing import TYPE_CHECKING, List, Optional

from scope_core.models import FileNode
from scope_core.paths import normalize_path, to_platform_path
from scope_core.analyzer.imports import analyze_file
from scope_core.graph.builder import build_dependent_map
from scope_core.graph.importance import calculate_initial_importance, recalculate_importance

if TYPE_CHECKING:
    from scope_core.context import ScopeContext

# Set up logging
logger = logging.getLogger(__name__)


def _basename(path: str) -> str:
    return path.rsplit('/', 1)[-1] or path


def build_file_node(filepath: str, ctx: 'ScopeContext') -> FileNode:
    """
    Create a file node with its outgoing edges and initial importance.

    Args:
        filepath: Normalized path of the file
        ctx: The scope context

    Returns:
        A new FileNode whose ``dependents`` list is empty
    """
    node = FileNode.file(filepath, _basename(filepath))

    analysis = analyze_file(filepath, ctx.base_directory, ctx.get_manifest())
    node.dependencies = analysis.dependencies
    node.package_dependencies = analysis.package_dependencies
    node.importance = calculate_initial_importance(filepath, ctx.base_directory)

    logger.debug(
        f"Analyzed {filepath}: {len(node.dependencies)} local, "
        f"{len(node.package_dependencies)} package dependencies"
    )
    return node


def _list_entries(directory: str) -> Optional[List[os.DirEntry]]:
    try:
        with os.scandir(to_platform_path(directory)) as it:
            return sorted(it, key=lambda entry: entry.name)
    except FileNotFoundError:
        logger.warning(f"Directory not found: {directory}")
    except OSError as e:
        logger.warning(f"Cannot read directory {directory}: {e}")
    return None


def _scan(ctx: 'ScopeContext', directory: str) -> Optional[FileNode]:
    entries = _list_entries(directory)
    if entries is None:
        return None

    dir_node = FileNode.directory(directory, _basename(directory))
    logger.debug(f"Scanning {directory} ({len(entries)} entries)")

    for entry in entries:
        full_path = normalize_path(f"{directory}/{entry.name}")

        if ctx.exclusion_filter.is_excluded(full_path):
            logger.debug(f"Skipping excluded path: {full_path}")
            continue

        try:
            if entry.is_dir(follow_symlinks=False):
                child = _scan(ctx, full_path)
                if child is not None:
                    dir_node.children.append(child)
            elif entry.is_file():
                dir_node.children.append(build_file_node(full_path, ctx))
        except OSError as e:
            logger.warning(f"Skipping unreadable entry {full_path}: {e}")

    return dir_node


def scan_directory(ctx: 'ScopeContext', current_dir: Optional[str] = None) -> FileNode:
    """
    Recursively scan a directory into a tree of nodes.

    Entries are visited in name order. Excluded entries and symlinks to
    directories are skipped, as are subdirectories that disappear or cannot
    be listed during the walk. A scan root that cannot be listed becomes a
    node without children.

    Args:
        ctx: The scope context
        current_dir: Directory to scan; defaults to the context's base directory

    Returns:
        The directory node for ``current_dir``
    """
    directory = normalize_path(current_dir or ctx.base_directory)
    dir_node = _scan(ctx, directory)
    if dir_node is None:
        return FileNode.directory(directory, _basename(directory))
    return dir_node


def create_file_tree(ctx: 'ScopeContext') -> FileNode:
    """
    Run a full scan of the context's base directory.

    Scans the directory, links dependents, computes refined importance for
    every file and installs the result as the context's live tree. Manual
    importance overrides from earlier trees are discarded.

    Args:
        ctx: The scope context

    Returns:
        The root node of the new tree
    """
    logger.info(f"Scanning {ctx.base_directory}")
    ctx.reset_manifest()
    ctx.importance_overrides.clear()

    tree = scan_directory(ctx)
    build_dependent_map(tree)
    file_count = recalculate_importance(ctx, tree)

    ctx.tree = tree
    logger.info(f"Built file tree for {ctx.base_directory} with {file_count} files")
    return tree
