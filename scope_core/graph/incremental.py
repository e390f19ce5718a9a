"""
Incremental Update Module

This module patches a live file tree for single-file changes without a full
rescan. Each operation repairs the dependency/dependent symmetry for the
edges it touches and rescores only the changed file and its direct
neighbours; files further away keep their scores until the next full
recalculation.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List

from scope_core.models import FileNode
from scope_core.paths import normalize_path
from scope_core.analyzer.imports import analyze_file
from scope_core.scanner.directory_scanner import build_file_node
from scope_core.graph.builder import build_node_index
from scope_core.graph.importance import rescore_node

if TYPE_CHECKING:
    from scope_core.context import ScopeContext

# Set up logging
logger = logging.getLogger(__name__)


def _parent_path(filepath: str) -> str:
    parent = filepath.rsplit('/', 1)[0]
    return parent or '/'


def _rescore(paths: Iterable[str], index: Dict[str, FileNode], ctx: 'ScopeContext') -> None:
    for path in paths:
        node = index.get(path)
        if node is not None and not node.is_directory:
            rescore_node(node, ctx)


def add_file_node(ctx: 'ScopeContext', filepath: str) -> bool:
    """
    Add a single file to the live tree.

    The file is analysed, scored and inserted under its parent directory,
    and its path is added to the ``dependents`` of every file it imports.

    Args:
        ctx: The scope context holding the live tree
        filepath: Path of the new file

    Returns:
        True if the node was added, False if no tree is loaded, the parent
        directory is missing or the file is already present
    """
    if ctx.tree is None:
        logger.warning(f"Cannot add {filepath}: no file tree is loaded")
        return False

    path = normalize_path(filepath)
    index = build_node_index(ctx.tree)

    parent = index.get(_parent_path(path))
    if parent is None or not parent.is_directory:
        logger.warning(f"Cannot add {path}: parent directory is not in the tree")
        return False

    if any(child.path == path for child in parent.children or []):
        logger.info(f"File already in tree, skipping add: {path}")
        return False

    node = build_file_node(path, ctx)
    rescore_node(node, ctx)

    if parent.children is None:
        parent.children = []
    parent.children.append(node)
    parent.children.sort(key=lambda child: child.name)
    index[path] = node

    for dep_path in node.dependencies:
        target = index.get(dep_path)
        if target is None or target.is_directory:
            continue
        if target.dependents is None:
            target.dependents = []
        if path not in target.dependents:
            target.dependents.append(path)

    _rescore([path, *node.dependencies], index, ctx)

    logger.info(f"Added {path} with {len(node.dependencies)} local dependencies")
    return True


def remove_file_node(ctx: 'ScopeContext', filepath: str) -> bool:
    """
    Remove a single file from the live tree.

    The node is detached from its parent and its path is removed from the
    ``dependents`` of the files it imported and from the ``dependencies`` of
    the files that imported it.

    Args:
        ctx: The scope context holding the live tree
        filepath: Path of the file to remove

    Returns:
        True if the node was removed, False if it was not found, is a
        directory or has no parent
    """
    if ctx.tree is None:
        logger.warning(f"Cannot remove {filepath}: no file tree is loaded")
        return False

    path = normalize_path(filepath)
    index = build_node_index(ctx.tree)

    node = index.get(path)
    if node is None or node.is_directory:
        logger.info(f"File not in tree, skipping remove: {path}")
        return False

    parent = index.get(_parent_path(path))
    if parent is None or not parent.is_directory \
            or not any(child.path == path for child in parent.children or []):
        logger.warning(f"Cannot remove {path}: parent directory is not in the tree")
        return False

    old_dependencies: List[str] = list(node.dependencies or [])
    old_dependents: List[str] = list(node.dependents or [])

    parent.children = [child for child in parent.children if child.path != path]
    del index[path]

    for dep_path in old_dependencies:
        target = index.get(dep_path)
        if target is not None and target.dependents:
            target.dependents = [p for p in target.dependents if p != path]

    for dependent_path in old_dependents:
        depender = index.get(dependent_path)
        if depender is not None and depender.dependencies:
            depender.dependencies = [p for p in depender.dependencies if p != path]

    _rescore(old_dependencies + old_dependents, index, ctx)

    logger.info(
        f"Removed {path} ({len(old_dependencies)} dependencies, "
        f"{len(old_dependents)} dependents updated)"
    )
    return True


def update_file_node(ctx: 'ScopeContext', filepath: str) -> bool:
    """
    Re-analyse a modified file in place.

    The file keeps its node and its ``dependents``; its outgoing edges are
    replaced and the ``dependents`` of the files it stopped or started
    importing are patched.

    Args:
        ctx: The scope context holding the live tree
        filepath: Path of the modified file

    Returns:
        True if the node was updated, False if it is not a file in the tree
    """
    if ctx.tree is None:
        logger.warning(f"Cannot update {filepath}: no file tree is loaded")
        return False

    path = normalize_path(filepath)
    index = build_node_index(ctx.tree)

    node = index.get(path)
    if node is None or node.is_directory:
        logger.info(f"File not in tree, skipping update: {path}")
        return False

    analysis = analyze_file(path, ctx.base_directory, ctx.get_manifest())
    old_dependencies = list(node.dependencies or [])
    new_dependencies = analysis.dependencies

    dropped = [dep for dep in old_dependencies if dep not in new_dependencies]
    added = [dep for dep in new_dependencies if dep not in old_dependencies]

    for dep_path in dropped:
        target = index.get(dep_path)
        if target is not None and target.dependents:
            target.dependents = [p for p in target.dependents if p != path]

    for dep_path in added:
        target = index.get(dep_path)
        if target is None or target.is_directory:
            continue
        if target.dependents is None:
            target.dependents = []
        if path not in target.dependents:
            target.dependents.append(path)

    node.dependencies = new_dependencies
    node.package_dependencies = analysis.package_dependencies

    _rescore([path, *dropped, *new_dependencies], index, ctx)

    logger.info(f"Updated {path}: +{len(added)} / -{len(dropped)} dependencies")
    return True
