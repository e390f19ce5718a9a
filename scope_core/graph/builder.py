"""
Dependency Graph Builder Module

This module derives the ``dependents`` side of the dependency graph from the
``dependencies`` recorded during a scan, and provides the tree lookups the
rest of the engine shares.
"""

import logging
from typing import Dict, List, Optional

import networkx as nx

from scope_core.models import FileNode
from scope_core.paths import normalize_path, normalize_and_resolve_path

# Set up logging
logger = logging.getLogger(__name__)


def iter_nodes(root: FileNode):
    """Yield every node in the tree in pre-order, the root first."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if node.children:
            # Reversed so children come out in their stored order
            stack.extend(reversed(node.children))


def get_all_file_nodes(root: FileNode) -> List[FileNode]:
    """Flatten a tree to its file nodes, in pre-order."""
    return [node for node in iter_nodes(root) if not node.is_directory]


def build_node_index(root: FileNode) -> Dict[str, FileNode]:
    """Map every node's path to the node."""
    return {node.path: node for node in iter_nodes(root)}


def find_node(root: FileNode, filepath: str, lenient: bool = False,
              base_dir: Optional[str] = None) -> Optional[FileNode]:
    """
    Find a node by path.

    An exact lookup compares normalized paths. A lenient lookup, used for
    paths typed by people or remote callers, additionally resolves relative
    paths against ``base_dir`` and then tries a case-insensitive match, a
    path-suffix match and finally a unique basename match.

    Args:
        root: The tree to search
        filepath: Path of the node
        lenient: Whether to fall back to the fuzzy strategies
        base_dir: Directory relative paths are resolved against

    Returns:
        The node, or None if nothing matched
    """
    target = normalize_path(filepath)
    index = build_node_index(root)

    node = index.get(target)
    if node is not None or not lenient:
        return node

    if base_dir:
        resolved = normalize_and_resolve_path(target, base_dir)
        if resolved in index:
            return index[resolved]

    lowered = target.lower()
    for path, candidate in index.items():
        if path.lower() == lowered:
            return candidate

    suffix = '/' + target.lstrip('./').lower()
    for path, candidate in index.items():
        if path.lower().endswith(suffix):
            logger.debug(f"Matched {filepath} to {path} by suffix")
            return candidate

    basename = target.rsplit('/', 1)[-1].lower()
    matches = [candidate for candidate in index.values()
               if not candidate.is_directory and candidate.name.lower() == basename]
    if len(matches) == 1:
        logger.debug(f"Matched {filepath} to {matches[0].path} by file name")
        return matches[0]

    return None


def find_parent(root: FileNode, filepath: str) -> Optional[FileNode]:
    """Return the directory node whose children include the given path."""
    target = normalize_path(filepath)
    for node in iter_nodes(root):
        if node.is_directory and any(child.path == target for child in node.children or []):
            return node
    return None


def build_dependent_map(root: FileNode) -> int:
    """
    Populate each file's ``dependents`` from every file's ``dependencies``.

    Dependency paths with no node in the tree are ignored. ``dependencies``
    are never modified.

    Args:
        root: A scanned tree

    Returns:
        The number of dependency edges linked
    """
    files = get_all_file_nodes(root)
    by_path = {node.path: node for node in files}
    edge_count = 0

    for node in files:
        for dep_path in node.dependencies or []:
            target = by_path.get(dep_path)
            if target is None:
                logger.debug(f"Dependency {dep_path} of {node.path} is not in the tree")
                continue
            if target.dependents is None:
                target.dependents = []
            if node.path not in target.dependents:
                target.dependents.append(node.path)
                edge_count += 1

    logger.info(f"Linked {edge_count} dependency edges across {len(files)} files")
    return edge_count


def to_networkx(root: FileNode) -> nx.DiGraph:
    """
    Build a directed graph of the local dependency edges.

    Nodes are file paths carrying ``name`` and ``importance`` attributes; an
    edge A -> B means A imports B.
    """
    graph = nx.DiGraph()
    files = get_all_file_nodes(root)
    for node in files:
        graph.add_node(node.path, name=node.name, importance=node.importance or 0)
    for node in files:
        for dep_path in node.dependencies or []:
            if dep_path in graph:
                graph.add_edge(node.path, dep_path)
    return graph
