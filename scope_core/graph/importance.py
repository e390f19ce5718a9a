"""
Importance Scoring Module

This module assigns each file a heuristic importance score between 0 and 10.
The initial score uses only the file's type, location and name; the refined
score adds graph centrality once dependents are known.
"""

import os
import logging
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Sequence

from scope_core.models import FileNode
from scope_core.paths import normalize_path, relative_path
from scope_core.graph.builder import find_node, get_all_file_nodes

if TYPE_CHECKING:
    from scope_core.context import ScopeContext

# Set up logging
logger = logging.getLogger(__name__)

MIN_IMPORTANCE = 0
MAX_IMPORTANCE = 10

# Package names whose imports count as SDK dependencies when scoring
DEFAULT_SDK_PACKAGES = ('@modelcontextprotocol/sdk', 'mcp')

MANIFEST_FILES = frozenset({
    'package.json', 'tsconfig.json', 'pyproject.toml', 'setup.py',
    'cargo.toml', 'build.zig', 'cmakelists.txt',
})
MANIFEST_POINTS = 4

EXTENSION_POINTS: Dict[str, int] = {
    '.ts': 3, '.tsx': 3, '.py': 3, '.rs': 3, '.go': 3,
    '.c': 3, '.cpp': 3, '.zig': 3, '.java': 3,
    '.js': 2, '.jsx': 2, '.mjs': 2, '.cjs': 2,
    '.h': 2, '.hpp': 2, '.lua': 2,
    '.json': 1, '.yaml': 1, '.yml': 1, '.toml': 1,
}

SOURCE_DIRECTORIES = frozenset({'src', 'app', 'lib'})
SOURCE_DIRECTORY_POINTS = 2
TEST_DIRECTORIES = frozenset({'test', 'tests'})
TEST_DIRECTORY_POINTS = 1

SIGNIFICANT_NAMES = frozenset({
    'index', 'main', 'server', 'app', 'config', 'types', 'utils',
    'lib', 'mod', '__init__', '__main__',
})
SIGNIFICANT_NAME_POINTS = 2


def clamp_importance(value: float) -> int:
    """Clamp a score to the closed interval [0, 10] as an integer."""
    return int(max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, int(value))))


def _base_points(filename: str) -> int:
    lowered = filename.lower()
    if lowered in MANIFEST_FILES:
        return MANIFEST_POINTS
    stem, ext = os.path.splitext(lowered)
    if ext == '.md':
        return 2 if stem == 'readme' else 1
    return EXTENSION_POINTS.get(ext, 0)


def calculate_initial_importance(filepath: str, base_dir: str) -> int:
    """
    Score a file from static signals only.

    Args:
        filepath: Normalized path of the file
        base_dir: Normalized scan root, used to find the top-level directory

    Returns:
        The initial score in [0, 10]

    Examples:
        >>> calculate_initial_importance('/p/src/index.ts', '/p')
        7
        >>> calculate_initial_importance('/p/notes.txt', '/p')
        0
    """
    filepath = normalize_path(filepath)
    filename = os.path.basename(filepath)
    stem = os.path.splitext(filename)[0].lower()
    parts = relative_path(filepath, normalize_path(base_dir)).split('/')

    importance = _base_points(filename)

    # Location only counts for files inside a top-level directory
    if len(parts) > 1:
        if parts[0] in SOURCE_DIRECTORIES:
            importance += SOURCE_DIRECTORY_POINTS
        elif parts[0] in TEST_DIRECTORIES:
            importance += TEST_DIRECTORY_POINTS

    if stem in SIGNIFICANT_NAMES:
        importance += SIGNIFICANT_NAME_POINTS

    return clamp_importance(importance)


def is_sdk_package(name: str, sdk_packages: Iterable[str] = DEFAULT_SDK_PACKAGES) -> bool:
    """Return True if a package name is (or lives under) one of the SDK packages."""
    return any(name == sdk or name.startswith(sdk + '/') for sdk in sdk_packages)


def calculate_importance(node: FileNode, base_dir: str,
                         sdk_packages: Sequence[str] = DEFAULT_SDK_PACKAGES) -> int:
    """
    Compute the refined score of a single file node in place.

    The score is recomputed from scratch: initial score plus capped bonuses
    for dependents (max 3), local dependencies (max 2), SDK package
    dependencies (max 2) and other package dependencies (max 1).

    Args:
        node: The file node to score
        base_dir: Normalized scan root
        sdk_packages: Package names that count as SDK dependencies

    Returns:
        The new importance value (directories are left unscored and return 0)
    """
    if node.is_directory:
        return 0

    importance = calculate_initial_importance(node.path, base_dir)
    importance += min(len(node.dependents or []), 3)
    importance += min(len(node.dependencies or []), 2)

    package_names = [dep.name for dep in node.package_dependencies or [] if dep.name]
    sdk_count = sum(1 for name in package_names if is_sdk_package(name, sdk_packages))
    other_count = len(package_names) - sdk_count
    importance += min(sdk_count, 2)
    importance += min(other_count, 1)

    node.importance = clamp_importance(importance)
    return node.importance


def rescore_node(node: FileNode, ctx: 'ScopeContext') -> int:
    """Recompute one node's score, honouring a manual override if one is set."""
    if node.is_directory:
        return 0
    override = ctx.importance_overrides.get(node.path)
    if override is not None:
        node.importance = override
        return override
    return calculate_importance(node, ctx.base_directory, ctx.sdk_packages)


def recalculate_importance(ctx: 'ScopeContext', root: Optional[FileNode] = None) -> int:
    """
    Re-run the refined scoring over every file in the tree.

    Args:
        ctx: The scope context
        root: Tree to score; defaults to the context's tree

    Returns:
        Number of files scored
    """
    tree = root if root is not None else ctx.tree
    if tree is None:
        return 0

    files = get_all_file_nodes(tree)
    for node in files:
        rescore_node(node, ctx)

    logger.info(f"Recalculated importance for {len(files)} files")
    return len(files)


def set_file_importance(ctx: 'ScopeContext', filepath: str, importance: float) -> Optional[FileNode]:
    """
    Manually override a file's importance.

    The value is clamped to [0, 10] and kept until the next full scan; later
    rescoring of the node keeps returning it.

    Args:
        ctx: The scope context
        filepath: Path of the file (exact, relative or suffix match)
        importance: The value to set

    Returns:
        The updated node, or None if no file matched
    """
    if ctx.tree is None:
        return None

    node = find_node(ctx.tree, filepath, lenient=True, base_dir=ctx.base_directory)
    if node is None or node.is_directory:
        logger.warning(f"Cannot set importance, file not found: {filepath}")
        return None

    value = clamp_importance(importance)
    node.importance = value
    ctx.importance_overrides[node.path] = value
    logger.info(f"Set importance of {node.path} to {value}")
    return node
