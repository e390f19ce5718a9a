"""
Scope Context Module

Every engine operation receives a ScopeContext instead of reading
module-level state: the live tree, the directories it was built from, the
exclusion filter and scoring settings all travel together.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from scope_core.models import FileNode
from scope_core.paths import normalize_path
from scope_core.analyzer.manifest import PackageManifest
from scope_core.scanner.filters import ExclusionFilter
from scope_core.graph.importance import DEFAULT_SDK_PACKAGES

# Set up logging
logger = logging.getLogger(__name__)


@dataclass
class ScopeContext:
    """
    Explicit state for one file tree.

    Attributes:
        base_directory: Normalized scan root
        project_root: Normalized project root recorded with saved trees
        exclusion_filter: Filter applied during scans and to file events
        sdk_packages: Package names whose imports score as SDK dependencies
        tree: The live tree, or None before the first scan/load
        importance_overrides: Manually set scores, kept until the next full scan
        manifest: Package manifest used for version lookups
    """
    base_directory: str
    project_root: str
    exclusion_filter: ExclusionFilter
    sdk_packages: Tuple[str, ...] = DEFAULT_SDK_PACKAGES
    tree: Optional[FileNode] = None
    importance_overrides: Dict[str, int] = field(default_factory=dict)
    manifest: Optional[PackageManifest] = None

    @classmethod
    def create(cls, base_directory: str, project_root: Optional[str] = None,
               exclude_patterns: Optional[Sequence[str]] = None,
               sdk_packages: Optional[Sequence[str]] = None) -> 'ScopeContext':
        """
        Build a context for a directory.

        Args:
            base_directory: Directory to scan (made absolute and normalized)
            project_root: Project root; defaults to the base directory
            exclude_patterns: Glob patterns to exclude from scans
            sdk_packages: Override for the SDK package names used in scoring

        Returns:
            A new ScopeContext with no tree
        """
        base = normalize_path(os.path.abspath(base_directory))
        root = normalize_path(os.path.abspath(project_root)) if project_root else base
        return cls(
            base_directory=base,
            project_root=root,
            exclusion_filter=ExclusionFilter(base, exclude_patterns),
            sdk_packages=tuple(sdk_packages) if sdk_packages else DEFAULT_SDK_PACKAGES,
        )

    def get_manifest(self) -> PackageManifest:
        """Return the package manifest for the base directory, loading it lazily."""
        if self.manifest is None:
            self.manifest = PackageManifest(self.base_directory)
        return self.manifest

    def reset_manifest(self) -> None:
        """Forget the cached manifest so the next lookup re-reads it."""
        if self.manifest is not None:
            logger.debug(f"Dropping cached package manifest for {self.base_directory}")
        self.manifest = None
