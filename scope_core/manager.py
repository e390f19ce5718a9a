"""
File Scope Manager Module

This module provides the coordinator between the engine, storage, the file
watcher and the outer interfaces (MCP tools, HTTP API, command line). It
owns the active tree and serializes every operation that reads or mutates it.
"""

import os
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from scope_core.context import ScopeContext
from scope_core.exceptions import StorageError, TreeNotLoadedError
from scope_core.models import FileNode, FileTreeConfig
from scope_core.paths import normalize_and_resolve_path, normalize_path, to_platform_path
from scope_core.scanner.directory_scanner import create_file_tree
from scope_core.graph.builder import find_node, get_all_file_nodes
from scope_core.graph.importance import recalculate_importance, set_file_importance
from scope_core.graph.incremental import add_file_node, remove_file_node, update_file_node
from scope_core.storage.json_storage import JSONTreeStorage
from scope_core.diagram.mermaid import DiagramConfig, MermaidDiagram, MermaidGenerator
from scope_core.watchers.file_watcher import FileWatcherThread

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_TREE_FILENAME = 'file-scope-tree.json'


class FileScopeManager:
    """
    Manages the active file tree and keeps it in step with the filesystem.

    A tree is made active by ``create_file_tree`` (scan or reuse a saved
    tree) or ``select_file_tree`` (load a saved tree). Mutations are saved
    back to storage as they happen.
    """

    def __init__(self, storage: JSONTreeStorage, project_root: Optional[str] = None,
                 exclude_patterns: Optional[Sequence[str]] = None,
                 sdk_packages: Optional[Sequence[str]] = None):
        """
        Initialize the manager.

        Args:
            storage: Where trees are saved and loaded
            project_root: Project root recorded in new tree configs and used
                to resolve relative base directories
            exclude_patterns: Glob patterns skipped by scans and file events
            sdk_packages: Package names that count as SDK dependencies
        """
        self.storage = storage
        self.project_root = normalize_path(os.path.abspath(project_root or os.getcwd()))
        self.exclude_patterns: List[str] = list(exclude_patterns or [])
        self.sdk_packages = list(sdk_packages) if sdk_packages else None
        self.ctx: Optional[ScopeContext] = None
        self.tree_config: Optional[FileTreeConfig] = None
        self._lock = threading.RLock()
        self._watcher: Optional[FileWatcherThread] = None

    # --- Tree lifecycle ----------------------------------------------------

    def _new_context(self, base_directory: str) -> ScopeContext:
        return ScopeContext.create(
            base_directory,
            project_root=self.project_root,
            exclude_patterns=self.exclude_patterns,
            sdk_packages=self.sdk_packages,
        )

    @property
    def has_tree(self) -> bool:
        return self.ctx is not None and self.ctx.tree is not None

    def require_tree(self) -> ScopeContext:
        """
        Return the active context.

        Raises:
            TreeNotLoadedError: If no tree has been created or selected
        """
        if self.ctx is None or self.ctx.tree is None:
            raise TreeNotLoadedError("No file tree loaded. Create or select a file tree first.")
        return self.ctx

    def create_file_tree(self, filename: str, base_directory: str, rescan: bool = False) -> FileTreeConfig:
        """
        Make a tree for a directory the active tree.

        A saved tree with the same filename and base directory is reused
        unless ``rescan`` is set; otherwise the directory is scanned and the
        result saved.

        Args:
            filename: Name to save the tree under
            base_directory: Directory to scan, absolute or relative to the project root
            rescan: Always scan, ignoring any saved tree

        Returns:
            The active tree's configuration
        """
        with self._lock:
            config = self.storage.create_file_tree_config(filename, base_directory, self.project_root)

            if not rescan:
                try:
                    saved = self.storage.load_file_tree(config.filename)
                except StorageError as e:
                    logger.debug(f"No usable saved tree {config.filename}: {e}")
                else:
                    if saved.config.base_directory == config.base_directory:
                        self._activate(saved.config, saved.file_tree)
                        logger.info(f"Reusing saved file tree {config.filename}")
                        return saved.config
                    logger.info(f"Saved tree {config.filename} is for {saved.config.base_directory}, rescanning")

            ctx = self._new_context(config.base_directory)
            create_file_tree(ctx)
            self.ctx = ctx
            self.tree_config = config
            self.storage.save_file_tree(config, ctx.tree)
            return config

    def select_file_tree(self, filename: str) -> FileTreeConfig:
        """
        Load a saved tree and make it the active tree.

        Raises:
            StorageError: If the tree cannot be loaded
        """
        with self._lock:
            saved = self.storage.load_file_tree(filename)
            self._activate(saved.config, saved.file_tree)
            logger.info(f"Selected file tree {saved.config.filename}")
            return saved.config

    def _activate(self, config: FileTreeConfig, tree: FileNode) -> None:
        ctx = self._new_context(config.base_directory)
        ctx.tree = tree
        self.ctx = ctx
        self.tree_config = config

    def rescan(self) -> FileTreeConfig:
        """Scan the active tree's directory again and save the result."""
        with self._lock:
            ctx = self.require_tree()
            create_file_tree(ctx)
            self._save()
            return self.tree_config

    def delete_file_tree(self, filename: str) -> bool:
        """Delete a saved tree; the active tree is dropped if it was that one."""
        with self._lock:
            deleted = self.storage.delete_file_tree(filename)
            dropped = self.tree_config is not None and self.tree_config.filename == os.path.basename(filename)
            if dropped:
                self.ctx = None
                self.tree_config = None

        # Outside the lock: the watcher thread may be waiting on it
        if dropped:
            self.stop_watching()
        return deleted

    def list_saved_trees(self) -> List[str]:
        return self.storage.list_saved_trees()

    def _save(self) -> None:
        if self.tree_config is not None and self.ctx is not None and self.ctx.tree is not None:
            self.storage.save_file_tree(self.tree_config, self.ctx.tree)

    # --- Queries -----------------------------------------------------------

    def tree_dict(self) -> Dict[str, Any]:
        """The whole tree in its persisted shape, serialized under the lock."""
        with self._lock:
            return self.require_tree().tree.to_dict()

    def get_file(self, filepath: str) -> Optional[FileNode]:
        """Find a file or directory node by exact, relative, suffix or name match."""
        with self._lock:
            ctx = self.require_tree()
            return find_node(ctx.tree, filepath, lenient=True, base_dir=ctx.base_directory)

    def get_all_files(self) -> List[FileNode]:
        with self._lock:
            return get_all_file_nodes(self.require_tree().tree)

    def find_important_files(self, limit: int = 10, min_importance: int = 0) -> List[FileNode]:
        """Files at or above ``min_importance``, most important first."""
        files = [node for node in self.get_all_files() if (node.importance or 0) >= min_importance]
        files.sort(key=lambda node: node.importance or 0, reverse=True)
        return files[:limit]

    def read_file_content(self, filepath: str) -> str:
        """
        Read a file's text, resolving relative paths against the base directory.

        Raises:
            FileNotFoundError: If the file does not exist
            IsADirectoryError: If the path is a directory
        """
        base = self.ctx.base_directory if self.ctx is not None else self.project_root
        path = normalize_and_resolve_path(filepath, base)
        with open(to_platform_path(path), 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    # --- Mutations ---------------------------------------------------------

    def set_file_summary(self, filepath: str, summary: str) -> Optional[FileNode]:
        with self._lock:
            node = self.get_file(filepath)
            if node is None:
                return None
            node.summary = summary
            self._save()
            return node

    def set_file_importance(self, filepath: str, importance: float) -> Optional[FileNode]:
        with self._lock:
            node = set_file_importance(self.require_tree(), filepath, importance)
            if node is not None:
                self._save()
            return node

    def recalculate_importance(self) -> int:
        with self._lock:
            count = recalculate_importance(self.require_tree())
            self._save()
            return count

    def _resolve(self, filepath: str) -> str:
        return normalize_and_resolve_path(filepath, self.require_tree().base_directory)

    def add_file(self, filepath: str) -> bool:
        with self._lock:
            added = add_file_node(self.require_tree(), self._resolve(filepath))
            if added:
                self._save()
            return added

    def remove_file(self, filepath: str) -> bool:
        with self._lock:
            removed = remove_file_node(self.require_tree(), self._resolve(filepath))
            if removed:
                self._save()
            return removed

    def update_file(self, filepath: str) -> bool:
        with self._lock:
            updated = update_file_node(self.require_tree(), self._resolve(filepath))
            if updated:
                self._save()
            return updated

    def generate_diagram(self, config: Optional[DiagramConfig] = None,
                         output_path: Optional[str] = None) -> MermaidDiagram:
        """
        Render the active tree as a Mermaid diagram.

        Args:
            config: Diagram options
            output_path: If given, the code is also written to this path
                (``.mmd`` is appended when missing)

        Returns:
            The rendered diagram
        """
        with self._lock:
            diagram = MermaidGenerator(self.require_tree().tree, config).generate()

        if output_path:
            path = output_path if output_path.endswith('.mmd') else f"{output_path}.mmd"
            directory = os.path.dirname(os.path.abspath(path))
            os.makedirs(directory, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(diagram.code)
            logger.info(f"Saved diagram to {path}")
        return diagram

    # --- File events -------------------------------------------------------

    def on_file_event(self, event_type: str, filepath: str) -> None:
        """
        Handle a file event by patching the active tree.

        Args:
            event_type: Type of the event, one of 'created', 'modified', or 'deleted'
            filepath: Path to the file that triggered the event

        Raises:
            ValueError: If the event_type is not one of 'created', 'modified', or 'deleted'
        """
        if event_type not in ('created', 'modified', 'deleted'):
            raise ValueError(f"Invalid event type: {event_type}")

        with self._lock:
            if not self.has_tree:
                logger.debug(f"Ignoring {event_type} event for {filepath}: no tree loaded")
                return

            ctx = self.ctx
            path = normalize_path(filepath)

            if not path.startswith(ctx.base_directory.rstrip('/') + '/'):
                logger.debug(f"Ignoring event outside {ctx.base_directory}: {path}")
                return
            if ctx.exclusion_filter.is_excluded(path):
                logger.debug(f"Ignoring event for excluded path: {path}")
                return

            try:
                if event_type == 'deleted':
                    changed = remove_file_node(ctx, path)
                elif os.path.isdir(to_platform_path(path)):
                    logger.debug(f"Ignoring directory event: {path}")
                    return
                elif event_type == 'created':
                    changed = add_file_node(ctx, path)
                else:
                    changed = update_file_node(ctx, path) or add_file_node(ctx, path)

                if changed:
                    self._save()
                    logger.info(f"Updated tree for {event_type} file: {path}")
            except FileNotFoundError:
                logger.warning(f"File not found: {path}")
            except PermissionError:
                logger.error(f"Permission denied when accessing file: {path}")
            except Exception as e:
                logger.error(f"Error processing file event for {path}: {str(e)}")
                raise

    def start_watching(self) -> FileWatcherThread:
        """Watch the active tree's directory on a background thread."""
        with self._lock:
            ctx = self.require_tree()
            if self._watcher is None or not self._watcher.is_running():
                self._watcher = FileWatcherThread(self.on_file_event, ctx.base_directory, ctx.exclusion_filter)
                self._watcher.start()
            return self._watcher

    def stop_watching(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    # --- Serialization helpers for the outer interfaces --------------------

    def describe_file(self, node: FileNode) -> Dict[str, Any]:
        return {
            'path': node.path,
            'importance': node.importance or 0,
            'dependencies': list(node.dependencies or []),
            'dependents': list(node.dependents or []),
            'packageDependencies': [dep.to_dict() for dep in node.package_dependencies or []],
            'summary': node.summary,
        }
