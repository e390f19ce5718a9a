"""
JSON Tree Storage Module

This module persists scanned file trees as JSON files in a storage
directory. Each file holds one ``{config, fileTree}`` record.
"""

import os
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from scope_core.exceptions import StorageError
from scope_core.models import FileNode, FileTreeConfig, FileTreeStorage
from scope_core.paths import normalize_and_resolve_path, normalize_path

# Set up logging
logger = logging.getLogger(__name__)


class JSONTreeStorage:
    """
    A JSON file-based store for file trees.

    Saved trees are cached per filename after the first load. Writes go to a
    temporary file that is then renamed over the target, so readers never see
    a partially written tree.
    """

    def __init__(self, storage_dir: Optional[str] = None):
        """
        Initialize the JSON tree storage.

        Args:
            storage_dir: Directory the tree files are kept in (defaults to the
                current working directory)
        """
        self.storage_dir = os.path.abspath(storage_dir or os.getcwd())
        self._cache: Dict[str, FileTreeStorage] = {}
        self._lock = threading.RLock()  # Reentrant lock for thread safety

    def _path_for(self, filename: str) -> str:
        return os.path.join(self.storage_dir, os.path.basename(filename))

    def create_file_tree_config(self, filename: str, base_directory: str,
                                project_root: Optional[str] = None) -> FileTreeConfig:
        """
        Build the configuration record for a new tree.

        Only the basename of ``filename`` is kept and a ``.json`` suffix is
        added when missing. The base directory is resolved against the project
        root and created if it does not exist.

        Args:
            filename: Name to save the tree under
            base_directory: Directory the tree is scanned from
            project_root: Project root (defaults to the working directory)

        Returns:
            The new FileTreeConfig
        """
        root = normalize_path(os.path.abspath(project_root or os.getcwd()))
        base = normalize_and_resolve_path(base_directory, root)

        basename = os.path.basename(filename)
        clean_filename = basename if basename.endswith('.json') else f"{basename}.json"

        os.makedirs(base, exist_ok=True)

        config = FileTreeConfig(
            filename=clean_filename,
            base_directory=base,
            project_root=root,
            last_updated=datetime.now(timezone.utc),
        )
        logger.debug(f"Created tree config {clean_filename} for {base}")
        return config

    def save_file_tree(self, config: FileTreeConfig, file_tree: FileNode) -> str:
        """
        Save a tree to ``<storage_dir>/<config.filename>``.

        ``config.last_updated`` is refreshed before writing.

        Args:
            config: The tree's configuration
            file_tree: Root node of the tree

        Returns:
            Path of the written file

        Raises:
            StorageError: If the file cannot be written
        """
        with self._lock:
            config.last_updated = datetime.now(timezone.utc)
            record = FileTreeStorage(config=config, file_tree=file_tree)
            path = self._path_for(config.filename)
            temp_file = f"{path}.tmp"

            try:
                os.makedirs(self.storage_dir, exist_ok=True)
                with open(temp_file, 'w', encoding='utf-8') as f:
                    json.dump(record.to_dict(), f, indent=2)
                # Rename over the target so the update is atomic
                os.replace(temp_file, path)
            except (IOError, OSError, TypeError, ValueError) as e:
                logger.error(f"Error saving file tree to {path}: {e}")
                if os.path.exists(temp_file):
                    os.remove(temp_file)
                raise StorageError(f"Failed to save file tree to {path}: {e}") from e

            self._cache[config.filename] = record
            logger.info(f"Saved file tree to {path}")
            return path

    def load_file_tree(self, filename: str) -> FileTreeStorage:
        """
        Load a saved tree, using the cache when it was loaded before.

        Args:
            filename: Name the tree was saved under

        Returns:
            The stored record

        Raises:
            StorageError: If the file is missing, unreadable or malformed
        """
        with self._lock:
            key = os.path.basename(filename)
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug(f"Using cached file tree for {key}")
                return cached

            path = self._path_for(key)
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                record = FileTreeStorage.from_dict(data)
            except FileNotFoundError as e:
                raise StorageError(f"No saved file tree named {key}") from e
            except json.JSONDecodeError as e:
                logger.error(f"Error decoding JSON from {path}: {e}")
                raise StorageError(f"Saved file tree {key} is not valid JSON: {e}") from e
            except (IOError, OSError) as e:
                logger.error(f"Error loading file tree from {path}: {e}")
                raise StorageError(f"Failed to read saved file tree {key}: {e}") from e
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Malformed file tree record in {path}: {e}")
                raise StorageError(f"Saved file tree {key} is malformed: {e}") from e

            self._cache[key] = record
            logger.info(f"Loaded file tree from {path}")
            return record

    def list_saved_trees(self) -> List[str]:
        """Return the names of the JSON files in the storage directory, sorted."""
        try:
            return sorted(name for name in os.listdir(self.storage_dir) if name.endswith('.json'))
        except OSError as e:
            logger.error(f"Error listing saved trees in {self.storage_dir}: {e}")
            return []

    def delete_file_tree(self, filename: str) -> bool:
        """
        Delete a saved tree and drop it from the cache.

        Returns:
            True if a file was deleted, False if none existed
        """
        with self._lock:
            key = os.path.basename(filename)
            self._cache.pop(key, None)
            path = self._path_for(key)
            if not os.path.exists(path):
                return False
            try:
                os.remove(path)
            except OSError as e:
                raise StorageError(f"Failed to delete {path}: {e}") from e
            logger.info(f"Deleted file tree {path}")
            return True

    def clear_cache(self) -> None:
        """Forget every cached tree."""
        with self._lock:
            self._cache.clear()
