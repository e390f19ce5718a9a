"""
Package Manifest Module

This module looks up version and dev/production classification for package
dependencies in the project's ``package.json``.
"""

import os
import json
import logging
from typing import Any, Dict, Optional

from scope_core.models import PackageDependency
from scope_core.paths import to_platform_path

# Set up logging
logger = logging.getLogger(__name__)

MANIFEST_FILENAME = 'package.json'


class PackageManifest:
    """
    Lazily loaded view of a project's package manifest.

    The manifest is read at most once per instance; a missing or malformed
    manifest leaves every lookup unresolved instead of raising.
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self.manifest_path = os.path.join(to_platform_path(base_dir), MANIFEST_FILENAME)
        self._loaded = False
        self.dependencies: Dict[str, str] = {}
        self.dev_dependencies: Dict[str, str] = {}

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not os.path.isfile(self.manifest_path):
            logger.debug(f"No package manifest at {self.manifest_path}")
            return

        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                data: Dict[str, Any] = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read package manifest {self.manifest_path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Package manifest {self.manifest_path} is not a JSON object")
            return

        self.dependencies = _string_map(data.get('dependencies'))
        self.dev_dependencies = _string_map(data.get('devDependencies'))

    def get_version(self, package_name: str) -> Optional[str]:
        """Return the declared version range for a package, if declared."""
        self._load()
        if package_name in self.dependencies:
            return self.dependencies[package_name]
        return self.dev_dependencies.get(package_name)

    def is_dev_dependency(self, package_name: str) -> Optional[bool]:
        """Return True/False for declared packages and None for undeclared ones."""
        self._load()
        if package_name in self.dependencies:
            return False
        if package_name in self.dev_dependencies:
            return True
        return None

    def annotate(self, dependency: PackageDependency) -> PackageDependency:
        """Fill in version and dev classification on a package dependency in place."""
        version = self.get_version(dependency.name)
        if version is not None:
            dependency.version = version
        is_dev = self.is_dev_dependency(dependency.name)
        if is_dev:
            dependency.is_dev_dependency = True
        return dependency


def _string_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}
