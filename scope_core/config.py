"""
Configuration Module

This module loads the File Scope configuration file and resolves the
environment overrides used by the command line and servers.

The configuration file is JSON::

    {
      "baseDirectory": "/path/to/project",
      "excludePatterns": ["**/dist/**", "**/*.log"],
      "version": "1.0.0",
      "sdkPackages": ["@modelcontextprotocol/sdk"]
    }
"""

import os
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scope_core.exceptions import ConfigError

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.json'
CONFIG_ENV_VAR = 'FILE_SCOPE_CONFIG'
STORAGE_DIR_ENV_VAR = 'FILE_SCOPE_STORAGE_DIR'
PROJECT_ROOT_ENV_VAR = 'FILE_SCOPE_PROJECT_ROOT'

# Files or directories that mark the top of a project, most specific first
PROJECT_MARKERS = (
    '.git', 'package.json', 'pyproject.toml', 'Cargo.toml', 'go.mod',
    'build.gradle', 'setup.py', 'build.zig', 'Makefile', 'Gemfile', 'src',
)

# How many parent directories detect_project_root climbs
MAX_PARENT_LEVELS = 3


@dataclass
class FileScopeConfig:
    """Validated configuration values."""

    base_directory: str = ''
    exclude_patterns: List[str] = field(default_factory=list)
    version: str = '1.0.0'
    sdk_packages: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'FileScopeConfig':
        """
        Validate and convert parsed JSON into a config.

        Raises:
            ConfigError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        base_directory = data.get('baseDirectory')
        if not isinstance(base_directory, str):
            raise ConfigError("'baseDirectory' must be a string")

        exclude_patterns = data.get('excludePatterns')
        if not isinstance(exclude_patterns, list) or not all(isinstance(p, str) for p in exclude_patterns):
            raise ConfigError("'excludePatterns' must be a list of strings")

        version = data.get('version')
        if not isinstance(version, str):
            raise ConfigError("'version' must be a string")

        sdk_packages = data.get('sdkPackages')
        if sdk_packages is not None and (
                not isinstance(sdk_packages, list) or not all(isinstance(p, str) for p in sdk_packages)):
            raise ConfigError("'sdkPackages' must be a list of strings")

        return cls(
            base_directory=base_directory,
            exclude_patterns=list(exclude_patterns),
            version=version,
            sdk_packages=list(sdk_packages) if sdk_packages is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'baseDirectory': self.base_directory,
            'excludePatterns': list(self.exclude_patterns),
            'version': self.version,
        }
        if self.sdk_packages is not None:
            data['sdkPackages'] = list(self.sdk_packages)
        return data


# load_config returns a fresh copy of this when no usable file exists
DEFAULT_CONFIG = FileScopeConfig()


def default_config_path() -> str:
    """Return the configuration path from the environment, or ``config.json``."""
    return os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> FileScopeConfig:
    """
    Load the configuration file.

    A missing, unreadable or invalid file is logged and the default
    configuration is returned instead.

    Args:
        config_path: Path to the configuration file (defaults to
            ``$FILE_SCOPE_CONFIG`` or ``config.json``)

    Returns:
        The loaded configuration
    """
    path = os.path.abspath(config_path or default_config_path())

    if not os.path.exists(path):
        logger.info(f"Config file {path} doesn't exist - using default config")
        return FileScopeConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        config = FileScopeConfig.from_dict(data)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading config from {path}: {e}")
        return FileScopeConfig()
    except ConfigError as e:
        logger.error(f"Invalid config in {path}: {e}")
        return FileScopeConfig()

    logger.info(f"Loaded config from {path} with {len(config.exclude_patterns)} exclude patterns")
    return config


def save_config(config: FileScopeConfig, config_path: Optional[str] = None) -> None:
    """Write the configuration file as indented JSON."""
    path = config_path or default_config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info(f"Saved config to {path}")


def get_storage_dir() -> str:
    """Directory saved trees live in: ``$FILE_SCOPE_STORAGE_DIR`` or the working directory."""
    return os.path.abspath(os.environ.get(STORAGE_DIR_ENV_VAR) or os.getcwd())


def detect_project_root(start: Optional[str] = None) -> str:
    """
    Find the project root for a directory.

    ``$FILE_SCOPE_PROJECT_ROOT`` wins when set. Otherwise the directory and
    up to three of its ancestors are searched for a project marker
    (``.git``, ``package.json``, ...); if none is found the start directory
    is returned.

    Args:
        start: Directory to start from (defaults to the working directory)

    Returns:
        Absolute path of the project root
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV_VAR)
    if env_root:
        return os.path.abspath(env_root)

    start_dir = os.path.abspath(start or os.getcwd())
    current = start_dir
    for _ in range(MAX_PARENT_LEVELS + 1):
        if any(os.path.exists(os.path.join(current, marker)) for marker in PROJECT_MARKERS):
            logger.debug(f"Detected project root {current}")
            return current
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    return start_dir
