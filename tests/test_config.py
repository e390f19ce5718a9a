"""
Tests for configuration loading and project root detection.
"""

import os
import sys
import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scope_core.config import (
    CONFIG_ENV_VAR,
    PROJECT_ROOT_ENV_VAR,
    STORAGE_DIR_ENV_VAR,
    FileScopeConfig,
    detect_project_root,
    get_storage_dir,
    load_config,
    save_config,
)
from scope_core.exceptions import ConfigError


class TestLoadConfig(unittest.TestCase):
    """Tests for reading config.json."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, 'config.json')

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, data):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)

    def test_missing_file_gives_defaults(self):
        config = load_config(self.config_path)
        self.assertEqual(config, FileScopeConfig())
        self.assertEqual(config.exclude_patterns, [])

    def test_defaults_are_fresh_copies(self):
        first = load_config(self.config_path)
        first.exclude_patterns.append('dist')
        self.assertEqual(load_config(self.config_path).exclude_patterns, [])

    def test_valid_file(self):
        self._write({
            'baseDirectory': '/work/app',
            'excludePatterns': ['**/dist/**', '**/*.log'],
            'version': '1.0.0',
            'sdkPackages': ['fastapi'],
        })
        config = load_config(self.config_path)

        self.assertEqual(config.base_directory, '/work/app')
        self.assertEqual(config.exclude_patterns, ['**/dist/**', '**/*.log'])
        self.assertEqual(config.sdk_packages, ['fastapi'])

    def test_invalid_types_give_defaults(self):
        self._write({'baseDirectory': 3, 'excludePatterns': [], 'version': '1.0.0'})
        self.assertEqual(load_config(self.config_path), FileScopeConfig())

    def test_malformed_json_gives_defaults(self):
        self._write('{"baseDirectory": ')
        self.assertEqual(load_config(self.config_path), FileScopeConfig())

    def test_env_var_path(self):
        self._write({'baseDirectory': '/env', 'excludePatterns': [], 'version': '2.0.0'})
        with patch.dict(os.environ, {CONFIG_ENV_VAR: self.config_path}):
            self.assertEqual(load_config().version, '2.0.0')

    def test_save_round_trip(self):
        config = FileScopeConfig(base_directory='/x', exclude_patterns=['*.tmp'], version='1.2.0')
        save_config(config, self.config_path)
        self.assertEqual(load_config(self.config_path), config)


class TestFileScopeConfig(unittest.TestCase):
    """Tests for FileScopeConfig validation."""

    def test_not_an_object(self):
        with self.assertRaises(ConfigError):
            FileScopeConfig.from_dict(['not', 'a', 'dict'])

    def test_bad_exclude_patterns(self):
        with self.assertRaises(ConfigError):
            FileScopeConfig.from_dict({'baseDirectory': '', 'excludePatterns': [1], 'version': '1'})

    def test_bad_sdk_packages(self):
        with self.assertRaises(ConfigError):
            FileScopeConfig.from_dict({
                'baseDirectory': '', 'excludePatterns': [], 'version': '1', 'sdkPackages': 'mcp',
            })

    def test_to_dict(self):
        self.assertEqual(
            FileScopeConfig(base_directory='/x').to_dict(),
            {'baseDirectory': '/x', 'excludePatterns': [], 'version': '1.0.0'}
        )


class TestEnvironment(unittest.TestCase):
    """Tests for storage directory and project root lookups."""

    def setUp(self):
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_storage_dir_from_env(self):
        with patch.dict(os.environ, {STORAGE_DIR_ENV_VAR: self.temp_dir}):
            self.assertEqual(get_storage_dir(), self.temp_dir)

    def test_storage_dir_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(STORAGE_DIR_ENV_VAR, None)
            self.assertEqual(get_storage_dir(), os.getcwd())

    def test_project_root_from_env(self):
        with patch.dict(os.environ, {PROJECT_ROOT_ENV_VAR: self.temp_dir}):
            self.assertEqual(detect_project_root('/somewhere/else'), self.temp_dir)

    def test_project_root_found_in_ancestor(self):
        os.makedirs(os.path.join(self.temp_dir, '.git'))
        start = os.path.join(self.temp_dir, 'a', 'b', 'c')
        os.makedirs(start)

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(PROJECT_ROOT_ENV_VAR, None)
            self.assertEqual(detect_project_root(start), self.temp_dir)

    def test_project_root_search_is_bounded(self):
        with open(os.path.join(self.temp_dir, 'package.json'), 'w') as f:
            f.write('{}')
        start = os.path.join(self.temp_dir, 'a', 'b', 'c', 'd')
        os.makedirs(start)

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(PROJECT_ROOT_ENV_VAR, None)
            self.assertEqual(detect_project_root(start), start)


if __name__ == '__main__':
    unittest.main()
