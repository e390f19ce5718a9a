"""
Tests for import extraction and resolution.
"""

import os
import sys
import json
import shutil
import tempfile
import time
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scope_core.paths import normalize_path
from scope_core.analyzer.imports import (
    LocalImport,
    PackageImport,
    analyze_content,
    analyze_file,
    classify_import,
    extract_import_paths,
    get_language_spec,
    probe_local_file,
    resolve_import_path,
)
from scope_core.analyzer.manifest import PackageManifest


class TestExtractImportPaths(unittest.TestCase):
    """Tests for the per-language import patterns."""

    def test_javascript_forms(self):
        content = (
            "import x from './b';\n"
            "import { y } from \"@scope/pkg/sub\";\n"
            "const z = require('lodash');\n"
            "export * from './c';\n"
            "import './styles.css';\n"
            "const lazy = import('./d');\n"
        )
        self.assertEqual(
            extract_import_paths('a.ts', content),
            ['./b', '@scope/pkg/sub', 'lodash', './c', './styles.css', './d']
        )

    def test_duplicates_removed(self):
        content = "import a from './b';\nimport { c } from './b';\n"
        self.assertEqual(extract_import_paths('a.js', content), ['./b'])

    def test_python_forms(self):
        content = (
            "from . import util, helpers\n"
            "from ..pkg.mod import thing\n"
            "import os, json as j\n"
            "from .sub import x\n"
        )
        self.assertEqual(
            extract_import_paths('pkg/a.py', content),
            ['./util', './helpers', '../pkg/mod', 'os', 'json', './sub']
        )

    def test_python_parenthesized_import(self):
        """Names wrapped across lines in parentheses are each extracted."""
        content = (
            "from . import (\n"
            "    util,\n"
            "    helpers as h,  # shared helpers\n"
            ")\n"
            "from .models import (\n"
            "    Node,\n"
            ")\n"
            "import os\n"
        )
        self.assertEqual(
            extract_import_paths('pkg/a.py', content),
            ['./util', './helpers', './models', 'os']
        )

    def test_js_import_without_from_stays_linear(self):
        """A long run of bare import keywords does not rescan the whole file each time."""
        content = 'import x ' * 20000 + "\nimport { a } from './late';\n"
        start = time.monotonic()
        self.assertEqual(extract_import_paths('a.js', content), ['./late'])
        self.assertLess(time.monotonic() - start, 5.0)

    def test_c_includes(self):
        content = '#include <stdio.h>\n#include "util.h"\n#include "../common/defs.h"\n'
        self.assertEqual(extract_import_paths('main.c', content), ['stdio.h', './util.h', '../common/defs.h'])

    def test_rust_in_crate_root(self):
        content = "mod parser;\nuse crate::config::Config;\nuse serde::Deserialize;\nuse super::helpers;\n"
        self.assertEqual(extract_import_paths('src/main.rs', content), ['./parser', 'serde', '../helpers'])

    def test_rust_module_in_non_root_file(self):
        self.assertEqual(extract_import_paths('src/lexer.rs', 'pub mod token;\n'), ['./lexer/token'])

    def test_lua_require(self):
        content = 'local json = require("lib.json")\nlocal u = require "./util"\n'
        self.assertEqual(extract_import_paths('init.lua', content), ['lib/json', './util'])

    def test_zig_import(self):
        content = 'const std = @import("std");\nconst util = @import("util.zig");\n'
        self.assertEqual(extract_import_paths('main.zig', content), ['std', './util.zig'])

    def test_unknown_extension(self):
        self.assertIsNone(get_language_spec('notes.txt'))
        self.assertEqual(extract_import_paths('notes.txt', "import x from './y'"), [])


class TestResolveImportPath(unittest.TestCase):
    """Tests for resolve_import_path and classify_import."""

    def test_relative(self):
        self.assertEqual(resolve_import_path('./b', '/p/src/a.ts', '/p'), '/p/src/b')
        self.assertEqual(resolve_import_path('../lib/c', '/p/src/a.ts', '/p'), '/p/lib/c')

    def test_ts_rewrites_js_extension(self):
        self.assertEqual(resolve_import_path('./b.js', '/p/src/a.ts', '/p'), '/p/src/b.ts')
        self.assertEqual(resolve_import_path('./b.js', '/p/src/a.js', '/p'), '/p/src/b.js')

    def test_root_relative(self):
        self.assertEqual(resolve_import_path('/shared/x', '/p/src/a.ts', '/p'), '/p/shared/x')

    def test_package_goes_to_vendor_directory(self):
        self.assertEqual(resolve_import_path('lodash', '/p/src/a.ts', '/p'), '/p/node_modules/lodash')

    def test_classify_package(self):
        target = classify_import('lodash/fp', '/p/node_modules/lodash/fp', '/p')
        self.assertEqual(target, PackageImport(name='lodash', path='/p/node_modules/lodash/fp'))

    def test_classify_scoped_package(self):
        target = classify_import('@scope/pkg/sub', '/p/node_modules/@scope/pkg/sub', '/p')
        self.assertIsInstance(target, PackageImport)
        self.assertEqual(target.name, '@scope/pkg')
        self.assertEqual(target.scope, '@scope')

    def test_classify_local(self):
        self.assertEqual(classify_import('./b', '/p/src/b', '/p'), LocalImport(path='/p/src/b'))

    def test_vendor_directory_above_root_ignored(self):
        """A project that itself lives under node_modules keeps its local imports."""
        target = classify_import('./b', '/x/node_modules/proj/src/b', '/x/node_modules/proj')
        self.assertIsInstance(target, LocalImport)


class TestAnalyzeFile(unittest.TestCase):
    """Tests for probing and analysing files on disk."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.base = normalize_path(os.path.realpath(self.temp_dir))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, relpath, content=''):
        path = os.path.join(self.temp_dir, *relpath.split('/'))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return normalize_path(os.path.realpath(path))

    def test_probe_prefers_ts_over_js(self):
        ts_file = self._write('src/b.ts')
        self._write('src/b.js')
        self.assertEqual(probe_local_file(f"{self.base}/src/b"), ts_file)

    def test_probe_missing(self):
        self.assertIsNone(probe_local_file(f"{self.base}/src/nothing"))

    def test_local_and_package_dependencies(self):
        a = self._write('src/a.ts', "import { b } from './b';\nimport _ from 'lodash';\nimport './missing';\n")
        b = self._write('src/b.ts')
        self._write('src/b.js')

        analysis = analyze_file(a, self.base)

        self.assertEqual(analysis.dependencies, [b])
        self.assertEqual([dep.name for dep in analysis.package_dependencies], ['lodash'])

    def test_self_import_ignored(self):
        a = self._write('src/a.ts', "import './a';\n")
        self.assertEqual(analyze_file(a, self.base).dependencies, [])

    def test_python_project_modules(self):
        """Bare Python module names resolve to project files before packages."""
        self._write('pkg/__init__.py')
        mod = self._write('pkg/mod.py')
        init = normalize_path(os.path.realpath(os.path.join(self.temp_dir, 'pkg', '__init__.py')))
        main = self._write('main.py', "import pkg.mod\nimport os\nfrom pkg import mod\n")

        analysis = analyze_file(main, self.base)

        self.assertEqual(analysis.dependencies, [mod, init])
        self.assertEqual([dep.name for dep in analysis.package_dependencies], ['os'])

    def test_python_relative_import(self):
        helpers = self._write('pkg/helpers.py')
        mod = self._write('pkg/mod.py', "from . import helpers\nfrom .missing import x\n")
        self.assertEqual(analyze_file(mod, self.base).dependencies, [helpers])

    def test_manifest_versions(self):
        self._write('package.json', json.dumps({
            'dependencies': {'react': '^18.2.0'},
            'devDependencies': {'vitest': '^1.0.0'},
        }))
        a = self._write('src/a.ts', "import React from 'react';\nimport { test } from 'vitest';\nimport x from 'left-pad';\n")

        analysis = analyze_file(a, self.base, PackageManifest(self.base))
        packages = {dep.name: dep for dep in analysis.package_dependencies}

        self.assertEqual(packages['react'].version, '^18.2.0')
        self.assertEqual(packages['vitest'].version, '^1.0.0')
        self.assertTrue(packages['vitest'].is_dev_dependency)
        self.assertIsNone(packages['left-pad'].version)

    def test_packages_deduplicated(self):
        content = "import a from 'lodash';\nimport b from 'lodash/fp';\n"
        analysis = analyze_content(f"{self.base}/a.js", content, self.base)
        self.assertEqual(len(analysis.package_dependencies), 1)

    def test_unreadable_file(self):
        self.assertEqual(analyze_file(f"{self.base}/gone.ts", self.base).dependencies, [])

    def test_unsupported_file(self):
        notes = self._write('notes.md', "import x from './y'")
        analysis = analyze_file(notes, self.base)
        self.assertEqual(analysis.dependencies, [])
        self.assertEqual(analysis.package_dependencies, [])


class TestPackageManifest(unittest.TestCase):
    """Tests for PackageManifest lookups."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_missing_manifest(self):
        manifest = PackageManifest(self.temp_dir)
        self.assertIsNone(manifest.get_version('react'))
        self.assertIsNone(manifest.is_dev_dependency('react'))

    def test_malformed_manifest(self):
        with open(os.path.join(self.temp_dir, 'package.json'), 'w') as f:
            f.write('{not json')
        self.assertIsNone(PackageManifest(self.temp_dir).get_version('react'))

    def test_dev_classification(self):
        with open(os.path.join(self.temp_dir, 'package.json'), 'w') as f:
            json.dump({'dependencies': {'react': '18'}, 'devDependencies': {'jest': '29'}}, f)
        manifest = PackageManifest(self.temp_dir)
        self.assertFalse(manifest.is_dev_dependency('react'))
        self.assertTrue(manifest.is_dev_dependency('jest'))


if __name__ == '__main__':
    unittest.main()
