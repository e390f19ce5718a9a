"""
Tests for incremental tree updates.
"""

import os
import sys
import shutil
import tempfile
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scope_core.context import ScopeContext
from scope_core.paths import normalize_path
from scope_core.graph.builder import build_node_index, find_node, get_all_file_nodes
from scope_core.graph.incremental import add_file_node, remove_file_node, update_file_node
from scope_core.scanner.directory_scanner import create_file_tree


class IncrementalTestCase(unittest.TestCase):
    """Creates a project with src/b.ts and src/c.ts and scans it."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.base = normalize_path(os.path.realpath(self.temp_dir))
        self.b = self._write('src/b.ts', 'export const b = 1;\n')
        self.c = self._write('src/c.ts', 'export const c = 1;\n')
        self.ctx = ScopeContext.create(self.base)
        create_file_tree(self.ctx)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, relpath, content):
        path = os.path.join(self.temp_dir, *relpath.split('/'))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return f"{self.base}/{relpath}"

    def node(self, path):
        return find_node(self.ctx.tree, path)

    def assert_symmetric(self):
        index = build_node_index(self.ctx.tree)
        for node in get_all_file_nodes(self.ctx.tree):
            for dep_path in node.dependencies or []:
                if dep_path in index:
                    self.assertIn(node.path, index[dep_path].dependents)
            for dependent_path in node.dependents or []:
                self.assertIn(node.path, index[dependent_path].dependencies)


class TestAddFileNode(IncrementalTestCase):
    """Tests for add_file_node."""

    def test_add_links_both_directions(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")

        self.assertTrue(add_file_node(self.ctx, a))

        node = self.node(a)
        self.assertEqual(node.dependencies, [self.b])
        self.assertEqual(self.node(self.b).dependents, [a])
        self.assert_symmetric()

    def test_add_rescores_file_and_dependencies(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")
        self.assertEqual(self.node(self.b).importance, 5)

        add_file_node(self.ctx, a)

        # a.ts: 5 initial + 1 dependency; b.ts: 5 initial + 1 dependent
        self.assertEqual(self.node(a).importance, 6)
        self.assertEqual(self.node(self.b).importance, 6)

    def test_add_keeps_children_sorted(self):
        a = self._write('src/a.ts', '')
        add_file_node(self.ctx, a)
        src = self.node(f"{self.base}/src")
        self.assertEqual([child.name for child in src.children], ['a.ts', 'b.ts', 'c.ts'])

    def test_add_duplicate(self):
        self.assertFalse(add_file_node(self.ctx, self.b))
        src = self.node(f"{self.base}/src")
        self.assertEqual(len(src.children), 2)

    def test_add_without_parent(self):
        orphan = self._write('lib/orphan.ts', '')
        self.assertFalse(add_file_node(self.ctx, orphan))
        self.assertIsNone(self.node(orphan))

    def test_add_without_tree(self):
        ctx = ScopeContext.create(self.base)
        self.assertFalse(add_file_node(ctx, self.b))

    def test_add_only_rescores_neighbours(self):
        """Files not linked to the new file keep their (possibly stale) score."""
        self.node(self.c).importance = 0
        a = self._write('src/a.ts', "import { b } from './b';\n")

        add_file_node(self.ctx, a)

        self.assertEqual(self.node(self.c).importance, 0)


class TestRemoveFileNode(IncrementalTestCase):
    """Tests for remove_file_node."""

    def test_add_then_remove_restores_tree(self):
        before = self.ctx.tree.to_dict()
        a = self._write('src/a.ts', "import { b } from './b';\nimport { c } from './c';\n")

        self.assertTrue(add_file_node(self.ctx, a))
        self.assertTrue(remove_file_node(self.ctx, a))

        self.assertEqual(self.ctx.tree.to_dict(), before)

    def test_remove_clears_dependents(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")
        add_file_node(self.ctx, a)

        self.assertTrue(remove_file_node(self.ctx, a))

        self.assertIsNone(self.node(a))
        self.assertEqual(self.node(self.b).dependents, [])
        self.assertEqual(self.node(self.b).importance, 5)
        self.assert_symmetric()

    def test_remove_dependency_updates_importers(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")
        add_file_node(self.ctx, a)

        self.assertTrue(remove_file_node(self.ctx, self.b))

        self.assertEqual(self.node(a).dependencies, [])
        self.assertEqual(self.node(a).importance, 5)
        self.assert_symmetric()

    def test_remove_unknown_file(self):
        self.assertFalse(remove_file_node(self.ctx, f"{self.base}/src/nope.ts"))

    def test_remove_directory(self):
        self.assertFalse(remove_file_node(self.ctx, f"{self.base}/src"))
        self.assertIsNotNone(self.node(self.b))

    def test_remove_without_tree(self):
        self.assertFalse(remove_file_node(ScopeContext.create(self.base), self.b))


class TestUpdateFileNode(IncrementalTestCase):
    """Tests for update_file_node."""

    def test_update_replaces_dependencies(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")
        add_file_node(self.ctx, a)

        self._write('src/a.ts', "import { c } from './c';\n")
        self.assertTrue(update_file_node(self.ctx, a))

        self.assertEqual(self.node(a).dependencies, [self.c])
        self.assertEqual(self.node(self.b).dependents, [])
        self.assertEqual(self.node(self.c).dependents, [a])
        self.assertEqual(self.node(self.b).importance, 5)
        self.assertEqual(self.node(self.c).importance, 6)
        self.assert_symmetric()

    def test_update_keeps_dependents(self):
        a = self._write('src/a.ts', "import { b } from './b';\n")
        add_file_node(self.ctx, a)

        self._write('src/b.ts', "import { c } from './c';\n")
        self.assertTrue(update_file_node(self.ctx, self.b))

        node = self.node(self.b)
        self.assertEqual(node.dependents, [a])
        self.assertEqual(node.dependencies, [self.c])
        # 5 initial + 1 dependent + 1 dependency
        self.assertEqual(node.importance, 7)
        self.assert_symmetric()

    def test_update_unknown_file(self):
        self.assertFalse(update_file_node(self.ctx, f"{self.base}/src/nope.ts"))


if __name__ == '__main__':
    unittest.main()
