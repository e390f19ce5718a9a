"""
Tests for Mermaid diagram generation.
"""

import sys
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from scope_core.models import FileNode, PackageDependency
from scope_core.diagram.mermaid import DEFAULT_STYLE, DiagramConfig, MermaidGenerator


def build_tree():
    """/p with src/a.ts <-> src/b.ts (a cycle) and README.md."""
    root = FileNode.directory('/p', 'p')
    src = FileNode.directory('/p/src', 'src')
    a = FileNode.file('/p/src/a.ts', 'a.ts')
    b = FileNode.file('/p/src/b.ts', 'b.ts')
    readme = FileNode.file('/p/README.md', 'README.md')
    a.importance, b.importance, readme.importance = 9, 3, 2
    a.dependencies, b.dependents = ['/p/src/b.ts'], ['/p/src/a.ts']
    b.dependencies, a.dependents = ['/p/src/a.ts'], ['/p/src/b.ts']
    a.package_dependencies = [PackageDependency(name='lodash', path='/p/node_modules/lodash')]
    src.children = [a, b]
    root.children = [src, readme]
    return root


class TestDiagramConfig(unittest.TestCase):
    """Tests for DiagramConfig validation."""

    def test_defaults(self):
        config = DiagramConfig()
        self.assertEqual(config.style, 'hybrid')
        self.assertEqual(config.max_depth, 3)
        self.assertEqual(config.direction, 'TB')

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            DiagramConfig(style='fancy')
        with self.assertRaises(ValueError):
            DiagramConfig(direction='XY')
        with self.assertRaises(ValueError):
            DiagramConfig(max_depth=0)


class TestMermaidGenerator(unittest.TestCase):
    """Tests for MermaidGenerator."""

    def setUp(self):
        self.tree = build_tree()

    def generate(self, **kwargs):
        return MermaidGenerator(self.tree, DiagramConfig(**kwargs)).generate()

    def test_header(self):
        lines = self.generate(direction='LR').code.splitlines()
        self.assertTrue(lines[0].startswith('%%{init:'))
        self.assertTrue(lines[0].endswith('}%%'))
        self.assertEqual(lines[1], 'graph LR')

    def test_hybrid(self):
        diagram = self.generate()

        # 5 nodes, 4 directory edges and 2 dependency edges
        self.assertEqual(diagram.stats['nodeCount'], 5)
        self.assertEqual(diagram.stats['edgeCount'], 6)
        self.assertEqual(diagram.stats['maxDepth'], 2)
        self.assertEqual(diagram.stats['importantFiles'], 1)
        self.assertEqual(diagram.stats['circularDeps'], 1)
        self.assertEqual(diagram.code.count('linkStyle'), 6)
        self.assertIn(DEFAULT_STYLE['edgeColors']['circular'], diagram.code)

    def test_node_shapes(self):
        code = self.generate().code
        self.assertIn('[["src"]]', code)
        self.assertIn('{{"a.ts"}}', code)
        self.assertIn('["b.ts"]', code)

    def test_dependency_style_shows_files_only(self):
        diagram = self.generate(style='dependency')
        self.assertEqual(diagram.stats['nodeCount'], 3)
        self.assertEqual(diagram.stats['edgeCount'], 2)
        self.assertNotIn('[["src"]]', diagram.code)

    def test_directory_style_has_no_dependency_edges(self):
        diagram = self.generate(style='directory')
        self.assertEqual(diagram.stats['edgeCount'], 4)
        self.assertEqual(diagram.stats['circularDeps'], 0)

    def test_max_depth(self):
        diagram = self.generate(max_depth=2)
        self.assertEqual(diagram.stats['nodeCount'], 3)
        self.assertNotIn('a.ts', diagram.code)

    def test_min_importance(self):
        diagram = self.generate(min_importance=5)
        # p, src, a.ts; the dependency edge to b.ts is not drawn
        self.assertEqual(diagram.stats['nodeCount'], 3)
        self.assertEqual(diagram.stats['edgeCount'], 2)
        self.assertEqual(diagram.stats['circularDeps'], 0)

    def test_package_dependencies(self):
        diagram = self.generate(style='dependency', show_package_deps=True)
        self.assertIn('(["lodash"])', diagram.code)
        self.assertIn('-.->', diagram.code)
        self.assertEqual(diagram.stats['nodeCount'], 4)

    def test_long_labels_truncated(self):
        self.tree.children[1].name = 'a-very-long-file-name-for-docs.md'
        code = self.generate().code
        self.assertIn('["a-very-long-file-...', code)
        self.assertNotIn('a-very-long-file-name-for-docs.md', code)

    def test_tree_not_modified(self):
        before = self.tree.to_dict()
        self.generate(show_package_deps=True)
        self.assertEqual(self.tree.to_dict(), before)

    def test_to_dict(self):
        data = self.generate().to_dict()
        self.assertEqual(set(data), {'code', 'style', 'stats', 'timestamp'})


if __name__ == '__main__':
    unittest.main()
