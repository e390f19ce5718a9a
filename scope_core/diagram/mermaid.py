"""
Mermaid Diagram Module

This module renders a finished file tree as a Mermaid flowchart. The tree is
only read, never modified.

Styles:
    default / directory: the directory structure
    dependency: files only, linked by their local dependencies
    hybrid: the directory structure plus dependency links between the files shown
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

import networkx as nx

from scope_core.models import FileNode
from scope_core.graph.builder import to_networkx

# Set up logging
logger = logging.getLogger(__name__)

DIAGRAM_STYLES = ('default', 'dependency', 'directory', 'hybrid')
LAYOUT_DIRECTIONS = ('TB', 'BT', 'LR', 'RL')

HIGH_IMPORTANCE = 8
MEDIUM_IMPORTANCE = 5
MAX_LABEL_LENGTH = 20

DEFAULT_STYLE: Dict[str, Dict[str, str]] = {
    'nodeColors': {
        'highImportance': '#ff7675',
        'mediumImportance': '#74b9ff',
        'lowImportance': '#81ecec',
    },
    'edgeColors': {
        'dependency': '#636e72',
        'directory': '#dfe4ea',
        'circular': '#e17055',
        'package': '#b2bec3',
    },
    'nodeShapes': {
        'file': 'rect',
        'directory': 'subroutine',
        'important': 'hexagon',
        'package': 'stadium',
    },
}


@dataclass
class DiagramConfig:
    """Options for one diagram."""

    style: str = 'hybrid'
    max_depth: int = 3
    min_importance: int = 0
    show_dependencies: bool = True
    show_package_deps: bool = False
    direction: str = 'TB'
    rank_spacing: int = 50
    node_spacing: int = 40

    def __post_init__(self):
        if self.style not in DIAGRAM_STYLES:
            raise ValueError(f"Unknown diagram style {self.style!r}, expected one of {DIAGRAM_STYLES}")
        if self.direction not in LAYOUT_DIRECTIONS:
            raise ValueError(f"Unknown layout direction {self.direction!r}, expected one of {LAYOUT_DIRECTIONS}")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")


@dataclass
class MermaidDiagram:
    """A rendered diagram with the numbers describing it."""

    code: str
    style: Dict[str, Dict[str, str]]
    stats: Dict[str, int]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'style': self.style,
            'stats': dict(self.stats),
            'timestamp': self.timestamp.isoformat(),
        }


def _escape(text: str) -> str:
    return text.replace('"', '#quot;')


class MermaidGenerator:
    """
    Renders a file tree as Mermaid flowchart code.

    Each generator is used for a single ``generate()`` call; node ids are
    assigned in visiting order (``node0``, ``node1``, ...).
    """

    def __init__(self, file_tree: FileNode, config: Optional[DiagramConfig] = None):
        self.file_tree = file_tree
        self.config = config or DiagramConfig()
        self.style = copy.deepcopy(DEFAULT_STYLE)
        self._node_ids: Dict[str, str] = {}
        self._lines: List[str] = []
        self._link_count = 0
        self.stats: Dict[str, int] = {
            'nodeCount': 0,
            'edgeCount': 0,
            'maxDepth': 0,
            'importantFiles': 0,
            'circularDeps': 0,
        }

    def _node_id(self, key: str) -> str:
        if key not in self._node_ids:
            self._node_ids[key] = f"node{len(self._node_ids)}"
        return self._node_ids[key]

    def _label(self, name: str) -> str:
        if len(name) <= MAX_LABEL_LENGTH:
            return _escape(name)
        return _escape(name[:MAX_LABEL_LENGTH - 3] + '...')

    def _color(self, node: FileNode) -> str:
        colors = self.style['nodeColors']
        if node.is_directory:
            return colors['mediumImportance']
        importance = node.importance or 0
        if importance >= HIGH_IMPORTANCE:
            return colors['highImportance']
        if importance >= MEDIUM_IMPORTANCE:
            return colors['mediumImportance']
        return colors['lowImportance']

    def _collect(self, node: FileNode, depth: int, parent: Optional[FileNode],
                 visible: List[Tuple[FileNode, int, Optional[FileNode]]]) -> None:
        """Gather the nodes within max_depth, in pre-order, with their parents."""
        if depth >= self.config.max_depth:
            return
        if not node.is_directory and (node.importance or 0) < self.config.min_importance:
            return
        visible.append((node, depth, parent))
        for child in node.children or []:
            self._collect(child, depth + 1, node, visible)

    def _add_node(self, node: FileNode) -> str:
        node_id = self._node_id(node.path)
        label = self._label(node.name)
        if node.is_directory:
            self._lines.append(f'{node_id}[["{label}"]]')
        elif (node.importance or 0) >= HIGH_IMPORTANCE:
            self._lines.append(f'{node_id}{{{{"{label}"}}}}')
        else:
            self._lines.append(f'{node_id}["{label}"]')
        self._lines.append(f"style {node_id} fill:{self._color(node)},stroke:#2d3436")
        self.stats['nodeCount'] += 1
        return node_id

    def _add_edge(self, source_id: str, target_id: str, color: str, arrow: str = '-->') -> None:
        self._lines.append(f"{source_id} {arrow} {target_id}")
        self._lines.append(f"linkStyle {self._link_count} stroke:{color}")
        self._link_count += 1
        self.stats['edgeCount'] += 1

    def _add_dependency_edges(self, files: List[FileNode]) -> None:
        shown = {node.path for node in files}
        graph = to_networkx(self.file_tree).subgraph(shown)

        # Edges inside a strongly connected component are part of a cycle
        component_of: Dict[str, int] = {}
        for index, component in enumerate(nx.strongly_connected_components(graph)):
            if len(component) > 1:
                for path in component:
                    component_of[path] = index

        self.stats['circularDeps'] = sum(1 for _ in nx.simple_cycles(graph))

        colors = self.style['edgeColors']
        for source, target in graph.edges():
            circular = source in component_of and component_of[source] == component_of.get(target)
            self._add_edge(self._node_id(source), self._node_id(target),
                           colors['circular'] if circular else colors['dependency'])

    def _add_package_edges(self, files: List[FileNode]) -> None:
        packages_seen: Set[str] = set()
        for node in files:
            for package in node.package_dependencies or []:
                package_id = self._node_id(f"package:{package.name}")
                if package.name not in packages_seen:
                    packages_seen.add(package.name)
                    self._lines.append(f'{package_id}(["{self._label(package.name)}"])')
                    self.stats['nodeCount'] += 1
                self._add_edge(self._node_id(node.path), package_id,
                               self.style['edgeColors']['package'], arrow='-.->')

    def generate(self) -> MermaidDiagram:
        """
        Render the diagram.

        Returns:
            The MermaidDiagram holding the code and statistics
        """
        config = self.config
        self._lines = [
            f'%%{{init: {{"flowchart": {{"nodeSpacing": {config.node_spacing}, '
            f'"rankSpacing": {config.rank_spacing}}}}}}}%%',
            f"graph {config.direction}",
        ]

        visible: List[Tuple[FileNode, int, Optional[FileNode]]] = []
        self._collect(self.file_tree, 0, None, visible)
        files = [node for node, _, _ in visible if not node.is_directory]

        if config.style == 'dependency':
            for node in files:
                self._add_node(node)
            self.stats['maxDepth'] = max((depth for node, depth, _ in visible if not node.is_directory), default=0)
        else:
            for node, depth, parent in visible:
                node_id = self._add_node(node)
                if parent is not None:
                    self._add_edge(self._node_id(parent.path), node_id, self.style['edgeColors']['directory'])
                self.stats['maxDepth'] = max(self.stats['maxDepth'], depth)

        if config.show_dependencies and config.style in ('dependency', 'hybrid'):
            self._add_dependency_edges(files)

        if config.show_package_deps:
            self._add_package_edges(files)

        self.stats['importantFiles'] = sum(1 for node in files if (node.importance or 0) >= HIGH_IMPORTANCE)

        logger.info(
            f"Generated {config.style} diagram with {self.stats['nodeCount']} nodes "
            f"and {self.stats['edgeCount']} edges"
        )
        return MermaidDiagram(code='\n'.join(self._lines), style=self.style, stats=dict(self.stats))
