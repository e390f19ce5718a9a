"""
Dependency graph construction and importance scoring.
"""

from scope_core.graph.builder import build_dependent_map, find_node, get_all_file_nodes, to_networkx
from scope_core.graph.importance import (
    calculate_importance,
    calculate_initial_importance,
    recalculate_importance,
    set_file_importance,
)

__all__ = [
    'build_dependent_map',
    'find_node',
    'get_all_file_nodes',
    'to_networkx',
    'calculate_importance',
    'calculate_initial_importance',
    'recalculate_importance',
    'set_file_importance',
]
