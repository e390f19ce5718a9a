"""
Diagram rendering for file trees.
"""
from scope_core.diagram.mermaid import DiagramConfig, MermaidDiagram, MermaidGenerator

__all__ = ['DiagramConfig', 'MermaidDiagram', 'MermaidGenerator']
