"""
MCP Server Module

This module exposes the File Scope manager as Model Context Protocol tools.
Each tool returns JSON text; failures are raised as ToolError so that the
client receives an error result.
"""

import json
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from scope_core.exceptions import FileScopeError
from scope_core.manager import FileScopeManager
from scope_core.diagram.mermaid import DiagramConfig

# Set up logging
logger = logging.getLogger(__name__)

SERVER_NAME = 'file-scope'


def _json(content: Any) -> str:
    return json.dumps(content, indent=2, default=str)


def create_mcp_server(manager: FileScopeManager) -> FastMCP:
    """
    Create the MCP server for a manager.

    Args:
        manager: The manager whose tree the tools operate on

    Returns:
        A FastMCP server with the File Scope tools registered
    """
    mcp_server = FastMCP(SERVER_NAME)

    def _require_tree() -> None:
        if not manager.has_tree:
            raise ToolError("No file tree loaded. Please create or select a file tree first.")

    @mcp_server.tool()
    def list_saved_trees() -> str:
        """List all saved file trees"""
        return _json(manager.list_saved_trees())

    @mcp_server.tool()
    def delete_file_tree(filename: str) -> str:
        """Delete a saved file tree"""
        try:
            deleted = manager.delete_file_tree(filename)
        except FileScopeError as e:
            raise ToolError(f"Failed to delete {filename}: {e}") from e
        if not deleted:
            return _json(f"File tree {filename} does not exist")
        return _json(f"Successfully deleted {filename}")

    @mcp_server.tool()
    def create_file_tree(filename: str, baseDirectory: str) -> str:
        """Create or load a file tree for a base directory and make it active"""
        try:
            config = manager.create_file_tree(filename, baseDirectory)
        except (FileScopeError, OSError) as e:
            logger.error(f"Failed to create file tree: {e}", exc_info=True)
            raise ToolError(f"Failed to create file tree: {e}") from e
        return _json({
            'message': f"File tree created and stored in {config.filename}",
            'config': config.to_dict(),
        })

    @mcp_server.tool()
    def select_file_tree(filename: str) -> str:
        """Select an existing file tree to work with"""
        try:
            config = manager.select_file_tree(filename)
        except FileScopeError as e:
            raise ToolError(f"File tree not found: {filename} ({e})") from e
        return _json({
            'message': f"File tree loaded from {filename}",
            'config': config.to_dict(),
        })

    @mcp_server.tool()
    def list_files() -> str:
        """List all files in the project with their importance rankings"""
        _require_tree()
        return _json(manager.tree_dict())

    @mcp_server.tool()
    def get_file_importance(filepath: str) -> str:
        """Get the importance ranking of a specific file"""
        _require_tree()
        node = manager.get_file(filepath)
        if node is None:
            raise ToolError(f"File not found: {filepath}")
        return _json(manager.describe_file(node))

    @mcp_server.tool()
    def find_important_files(limit: int = 10, minImportance: int = 0) -> str:
        """Find the most important files in the project"""
        _require_tree()
        files = manager.find_important_files(limit, minImportance)
        return _json([
            {
                'path': node.path,
                'importance': node.importance or 0,
                'dependentCount': len(node.dependents or []),
                'dependencyCount': len(node.dependencies or []),
                'hasSummary': bool(node.summary),
            }
            for node in files
        ])

    @mcp_server.tool()
    def get_file_summary(filepath: str) -> str:
        """Get the summary of a specific file"""
        _require_tree()
        node = manager.get_file(filepath)
        if node is None:
            raise ToolError(f"File not found: {filepath}")
        if not node.summary:
            return _json(f"No summary available for {filepath}")
        return _json({'path': node.path, 'summary': node.summary})

    @mcp_server.tool()
    def set_file_summary(filepath: str, summary: str) -> str:
        """Set the summary of a specific file"""
        _require_tree()
        node = manager.set_file_summary(filepath, summary)
        if node is None:
            raise ToolError(f"File not found: {filepath}")
        return _json({
            'message': f"Summary updated for {filepath}",
            'path': node.path,
            'summary': summary,
        })

    @mcp_server.tool()
    def read_file_content(filepath: str) -> str:
        """Read the content of a specific file"""
        try:
            return manager.read_file_content(filepath)
        except OSError as e:
            raise ToolError(f"Failed to read file: {filepath} - {e}") from e

    @mcp_server.tool()
    def set_file_importance(filepath: str, importance: float) -> str:
        """Manually set the importance ranking (0-10) of a specific file"""
        _require_tree()
        if not 0 <= importance <= 10:
            raise ToolError("Importance must be between 0 and 10")
        node = manager.set_file_importance(filepath, importance)
        if node is None:
            raise ToolError(f"File not found: {filepath}")
        return _json({
            'message': f"Importance updated for {filepath}",
            'path': node.path,
            'importance': node.importance,
        })

    @mcp_server.tool()
    def recalculate_importance() -> str:
        """Recalculate importance values for all files based on dependencies"""
        _require_tree()
        manager.recalculate_importance()
        files = manager.get_all_files()
        return _json({
            'message': "Importance values recalculated",
            'totalFiles': len(files),
            'filesWithImportance': sum(1 for node in files if (node.importance or 0) > 0),
        })

    @mcp_server.tool()
    def debug_list_all_files() -> str:
        """List all file paths in the current file tree"""
        _require_tree()
        files = manager.get_all_files()
        return _json({
            'totalFiles': len(files),
            'files': [
                {'path': node.path, 'basename': node.name, 'importance': node.importance or 0}
                for node in files
            ],
        })

    @mcp_server.tool()
    def add_file(filepath: str) -> str:
        """Add a single file to the current file tree without a full rescan"""
        _require_tree()
        if not manager.add_file(filepath):
            raise ToolError(f"Could not add {filepath}: parent directory missing or file already present")
        node = manager.get_file(filepath)
        return _json({'message': f"Added {filepath}", 'file': manager.describe_file(node) if node else None})

    @mcp_server.tool()
    def remove_file(filepath: str) -> str:
        """Remove a single file from the current file tree without a full rescan"""
        _require_tree()
        if not manager.remove_file(filepath):
            raise ToolError(f"File not found: {filepath}")
        return _json({'message': f"Removed {filepath}"})

    @mcp_server.tool()
    def generate_diagram(style: str = 'hybrid', maxDepth: int = 3, minImportance: int = 0,
                         showDependencies: bool = True, showPackageDeps: bool = False,
                         direction: str = 'TB', outputPath: Optional[str] = None) -> str:
        """Generate a Mermaid diagram for the current file tree"""
        _require_tree()
        try:
            config = DiagramConfig(
                style=style,
                max_depth=maxDepth,
                min_importance=minImportance,
                show_dependencies=showDependencies,
                show_package_deps=showPackageDeps,
                direction=direction,
            )
            diagram = manager.generate_diagram(config, outputPath)
        except ValueError as e:
            raise ToolError(str(e)) from e
        except OSError as e:
            raise ToolError(f"Failed to save diagram: {e}") from e
        return _json({'code': diagram.code, 'stats': diagram.stats})

    logger.info(f"Created MCP server {SERVER_NAME}")
    return mcp_server
