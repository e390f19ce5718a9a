"""
API Module for File Scope

This module provides a FastAPI application exposing the active file tree
through read-only HTTP endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from scope_core.exceptions import TreeNotLoadedError
from scope_core.manager import FileScopeManager
from scope_core.diagram.mermaid import DiagramConfig

# Set up logging
logger = logging.getLogger(__name__)


class FileScopeAPI:
    """
    API wrapper for exposing the file tree.
    """

    def __init__(self, manager: FileScopeManager):
        """
        Initialize the API with a File Scope manager.

        Args:
            manager: An instance of FileScopeManager
        """
        self.manager = manager
        self.app = FastAPI(title="File Scope API")
        self._setup_routes()

    def _require_tree(self) -> None:
        if not self.manager.has_tree:
            raise HTTPException(status_code=409, detail="No file tree loaded")

    def _setup_routes(self):
        """Set up the API routes."""

        @self.app.exception_handler(TreeNotLoadedError)
        async def tree_not_loaded(request, exc):
            return JSONResponse(status_code=409, content={"detail": str(exc)})

        @self.app.get("/tree", response_model=Dict[str, Any])
        async def get_tree():
            """
            Get the whole file tree in its persisted shape.
            """
            logger.debug("GET request for /tree")
            self._require_tree()
            return self.manager.tree_dict()

        @self.app.get("/files", response_model=List[Dict[str, Any]])
        async def get_files():
            """
            Get every file with its importance and edge counts.
            """
            logger.debug("GET request for /files")
            self._require_tree()
            return [
                {
                    'path': node.path,
                    'importance': node.importance or 0,
                    'dependencyCount': len(node.dependencies or []),
                    'dependentCount': len(node.dependents or []),
                }
                for node in self.manager.get_all_files()
            ]

        @self.app.get("/files/important", response_model=List[Dict[str, Any]])
        async def get_important_files(limit: int = Query(10, ge=1),
                                      min_importance: int = Query(0, ge=0, le=10)):
            """
            Get the most important files, highest score first.
            """
            logger.debug(f"GET request for /files/important (limit={limit}, min_importance={min_importance})")
            self._require_tree()
            return [
                self.manager.describe_file(node)
                for node in self.manager.find_important_files(limit, min_importance)
            ]

        @self.app.get("/file", response_model=Dict[str, Any])
        async def get_file(path: str):
            """
            Get a single file's dependencies, dependents and score.
            """
            logger.debug(f"GET request for /file?path={path}")
            self._require_tree()
            node = self.manager.get_file(path)
            if node is None or node.is_directory:
                raise HTTPException(status_code=404, detail=f"File not found: {path}")
            return self.manager.describe_file(node)

        @self.app.get("/diagram", response_model=Dict[str, Any])
        async def get_diagram(style: str = 'hybrid', max_depth: int = Query(3, ge=1),
                              min_importance: int = Query(0, ge=0, le=10),
                              show_package_deps: bool = False, direction: Optional[str] = None):
            """
            Render the tree as a Mermaid diagram.
            """
            logger.debug(f"GET request for /diagram (style={style})")
            self._require_tree()
            try:
                config = DiagramConfig(
                    style=style,
                    max_depth=max_depth,
                    min_importance=min_importance,
                    show_package_deps=show_package_deps,
                    direction=direction or 'TB',
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self.manager.generate_diagram(config).to_dict()


def create_app(manager: FileScopeManager) -> FastAPI:
    """
    Create a FastAPI application with the given File Scope manager.

    Args:
        manager: An instance of FileScopeManager

    Returns:
        A FastAPI application
    """
    api = FileScopeAPI(manager)
    return api.app
