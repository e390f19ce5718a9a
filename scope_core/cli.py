#!/usr/bin/env python3
"""
File Scope command line interface.

Subcommands:
    scan      Scan a directory and save its file tree
    list      List the most important files of a saved or fresh tree
    diagram   Write a Mermaid diagram of a tree
    watch     Keep a tree up to date while files change
    serve     Serve the HTTP API (and optionally watch for changes)
    mcp       Run the MCP server over stdio
"""

import os
import sys
import json
import time
import argparse
import logging
from typing import Tuple

import uvicorn
from fastapi.middleware.cors import CORSMiddleware

from scope_core.config import (
    FileScopeConfig,
    detect_project_root,
    get_storage_dir,
    load_config,
)
from scope_core.exceptions import FileScopeError
from scope_core.manager import DEFAULT_TREE_FILENAME, FileScopeManager
from scope_core.storage.json_storage import JSONTreeStorage
from scope_core.diagram.mermaid import DIAGRAM_STYLES, LAYOUT_DIRECTIONS, DiagramConfig
from scope_core.api import create_app
from scope_core.mcp_server import create_mcp_server

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Log to stderr; stdout is reserved for the MCP stdio transport."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='file-scope',
        description='Build and query dependency-aware file trees of a project.'
    )
    parser.add_argument(
        '--config', '-c', default=None,
        help='Path to config.json. Default: $FILE_SCOPE_CONFIG or ./config.json'
    )
    parser.add_argument(
        '--storage-dir', default=None,
        help='Directory saved trees are kept in. Default: $FILE_SCOPE_STORAGE_DIR or the working directory'
    )
    parser.add_argument(
        '--project-root', default=None,
        help='Project root. Default: $FILE_SCOPE_PROJECT_ROOT or auto-detected'
    )
    parser.add_argument(
        '--tree', '-t', default=DEFAULT_TREE_FILENAME,
        help=f'Name of the saved tree file. Default: {DEFAULT_TREE_FILENAME}'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    scan = subparsers.add_parser('scan', help='Scan a directory and save its file tree')
    scan.add_argument('directory', nargs='?', default=None,
                      help='Directory to scan. Default: baseDirectory from the config, or the project root')

    list_cmd = subparsers.add_parser('list', help='List the most important files')
    list_cmd.add_argument('directory', nargs='?', default=None, help='Directory of the tree')
    list_cmd.add_argument('--limit', type=int, default=10, help='Number of files to show. Default: 10')
    list_cmd.add_argument('--min-importance', type=int, default=0, help='Minimum importance. Default: 0')
    list_cmd.add_argument('--json', action='store_true', help='Print JSON instead of a table')

    diagram = subparsers.add_parser('diagram', help='Write a Mermaid diagram of the tree')
    diagram.add_argument('directory', nargs='?', default=None, help='Directory of the tree')
    diagram.add_argument('--style', choices=DIAGRAM_STYLES, default='hybrid', help='Diagram style. Default: hybrid')
    diagram.add_argument('--max-depth', type=int, default=3, help='Maximum tree depth shown. Default: 3')
    diagram.add_argument('--min-importance', type=int, default=0, help='Hide files below this importance')
    diagram.add_argument('--packages', action='store_true', help='Show package dependencies')
    diagram.add_argument('--direction', choices=LAYOUT_DIRECTIONS, default='TB', help='Layout direction')
    diagram.add_argument('--output', '-o', default=None, help='Write the .mmd file here instead of stdout')

    watch = subparsers.add_parser('watch', help='Keep the tree up to date while files change')
    watch.add_argument('directory', nargs='?', default=None, help='Directory to watch')

    serve = subparsers.add_parser('serve', help='Serve the HTTP API')
    serve.add_argument('directory', nargs='?', default=None, help='Directory of the tree')
    serve.add_argument('--host', default='127.0.0.1', help='Host to bind the server to. Default: 127.0.0.1')
    serve.add_argument('--port', type=int, default=8000, help='Port to bind the server to. Default: 8000')
    serve.add_argument('--watch', action='store_true', help='Also watch the directory for changes')
    serve.add_argument('--disable-cors', action='store_true', help='Disable CORS middleware')

    mcp = subparsers.add_parser('mcp', help='Run the MCP server over stdio')
    mcp.add_argument('directory', nargs='?', default=None,
                     help='Directory to build the initial tree for. Default: none, the client creates one')
    mcp.add_argument('--watch', action='store_true', help='Also watch the directory for changes')

    return parser.parse_args(argv)


def build_manager(args) -> Tuple[FileScopeManager, FileScopeConfig]:
    """Create a manager from the config file, environment and flags."""
    config = load_config(args.config)
    project_root = args.project_root or detect_project_root()
    storage_dir = args.storage_dir or get_storage_dir()

    return FileScopeManager(
        JSONTreeStorage(storage_dir),
        project_root=project_root,
        exclude_patterns=config.exclude_patterns,
        sdk_packages=config.sdk_packages,
    ), config


def _target_directory(args, config, project_root: str) -> str:
    # Directories given on the command line are relative to the working directory
    if args.directory:
        return os.path.abspath(args.directory)
    return config.base_directory or project_root


def run_scan(manager: FileScopeManager, args, config) -> int:
    directory = _target_directory(args, config, manager.project_root)
    tree_config = manager.create_file_tree(args.tree, directory, rescan=True)
    files = manager.get_all_files()
    print(f"Scanned {tree_config.base_directory}: {len(files)} files, saved to {tree_config.filename}")
    return 0


def run_list(manager: FileScopeManager, args, config) -> int:
    manager.create_file_tree(args.tree, _target_directory(args, config, manager.project_root))
    files = manager.find_important_files(args.limit, args.min_importance)
    if args.json:
        print(json.dumps([manager.describe_file(node) for node in files], indent=2))
        return 0
    for node in files:
        print(f"{node.importance or 0:>3}  {len(node.dependents or []):>3} dependents  {node.path}")
    return 0


def run_diagram(manager: FileScopeManager, args, config) -> int:
    manager.create_file_tree(args.tree, _target_directory(args, config, manager.project_root))
    diagram_config = DiagramConfig(
        style=args.style,
        max_depth=args.max_depth,
        min_importance=args.min_importance,
        show_package_deps=args.packages,
        direction=args.direction,
    )
    diagram = manager.generate_diagram(diagram_config, args.output)
    if not args.output:
        print(diagram.code)
    return 0


def run_watch(manager: FileScopeManager, args, config) -> int:
    manager.create_file_tree(args.tree, _target_directory(args, config, manager.project_root))
    watcher = manager.start_watching()
    logger.info(f"Watching {manager.ctx.base_directory}. Press Ctrl+C to exit.")
    try:
        while watcher.is_running():
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt. Shutting down...")
    finally:
        manager.stop_watching()
    return 0


def run_serve(manager: FileScopeManager, args, config) -> int:
    manager.create_file_tree(args.tree, _target_directory(args, config, manager.project_root))
    if args.watch:
        manager.start_watching()

    app = create_app(manager)
    if not args.disable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET"],
            allow_headers=["*"],
        )
        logger.info("CORS middleware enabled for all origins")

    host_str = args.host if args.host != "0.0.0.0" else "localhost"
    logger.info(f"Starting API server at http://{host_str}:{args.port}")
    try:
        uvicorn.run(app, host=args.host, port=args.port)
    finally:
        manager.stop_watching()
    return 0


def run_mcp(manager: FileScopeManager, args, config) -> int:
    directory = os.path.abspath(args.directory) if args.directory else config.base_directory
    if directory:
        manager.create_file_tree(args.tree, directory)
        if args.watch:
            manager.start_watching()

    mcp_server = create_mcp_server(manager)
    try:
        mcp_server.run(transport='stdio')
    finally:
        manager.stop_watching()
    return 0


COMMANDS = {
    'scan': run_scan,
    'list': run_list,
    'diagram': run_diagram,
    'watch': run_watch,
    'serve': run_serve,
    'mcp': run_mcp,
}


def main(argv=None) -> int:
    """Main entry point for the command line."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    manager, config = build_manager(args)
    try:
        return COMMANDS[args.command](manager, args, config)
    except FileScopeError as e:
        logger.error(str(e))
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
