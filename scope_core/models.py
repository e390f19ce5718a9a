"""
File Tree Models

This module defines the records that make up a scanned file tree and its
persisted form. The serialized field names are camelCase so that saved trees
stay interchangeable with existing JSON files.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class PackageDependency:
    """An import that resolved to an external package rather than a local file."""

    name: str
    path: str = ''
    version: Optional[str] = None
    scope: Optional[str] = None
    is_dev_dependency: Optional[bool] = None

    @classmethod
    def from_import(cls, import_path: str, resolved_path: str = '') -> 'PackageDependency':
        """
        Build a package record from the literal import string.

        Scoped imports (``@scope/name/sub``) keep the scope and the first name
        segment; subpath imports (``pkg/sub``) collapse to the package name.

        Args:
            import_path: The import string as written in the source file
            resolved_path: The conventional vendor-directory path for the import

        Returns:
            A PackageDependency named after the package, not the full import
        """
        parts = import_path.split('/')
        if import_path.startswith('@') and len(parts) >= 2:
            return cls(name=f"{parts[0]}/{parts[1]}", scope=parts[0], path=resolved_path)
        if import_path.startswith('@'):
            return cls(name=import_path, scope=import_path, path=resolved_path)
        return cls(name=parts[0], path=resolved_path)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name}
        if self.version is not None:
            data['version'] = self.version
        if self.scope is not None:
            data['scope'] = self.scope
        if self.is_dev_dependency is not None:
            data['isDevDependency'] = self.is_dev_dependency
        data['path'] = self.path
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackageDependency':
        return cls(
            name=data.get('name', ''),
            path=data.get('path', ''),
            version=data.get('version'),
            scope=data.get('scope'),
            is_dev_dependency=data.get('isDevDependency'),
        )


@dataclass
class FileNode:
    """
    A node in the scanned file tree.

    Directories carry ``children``; files carry the dependency fields and an
    importance score. ``path`` is the canonical, forward-slash separated
    absolute path and is unique within a tree.
    """

    path: str
    name: str
    is_directory: bool
    children: Optional[List['FileNode']] = None
    dependencies: Optional[List[str]] = None
    package_dependencies: Optional[List[PackageDependency]] = None
    dependents: Optional[List[str]] = None
    importance: Optional[int] = None
    summary: Optional[str] = None

    @classmethod
    def directory(cls, path: str, name: str) -> 'FileNode':
        return cls(path=path, name=name, is_directory=True, children=[])

    @classmethod
    def file(cls, path: str, name: str) -> 'FileNode':
        return cls(
            path=path,
            name=name,
            is_directory=False,
            dependencies=[],
            package_dependencies=[],
            dependents=[],
            importance=0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the node (and its subtree) to the persisted JSON shape."""
        data: Dict[str, Any] = {
            'path': self.path,
            'name': self.name,
            'isDirectory': self.is_directory,
        }
        if self.children is not None:
            data['children'] = [child.to_dict() for child in self.children]
        if self.dependencies is not None:
            data['dependencies'] = list(self.dependencies)
        if self.package_dependencies is not None:
            data['packageDependencies'] = [dep.to_dict() for dep in self.package_dependencies]
        if self.dependents is not None:
            data['dependents'] = list(self.dependents)
        if self.importance is not None:
            data['importance'] = self.importance
        if self.summary is not None:
            data['summary'] = self.summary
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileNode':
        """Rebuild a node (and its subtree) from the persisted JSON shape."""
        children = data.get('children')
        package_deps = data.get('packageDependencies')
        if package_deps is not None:
            # Older trees stored package dependencies as bare path strings
            package_deps = [
                PackageDependency.from_dict(dep) if isinstance(dep, dict)
                else PackageDependency(name=str(dep), path=str(dep))
                for dep in package_deps
            ]
        return cls(
            path=data['path'],
            name=data.get('name', data['path'].rsplit('/', 1)[-1]),
            is_directory=bool(data.get('isDirectory', False)),
            children=[cls.from_dict(child) for child in children] if children is not None else None,
            dependencies=list(data['dependencies']) if data.get('dependencies') is not None else None,
            package_dependencies=package_deps,
            dependents=list(data['dependents']) if data.get('dependents') is not None else None,
            importance=data.get('importance'),
            summary=data.get('summary'),
        )


@dataclass
class FileTreeConfig:
    """Describes where a tree was scanned from and where it is saved."""

    filename: str
    base_directory: str
    project_root: str
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'filename': self.filename,
            'baseDirectory': self.base_directory,
            'projectRoot': self.project_root,
        }
        if self.last_updated is not None:
            data['lastUpdated'] = _format_timestamp(self.last_updated)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileTreeConfig':
        last_updated = data.get('lastUpdated')
        return cls(
            filename=data['filename'],
            base_directory=data['baseDirectory'],
            project_root=data.get('projectRoot', data['baseDirectory']),
            last_updated=_parse_timestamp(last_updated) if last_updated else None,
        )


@dataclass
class FileTreeStorage:
    """The persisted record: a tree together with its configuration."""

    config: FileTreeConfig
    file_tree: FileNode

    def to_dict(self) -> Dict[str, Any]:
        return {'config': self.config.to_dict(), 'fileTree': self.file_tree.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileTreeStorage':
        return cls(
            config=FileTreeConfig.from_dict(data['config']),
            file_tree=FileNode.from_dict(data['fileTree']),
        )


def _format_timestamp(value: datetime) -> str:
    # ISO-8601 in UTC, millisecond precision, "Z" suffix
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec='milliseconds') + 'Z'


def _parse_timestamp(value: str) -> datetime:
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)
