"""
Import Extraction Module

This module finds import-like statements in source files with regular
expressions and resolves each one to either a local file inside the project
or an external package reference. No syntax tree is built: imports that are
valid but unusually written may be missed.
"""

import os
import re
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from scope_core.models import PackageDependency
from scope_core.paths import normalize_path, relative_path, to_platform_path
from scope_core.analyzer.manifest import PackageManifest

# Set up logging
logger = logging.getLogger(__name__)

VENDOR_DIRECTORY = 'node_modules'

# Probe order for extension-less JS/TS imports; the first existing file wins
JS_PROBE_SUFFIXES = ('.ts', '.tsx', '.js', '.jsx', '')


@dataclass(frozen=True)
class LocalImport:
    """An import that points at a path inside the project (before probing)."""
    path: str


@dataclass(frozen=True)
class PackageImport:
    """An import of an external package."""
    name: str
    path: str
    scope: Optional[str] = None


ImportTarget = Union[LocalImport, PackageImport]


@dataclass(frozen=True)
class LanguageSpec:
    """
    How to find and resolve imports for one language family.

    Attributes:
        name: Language family name, for logging
        extensions: File extensions handled by this spec
        pattern: Regex locating import statements
        extract: Turns a regex match into zero or more import strings using
            the ``./x`` / ``../x`` / ``/x`` / ``package`` convention
        probe_suffixes: Suffixes tried, in order, on local candidates
        root_modules: Whether bare module names may refer to project files
            under the scan root (Python packages, Lua modules)
    """
    name: str
    extensions: Tuple[str, ...]
    pattern: 're.Pattern[str]'
    extract: Callable[['re.Match[str]', str], List[str]]
    probe_suffixes: Tuple[str, ...]
    root_modules: bool = False


@dataclass
class FileAnalysis:
    """The outgoing edges found in one file."""
    dependencies: List[str] = field(default_factory=list)
    package_dependencies: List[PackageDependency] = field(default_factory=list)


# --- Literal extractors -----------------------------------------------------

def _first_group(match: 're.Match[str]', filepath: str) -> List[str]:
    literal = next((group for group in match.groups() if group), None)
    return [literal] if literal else []


def _dotted_to_path(module: str) -> str:
    """Turn ``..pkg.mod`` into ``../pkg/mod`` and ``pkg.mod`` into ``pkg/mod``."""
    stripped = module.lstrip('.')
    dots = len(module) - len(stripped)
    rest = stripped.replace('.', '/')
    if dots == 0:
        return rest
    prefix = './' if dots == 1 else '../' * (dots - 1)
    return prefix + rest


_PYTHON_COMMENT = re.compile(r'#[^\n]*')


def _extract_python(match: 're.Match[str]', filepath: str) -> List[str]:
    from_module, from_names, import_modules = match.group(1), match.group(2), match.group(3)
    if from_module is not None:
        if from_module.strip('.'):
            return [_dotted_to_path(from_module)]
        # "from . import a, b": each name may be a sibling module
        names_text = _PYTHON_COMMENT.sub('', from_names).replace('(', ' ').replace(')', ' ')
        names = [name.split()[0] for name in names_text.split(',') if name.strip()]
        return [_dotted_to_path(from_module + name) for name in names if name != '*']
    if import_modules is not None:
        modules = [part.split()[0] for part in import_modules.split(',') if part.strip()]
        return [_dotted_to_path(module) for module in modules]
    return []


def _extract_c_include(match: 're.Match[str]', filepath: str) -> List[str]:
    delimiter, header = match.group(1), match.group(2)
    if delimiter == '<' or header.startswith(('.', '/')):
        return [header]
    return ['./' + header]


def _extract_rust_mod(match: 're.Match[str]', filepath: str) -> List[str]:
    module = match.group(1)
    stem = os.path.splitext(os.path.basename(filepath))[0]
    # Only main.rs, lib.rs and mod.rs own their directory's modules
    if stem in ('main', 'lib', 'mod'):
        return ['./' + module]
    return [f"./{stem}/{module}"]


def _extract_rust(match: 're.Match[str]', filepath: str) -> List[str]:
    if match.group(1) is not None:
        return _extract_rust_mod(match, filepath)
    use_path = match.group(2)
    if use_path is None:
        return []
    segments = [segment for segment in use_path.split('::') if segment]
    if not segments or segments[0] == 'crate':
        return []
    if segments[0] in ('self', 'super'):
        if len(segments) < 2:
            return []
        return [('./' if segments[0] == 'self' else '../') + segments[1]]
    return [segments[0]]


def _extract_lua(match: 're.Match[str]', filepath: str) -> List[str]:
    module = match.group(1)
    if module.startswith(('.', '/')):
        return [module]
    return [module.replace('.', '/')]


def _extract_zig(match: 're.Match[str]', filepath: str) -> List[str]:
    target = match.group(1)
    if target.endswith('.zig') and not target.startswith(('.', '/')):
        return ['./' + target]
    return [target]


# --- Strategy table ----------------------------------------------------------

_JS_PATTERN = re.compile(
    r"""(?:import\s+(?:[^;'"]{0,500}?)\s+from\s+["']([^"']+)["'])"""
    r"""|(?:export\s+(?:[^;'"]{0,500}?)\s+from\s+["']([^"']+)["'])"""
    r"""|(?:import\s+["']([^"']+)["'])"""
    r"""|(?:require\(\s*["']([^"']+)["']\s*\))"""
    r"""|(?:import\s*\(\s*["']([^"']+)["']\s*\))"""
)

_PYTHON_PATTERN = re.compile(
    r'^[ \t]*(?:from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]+(\([^)]*\)|[\w \t,*]+)|import[ \t]+([\w.]+(?:[ \t]+as[ \t]+\w+)?(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*))',
    re.MULTILINE,
)

_C_INCLUDE_PATTERN = re.compile(r'#\s*include\s*([<"])([^">]+)[">]')

_RUST_PATTERN = re.compile(
    r'^[ \t]*(?:pub(?:\([^)]*\))?[ \t]+)?(?:mod[ \t]+(\w+)[ \t]*;|use[ \t]+((?:::)?[\w:]+))',
    re.MULTILINE,
)

_LUA_PATTERN = re.compile(r"""require\s*\(?\s*["']([^"']+)["']\s*\)?""")

_ZIG_PATTERN = re.compile(r'@import\s*\(\s*"([^"]+)"\s*\)')

LANGUAGE_SPECS: Tuple[LanguageSpec, ...] = (
    LanguageSpec('javascript', ('.js', '.jsx', '.mjs', '.cjs', '.ts', '.tsx'),
                 _JS_PATTERN, _first_group, JS_PROBE_SUFFIXES),
    LanguageSpec('python', ('.py',),
                 _PYTHON_PATTERN, _extract_python, ('.py', '/__init__.py', ''), root_modules=True),
    LanguageSpec('c', ('.c', '.cpp', '.cc', '.h', '.hpp'),
                 _C_INCLUDE_PATTERN, _extract_c_include, ('',)),
    LanguageSpec('rust', ('.rs',),
                 _RUST_PATTERN, _extract_rust, ('.rs', '/mod.rs', '')),
    LanguageSpec('lua', ('.lua',),
                 _LUA_PATTERN, _extract_lua, ('.lua', '/init.lua', ''), root_modules=True),
    LanguageSpec('zig', ('.zig',),
                 _ZIG_PATTERN, _extract_zig, ('', '.zig')),
)

# Extension -> language spec
IMPORT_PATTERNS: Dict[str, LanguageSpec] = {
    ext: spec for spec in LANGUAGE_SPECS for ext in spec.extensions
}

SUPPORTED_EXTENSIONS = tuple(IMPORT_PATTERNS)


def get_language_spec(filepath: str) -> Optional[LanguageSpec]:
    """
    Get the import strategy for a file based on its extension.

    Examples:
        >>> get_language_spec('src/app.tsx').name
        'javascript'
        >>> get_language_spec('README.md') is None
        True
    """
    _, ext = os.path.splitext(filepath)
    return IMPORT_PATTERNS.get(ext.lower())


# --- Extraction and resolution ----------------------------------------------

def extract_import_paths(filepath: str, content: str) -> List[str]:
    """
    Find the raw import strings in a file's content.

    Args:
        filepath: Path of the file, used to select the language strategy
        content: The file's text

    Returns:
        Import strings in source order, duplicates removed
    """
    spec = get_language_spec(filepath)
    if spec is None:
        return []

    imports: List[str] = []
    for match in spec.pattern.finditer(content):
        for import_path in spec.extract(match, filepath):
            if import_path and import_path not in imports:
                imports.append(import_path)
    return imports


def resolve_import_path(import_path: str, importing_file: str, base_dir: str) -> str:
    """
    Resolve an import string to a candidate path.

    Relative imports resolve against the importing file's directory, imports
    starting with ``/`` against the project root, and anything else to the
    conventional vendor-directory location under the project root.

    Args:
        import_path: The import string
        importing_file: Normalized path of the file containing the import
        base_dir: Normalized project root

    Returns:
        The normalized candidate path (without extension probing)
    """
    is_local = import_path.startswith(('.', '/'))
    # TypeScript sources import compiled ".js" names for ".ts" files
    if is_local and importing_file.endswith(('.ts', '.tsx')) and import_path.endswith('.js'):
        import_path = import_path[:-3] + '.ts'

    if import_path.startswith('.'):
        directory = os.path.dirname(to_platform_path(importing_file))
        return normalize_path(os.path.normpath(os.path.join(directory, to_platform_path(import_path))))

    if import_path.startswith('/'):
        return normalize_path(os.path.normpath(
            os.path.join(to_platform_path(base_dir), to_platform_path(import_path.lstrip('/')))
        ))

    return normalize_path(os.path.normpath(
        os.path.join(to_platform_path(base_dir), VENDOR_DIRECTORY, to_platform_path(import_path))
    ))


def _package_name_from_vendor_path(resolved_path: str, base_dir: Optional[str] = None) -> Optional[str]:
    if base_dir:
        resolved_path = relative_path(resolved_path, base_dir)
    segments = resolved_path.split('/')
    if VENDOR_DIRECTORY not in segments:
        return None
    # Use the last vendor segment so nested vendor directories resolve to the innermost package
    index = len(segments) - 1 - segments[::-1].index(VENDOR_DIRECTORY)
    remainder = segments[index + 1:]
    if not remainder:
        return None
    return '/'.join(remainder)


def classify_import(import_path: str, resolved_path: str, base_dir: Optional[str] = None) -> ImportTarget:
    """
    Classify a resolved import as local or package.

    An import is a package reference when its resolved path passes through
    the vendor directory, when it is scoped (``@scope/name``), or when it does
    not start with ``.`` or ``/``.

    Args:
        import_path: The import string as written
        resolved_path: The candidate path from resolve_import_path
        base_dir: Project root; only vendor segments below it count

    Returns:
        LocalImport or PackageImport
    """
    vendor_import = _package_name_from_vendor_path(resolved_path, base_dir)
    is_package = (
        vendor_import is not None
        or import_path.startswith('@')
        or not import_path.startswith(('.', '/'))
    )
    if not is_package:
        return LocalImport(path=resolved_path)

    package = PackageDependency.from_import(vendor_import or import_path, resolved_path)
    return PackageImport(name=package.name, path=resolved_path, scope=package.scope)


def probe_local_file(candidate: str, suffixes: Tuple[str, ...] = JS_PROBE_SUFFIXES) -> Optional[str]:
    """
    Return the first existing file among ``candidate + suffix``.

    Args:
        candidate: Normalized candidate path without extension
        suffixes: Suffixes tried in order

    Returns:
        The normalized path of the first existing file, or None
    """
    for suffix in suffixes:
        path_to_check = candidate + suffix
        if os.path.isfile(to_platform_path(path_to_check)):
            logger.debug(f"Found existing path: {path_to_check}")
            return normalize_path(path_to_check)
    return None


def _probe_root_module(import_path: str, base_dir: str, spec: LanguageSpec) -> Optional[str]:
    for root in (base_dir, f"{base_dir}/src"):
        candidate = normalize_path(f"{root}/{import_path}")
        found = probe_local_file(candidate, spec.probe_suffixes)
        if found:
            return found
    return None


def analyze_content(filepath: str, content: str, base_dir: str,
                    manifest: Optional[PackageManifest] = None) -> FileAnalysis:
    """
    Extract and resolve the imports of a file whose content is already loaded.

    Local imports become dependency paths only when a file exists after
    extension probing; unresolved local imports are dropped.

    Args:
        filepath: Normalized path of the file
        content: The file's text
        base_dir: Normalized project root
        manifest: Optional package manifest for version lookups

    Returns:
        A FileAnalysis with deduplicated local and package dependencies
    """
    analysis = FileAnalysis()
    spec = get_language_spec(filepath)
    if spec is None:
        return analysis

    import_paths = extract_import_paths(filepath, content)
    logger.debug(f"Found {len(import_paths)} potential imports in {filepath}")

    seen_packages = set()
    for import_path in import_paths:
        try:
            resolved = resolve_import_path(import_path, filepath, base_dir)
            target = classify_import(import_path, resolved, base_dir)

            if isinstance(target, PackageImport) and spec.root_modules \
                    and not import_path.startswith(('@', '/')):
                local_module = _probe_root_module(import_path, base_dir, spec)
                if local_module:
                    target = LocalImport(path=local_module)

            if isinstance(target, PackageImport):
                if target.name in seen_packages:
                    continue
                seen_packages.add(target.name)
                package = PackageDependency(name=target.name, path=target.path, scope=target.scope)
                if manifest is not None:
                    manifest.annotate(package)
                analysis.package_dependencies.append(package)
                continue

            found = probe_local_file(target.path, spec.probe_suffixes)
            if found and found != filepath and found not in analysis.dependencies:
                analysis.dependencies.append(found)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to resolve import {import_path!r} in {filepath}: {e}")

    return analysis


def analyze_file(filepath: str, base_dir: str,
                 manifest: Optional[PackageManifest] = None) -> FileAnalysis:
    """
    Read a file and resolve its imports.

    Files without a known language, and files that cannot be read, yield an
    empty analysis.
    """
    if get_language_spec(filepath) is None:
        return FileAnalysis()

    try:
        with open(to_platform_path(filepath), 'r', encoding='utf-8', errors='replace') as f:
            content = f.read()
    except OSError as e:
        logger.warning(f"Failed to read file {filepath}: {e}")
        return FileAnalysis()

    return analyze_content(filepath, content, base_dir, manifest)
