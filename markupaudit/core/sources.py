"""
Source set resolution.

Decides which ecosystem a project is built with and which files the rule
scanners should read. Resolution never fails: a project with no matching
directory simply yields an empty source set.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Ecosystem(Enum):
    NEXTJS = "nextjs"
    REACT = "react"
    ANGULAR = "angular"
    HTML = "html"


SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
HTML_EXTENSIONS = (".html", ".htm")
STYLESHEET_EXTENSIONS = (".css", ".scss", ".less")

# Candidate roots (relative to the project root) and file extensions per ecosystem.
SOURCE_LAYOUTS: Dict[Ecosystem, Tuple[List[str], Tuple[str, ...]]] = {
    Ecosystem.NEXTJS: (
        ["app", "src/app", "src/components", "components", "pages", "src/pages"],
        SCRIPT_EXTENSIONS,
    ),
    Ecosystem.REACT: (["src", "components"], SCRIPT_EXTENSIONS),
    Ecosystem.ANGULAR: (["src"], (".html", ".ts")),
    Ecosystem.HTML: (["."], HTML_EXTENSIONS),
}

STYLESHEET_ROOTS: Dict[Ecosystem, List[str]] = {
    Ecosystem.NEXTJS: ["src", "app", "styles", "."],
    Ecosystem.REACT: ["src", "app", "styles", "."],
    Ecosystem.ANGULAR: ["src"],
    Ecosystem.HTML: ["src", "app", "styles", "."],
}

PRUNED_DIRS = frozenset({"node_modules", "dist", "build", ".next"})
DEFAULT_MAX_DEPTH = 10

PRERENDER_PACKAGES = ("react-snap", "react-snapshot", "prerender-spa-plugin")


@dataclass
class Detection:
    """Result of ecosystem detection."""
    framework: Ecosystem
    version: Optional[str] = None
    evidence: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "framework": self.framework.value,
            "version": self.version,
            "evidence": self.evidence,
        }


def read_package_json(project_root: str) -> Optional[Dict[str, Any]]:
    """Return the parsed package.json, or None when missing or malformed."""
    path = os.path.join(project_root, "package.json")
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not parse %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def package_dependencies(package: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Merge dependencies and devDependencies of a package.json."""
    if not package:
        return {}
    merged: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = package.get(key)
        if isinstance(section, dict):
            merged.update({str(k): str(v) for k, v in section.items()})
    return merged


def _clean_version(spec: str) -> str:
    return re.sub(r"[\^~<>=]", "", spec).strip()


def detect_ecosystem(project_root: str) -> Detection:
    """
    Detect the ecosystem of a project from its package.json.

    Precedence: ``next`` -> nextjs, ``@angular/core`` -> angular,
    ``react`` -> react, otherwise plain html.
    """
    package = read_package_json(project_root)
    if package is None:
        html_files = find_files(project_root, HTML_EXTENSIONS, max_depth=3)
        evidence = ["No package.json found"]
        if html_files:
            evidence.append(f"Found {len(html_files)} HTML file(s)")
        return Detection(Ecosystem.HTML, None, evidence)

    deps = package_dependencies(package)

    if "next" in deps:
        evidence = []
        if os.path.isdir(os.path.join(project_root, "app")) or os.path.isdir(
            os.path.join(project_root, "src", "app")
        ):
            evidence.append("App Router detected (app/ directory)")
        if os.path.isdir(os.path.join(project_root, "pages")) or os.path.isdir(
            os.path.join(project_root, "src", "pages")
        ):
            evidence.append("Pages Router detected (pages/ directory)")
        return Detection(Ecosystem.NEXTJS, _clean_version(deps["next"]), evidence)

    if "@angular/core" in deps:
        evidence = []
        if "@nguniversal/express-engine" in deps or "@angular/ssr" in deps:
            evidence.append("Angular Universal (SSR) detected")
        return Detection(Ecosystem.ANGULAR, _clean_version(deps["@angular/core"]), evidence)

    if "react" in deps:
        evidence = []
        if "react-helmet" in deps or "react-helmet-async" in deps:
            evidence.append("React Helmet detected for metadata management")
        if "gatsby" in deps:
            evidence.append("Gatsby detected (SSG framework)")
        if any(name in deps for name in PRERENDER_PACKAGES):
            evidence.append("Pre-rendering library detected")
        return Detection(Ecosystem.REACT, _clean_version(deps["react"]), evidence)

    return Detection(Ecosystem.HTML, None, ["No known framework detected in package.json"])


def _is_pruned(name: str, extra: Iterable[str]) -> bool:
    return name.startswith(".") or name in PRUNED_DIRS or name in extra


def find_files(
    directory: str,
    extensions: Iterable[str],
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore_dirs: Iterable[str] = (),
    _depth: int = 0,
) -> List[str]:
    """
    Recursively collect files with one of ``extensions`` under ``directory``.

    Entries are visited in sorted order; hidden entries and build/dependency
    directories are pruned. Unreadable directories are skipped.
    """
    if _depth > max_depth:
        return []
    extensions = tuple(ext.lower() for ext in extensions)
    ignore_dirs = tuple(ignore_dirs)
    try:
        entries = sorted(os.listdir(directory))
    except OSError as e:
        logger.debug("Skipping unreadable directory %s: %s", directory, e)
        return []

    results: List[str] = []
    for name in entries:
        if _is_pruned(name, ignore_dirs):
            continue
        path = os.path.join(directory, name)
        if os.path.isdir(path):
            results.extend(find_files(path, extensions, max_depth, ignore_dirs, _depth + 1))
        elif os.path.splitext(name)[1].lower() in extensions:
            results.append(path)
    return results


def _collect(project_root: str, roots: List[str], extensions: Tuple[str, ...],
             max_depth: int, ignore_dirs: Iterable[str], recurse: bool = True) -> List[str]:
    seen = set()
    results: List[str] = []
    for root in roots:
        directory = os.path.normpath(os.path.join(project_root, root))
        if not os.path.isdir(directory):
            continue
        depth = max_depth if recurse else 0
        for path in find_files(directory, extensions, depth, ignore_dirs):
            key = os.path.abspath(path)
            if key not in seen:
                seen.add(key)
                results.append(path)
    return results


def resolve_sources(
    project_root: str,
    ecosystem: Ecosystem,
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore_dirs: Iterable[str] = (),
) -> List[str]:
    """Return the ordered, de-duplicated list of source files to scan."""
    roots, extensions = SOURCE_LAYOUTS[ecosystem]
    files = _collect(project_root, roots, extensions, max_depth, ignore_dirs)
    logger.debug("Resolved %d %s source file(s) under %s", len(files), ecosystem.value, project_root)
    return files


def resolve_stylesheets(
    project_root: str,
    ecosystem: Ecosystem,
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore_dirs: Iterable[str] = (),
) -> List[str]:
    """Stylesheets checked by the keyboard rules. The project root itself is not recursed."""
    files: List[str] = []
    seen = set()
    for root in STYLESHEET_ROOTS[ecosystem]:
        recurse = root != "."
        for path in _collect(project_root, [root], STYLESHEET_EXTENSIONS, max_depth,
                             ignore_dirs, recurse=recurse):
            key = os.path.abspath(path)
            if key not in seen:
                seen.add(key)
                files.append(path)
    return files


_NEXT_PAGE = re.compile(r"^(page|layout)\.(tsx?|jsx?)$")
_REACT_PAGE_DIR = re.compile(r"(^|/)(pages?|views?|routes?)/")
_REACT_APP = re.compile(r"^App\.(tsx?|jsx?)$")


def is_page_file(rel_path: str, ecosystem: Ecosystem) -> bool:
    """Whether a file renders a whole page (as opposed to a component)."""
    rel_path = rel_path.replace(os.sep, "/")
    name = rel_path.rsplit("/", 1)[-1]
    if ecosystem == Ecosystem.NEXTJS:
        if _NEXT_PAGE.match(name):
            return True
        return bool(re.search(r"(^|/)pages/", rel_path)) and not name.startswith("_")
    if ecosystem == Ecosystem.REACT:
        return bool(_REACT_PAGE_DIR.search(rel_path) or _REACT_APP.match(name))
    if ecosystem == Ecosystem.ANGULAR:
        return name.endswith(".component.html")
    return True
