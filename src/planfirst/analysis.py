"""Summarise a project tree so planning prompts carry repository context."""

from __future__ import annotations

import fnmatch
import json
import logging
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

LOGGER = logging.getLogger(__name__)

__all__ = [
    "ProjectSummary",
    "is_excluded",
    "read_dependencies",
    "read_package_name",
    "render_context",
    "scan_project",
]

_LANGUAGE_BY_SUFFIX = {
    ".py": "python",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
}
_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_CONTEXT_FILE_LIMIT = 200


@dataclass(slots=True)
class ProjectSummary:
    """Snapshot of a project used to prime the planning prompt."""

    name: str
    root: Path
    language: str = "unknown"
    package_manager: Optional[str] = None
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    total_lines: int = 0

    @property
    def total_files(self) -> int:
        return len(self.files)


def is_excluded(relative_path: str, patterns: Sequence[str]) -> bool:
    """Return True when ``relative_path`` (posix) matches any exclude glob."""
    for pattern in patterns:
        if fnmatch.fnmatch(relative_path, pattern):
            return True
        if pattern.endswith("/**"):
            prefix = pattern[:-3]
            if relative_path == prefix or fnmatch.fnmatch(relative_path, f"{prefix}/*"):
                return True
            if fnmatch.fnmatch(relative_path.split("/", 1)[0], prefix):
                return True
    return False


def _requirement_name(spec: str) -> Optional[str]:
    match = _REQUIREMENT_NAME_RE.match(spec)
    if not match:
        return None
    return match.group(1)


def _python_dependencies(root: Path) -> tuple[list[str], list[str]]:
    runtime: list[str] = []
    dev: list[str] = []
    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as error:
            LOGGER.warning("Failed to parse %s: %s", pyproject, error)
            data = {}
        project = data.get("project") or {}
        for spec in project.get("dependencies") or []:
            name = _requirement_name(str(spec))
            if name:
                runtime.append(name)
        for extra in (project.get("optional-dependencies") or {}).values():
            for spec in extra or []:
                name = _requirement_name(str(spec))
                if name:
                    dev.append(name)

    requirements = root / "requirements.txt"
    if requirements.is_file():
        for line in requirements.read_text(encoding="utf-8", errors="replace").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith(("#", "-")):
                continue
            name = _requirement_name(stripped)
            if name and name not in runtime:
                runtime.append(name)
    return runtime, dev


def _node_dependencies(root: Path) -> tuple[list[str], list[str]]:
    package_json = root / "package.json"
    if not package_json.is_file():
        return [], []
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        LOGGER.warning("Failed to parse %s: %s", package_json, error)
        return [], []
    if not isinstance(data, dict):
        return [], []
    runtime = list((data.get("dependencies") or {}).keys())
    dev = list((data.get("devDependencies") or {}).keys())
    return runtime, dev


def read_dependencies(root: Path) -> tuple[list[str], list[str]]:
    """Return ``(dependencies, dev_dependencies)`` declared by the project."""
    py_runtime, py_dev = _python_dependencies(root)
    node_runtime, node_dev = _node_dependencies(root)
    return py_runtime + node_runtime, py_dev + node_dev


def read_package_name(root: Path) -> Optional[str]:
    """Return the name declared in ``pyproject.toml`` or ``package.json``, if any."""
    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            data = {}
        name = (data.get("project") or {}).get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return None
        if isinstance(data, dict) and isinstance(data.get("name"), str) and data["name"].strip():
            return data["name"].strip()
    return None


def _detect_package_manager(root: Path) -> Optional[str]:
    markers = (
        ("pnpm-lock.yaml", "pnpm"),
        ("yarn.lock", "yarn"),
        ("package-lock.json", "npm"),
        ("poetry.lock", "poetry"),
        ("uv.lock", "uv"),
        ("pyproject.toml", "pip"),
        ("requirements.txt", "pip"),
        ("package.json", "npm"),
    )
    for marker, manager in markers:
        if (root / marker).exists():
            return manager
    return None


def _detect_language(files: Iterable[str]) -> str:
    counts: dict[str, int] = {}
    for path in files:
        language = _LANGUAGE_BY_SUFFIX.get(Path(path).suffix.lower())
        if language:
            counts[language] = counts.get(language, 0) + 1
    if not counts:
        return "unknown"
    return max(sorted(counts), key=lambda key: counts[key])


def _count_lines(path: Path) -> int:
    try:
        with path.open("rb") as handle:
            return sum(1 for _ in handle)
    except OSError:
        return 0


def scan_project(root: Path | str, exclude_patterns: Sequence[str] = (), *, name: Optional[str] = None) -> ProjectSummary:
    """Walk ``root`` and collect files, dependencies and basic size metrics."""
    root_path = Path(root).resolve()
    files: list[str] = []
    total_lines = 0

    for current_root, dirs, filenames in os.walk(root_path):
        rel_dir = Path(current_root).relative_to(root_path)
        kept_dirs = []
        for directory in sorted(dirs):
            relative_dir = (rel_dir / directory).as_posix() if rel_dir != Path(".") else directory
            if is_excluded(relative_dir, exclude_patterns):
                continue
            kept_dirs.append(directory)
        dirs[:] = kept_dirs
        for filename in sorted(filenames):
            relative = (rel_dir / filename).as_posix() if rel_dir != Path(".") else filename
            if is_excluded(relative, exclude_patterns):
                continue
            files.append(relative)
            total_lines += _count_lines(Path(current_root) / filename)

    dependencies, dev_dependencies = read_dependencies(root_path)
    LOGGER.debug("Scanned %d file(s) under %s", len(files), root_path)
    return ProjectSummary(
        name=name or root_path.name,
        root=root_path,
        language=_detect_language(files),
        package_manager=_detect_package_manager(root_path),
        dependencies=dependencies,
        dev_dependencies=dev_dependencies,
        files=files,
        total_lines=total_lines,
    )


def render_context(summary: ProjectSummary, *, file_limit: int = _CONTEXT_FILE_LIMIT) -> str:
    """Format ``summary`` as the markdown context block sent with planning prompts."""
    lines = [
        f"Project: {summary.name}",
        f"Language: {summary.language}",
    ]
    if summary.package_manager:
        lines.append(f"Package manager: {summary.package_manager}")
    lines.append(f"Files: {summary.total_files} ({summary.total_lines} lines)")
    if summary.dependencies:
        lines.append(f"Dependencies: {', '.join(summary.dependencies)}")
    if summary.dev_dependencies:
        lines.append(f"Dev dependencies: {', '.join(summary.dev_dependencies)}")
    lines.extend(["", "## File Tree"])
    shown = summary.files[:file_limit]
    lines.extend(f"- {path}" for path in shown)
    if len(summary.files) > len(shown):
        lines.append(f"- ... {len(summary.files) - len(shown)} more file(s)")
    return "\n".join(lines)
