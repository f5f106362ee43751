"""
Artifact extraction - Literal path and module tokens from free text.

No language understanding: only tokens shaped like repository paths and
names of known modules are picked up.
"""

import re
from collections.abc import Iterable
from pathlib import Path

import structlog

logger = structlog.get_logger()

_FILE_PATH = r"(?:[\w.-]+/)*[\w-][\w.-]*\.[A-Za-z][A-Za-z0-9]{1,7}"
_SOURCE_DIR = r"(?:src|app|lib|tests?)/[\w./-]*[\w-]"
PATH_TOKEN = re.compile(rf"(?<![\w/.-])(?:{_FILE_PATH}|{_SOURCE_DIR})(?![\w/-])")

# Module names recognised in free text when none are configured
DEFAULT_MODULES = (
    "app",
    "core",
    "data",
    "domain",
    "ui",
    "presentation",
    "network",
    "database",
)

_SKIP_DIRS = {".git", "build", "node_modules", ".venv", "venv", "__pycache__", "dist"}


def is_module_token(token: str) -> bool:
    """Bare names (no separator, no extension) are module tokens."""
    return "/" not in token and "." not in token


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def extract_file_paths(text: str) -> list[str]:
    """Path-shaped tokens in order of first appearance."""
    return _dedupe(match.group(0) for match in PATH_TOKEN.finditer(text or ""))


def extract_modules(text: str, known_modules: Iterable[str] = DEFAULT_MODULES) -> list[str]:
    """Known module names mentioned as whole words, outside of paths."""
    remainder = PATH_TOKEN.sub(" ", text or "")
    found: list[tuple[int, str]] = []
    for module in _dedupe(m.strip().lower() for m in known_modules if m.strip()):
        match = re.search(rf"(?<![\w/-]){re.escape(module)}(?![\w/-])", remainder, re.IGNORECASE)
        if match:
            found.append((match.start(), module))
    return [module for _, module in sorted(found)]


def extract_artifacts(text: str, known_modules: Iterable[str] = DEFAULT_MODULES) -> list[str]:
    """File paths first, then module tokens."""
    paths = extract_file_paths(text)
    modules = extract_modules(text, known_modules)
    logger.debug("Artifacts extracted", paths=len(paths), modules=len(modules))
    return paths + modules


def discover_modules(repo_root: Path, markers: Iterable[str]) -> list[str]:
    """Directories (relative to the root) that contain a build marker file."""
    root = Path(repo_root)
    modules: set[str] = set()
    for marker in markers:
        for found in root.rglob(marker):
            relative = found.parent.relative_to(root)
            if relative == Path("."):
                continue
            if any(part in _SKIP_DIRS for part in relative.parts):
                continue
            modules.add(relative.as_posix())
    return sorted(modules)
