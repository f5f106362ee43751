"""
Pattern Compiler - Translates ownership globs into path matchers.

Glob translation happens in a single left-to-right scan, so literal
characters are escaped before any wildcard is substituted and wildcard
output is never re-escaped:

- regex metacharacters outside glob syntax are escaped
- ``**`` matches any sequence, separators included (``**/`` also
  matches zero directories)
- a leading ``/`` (or any interior ``/``) anchors to the repository root
- ``*`` matches any sequence without a separator
- ``?`` matches exactly one non-separator character

Matches end on a path-component boundary, so ``docs`` also covers
everything under ``docs/``. A trailing ``/`` only matches directory
contents.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

import structlog

from owner_routing.ownership.errors import PatternError
from owner_routing.ownership.rules import PatternSyntax

logger = structlog.get_logger()


@dataclass(frozen=True)
class Matcher:
    """A compiled ownership pattern."""

    pattern: str
    syntax: PatternSyntax
    regex: re.Pattern[str]

    def matches(self, path: str) -> bool:
        """Check whether a repository-relative path is covered by the pattern."""
        return self.regex.search(normalize_path(path)) is not None


def normalize_path(path: str) -> str:
    """Strip ``./`` and leading slashes so paths are repository-relative."""
    path = path.strip()
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


_GLOB_SPECIAL = re.compile(r"([\[\]*?\\])")


def escape_glob(path: str) -> str:
    """Escape wildcard characters so the path matches only itself."""
    return _GLOB_SPECIAL.sub(r"\\\1", path)


def _translate_class(body: str, start: int, pattern: str) -> tuple[str, int]:
    """Translate a ``[...]`` class starting at ``start``; return regex and next index."""
    end = start + 1
    if end < len(body) and body[end] in "!^":
        end += 1
    if end < len(body) and body[end] == "]":
        end += 1
    while end < len(body) and body[end] != "]":
        end += 1
    if end >= len(body):
        raise PatternError(pattern, "unbalanced character class")

    inner = body[start + 1 : end]
    negate = inner[:1] in ("!", "^")
    if negate:
        inner = inner[1:]
    if not inner:
        raise PatternError(pattern, "empty character class")
    inner = inner.replace("\\", "\\\\")
    return f"[{'^' if negate else ''}{inner}]", end + 1


def translate_glob(pattern: str) -> str:
    """Translate a glob pattern into a regular expression string."""
    raw = pattern.strip()
    if not raw:
        raise PatternError(pattern, "empty pattern")

    anchored = raw.startswith("/")
    body = raw[1:] if anchored else raw
    dir_only = body.endswith("/")
    body = body.rstrip("/")
    if not body:
        raise PatternError(pattern, "pattern has no path component")
    if "/" in body:
        anchored = True

    parts: list[str] = []
    i = 0
    n = len(body)
    while i < n:
        char = body[i]
        if char == "*":
            j = i
            while j < n and body[j] == "*":
                j += 1
            if j - i == 1:
                parts.append("[^/]*")
                i = j
            elif j < n and body[j] == "/":
                parts.append("(?:.*/)?")
                i = j + 1
            else:
                parts.append(".*")
                i = j
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char == "[":
            translated, i = _translate_class(body, i, pattern)
            parts.append(translated)
        elif char == "\\":
            if i + 1 >= n:
                raise PatternError(pattern, "trailing escape character")
            parts.append(re.escape(body[i + 1]))
            i += 2
        else:
            parts.append(re.escape(char))
            i += 1

    prefix = "^" if anchored else "(?:^|/)"
    suffix = "/" if dir_only else "(?:/|$)"
    return prefix + "".join(parts) + suffix


@lru_cache(maxsize=2048)
def _compile(pattern: str, syntax: PatternSyntax) -> Matcher:
    source = pattern if syntax == PatternSyntax.REGEX else translate_glob(pattern)
    try:
        regex = re.compile(source)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e
    return Matcher(pattern=pattern, syntax=syntax, regex=regex)


class PatternCompiler:
    """Compiles ownership patterns, caching the resulting matchers."""

    def compile(
        self,
        pattern: str,
        syntax: PatternSyntax = PatternSyntax.GLOB,
    ) -> Matcher:
        """
        Compile a pattern.

        Raises:
            PatternError: If the pattern is malformed.
        """
        return _compile(pattern, PatternSyntax(syntax))

    def try_compile(
        self,
        pattern: str,
        syntax: PatternSyntax = PatternSyntax.GLOB,
    ) -> Matcher | None:
        """Compile a pattern, logging and returning None when it is malformed."""
        try:
            return self.compile(pattern, syntax)
        except PatternError as e:
            logger.warning("Skipping malformed pattern", pattern=pattern, error=e.reason)
            return None


pattern_compiler = PatternCompiler()
