"""
Manifest Source - Parses CODEOWNERS-style ownership manifests.

Format (one rule per line)::

    # comment
    *.kt          @android-team
    /docs/**      @alice @bob
    src/ui/**     @org/ui-team  # trailing comment

Manifest rules are explicit declarations and always carry full strength.
"""

from pathlib import Path

import structlog

from owner_routing.ownership.errors import ConfigurationError
from owner_routing.ownership.identity import IdentityMapper
from owner_routing.ownership.patterns import Matcher, PatternCompiler, pattern_compiler
from owner_routing.ownership.rules import (
    MAX_STRENGTH,
    OwnershipRule,
    RuleScope,
    RuleSource,
)

logger = structlog.get_logger()

# Checked in order under the repository root
MANIFEST_LOCATIONS = (
    Path(".github") / "CODEOWNERS",
    Path("docs") / "CODEOWNERS",
    Path("CODEOWNERS"),
)


class ManifestSource:
    """Ownership rules declared in a manifest file."""

    def __init__(
        self,
        compiler: PatternCompiler | None = None,
        identity: IdentityMapper | None = None,
    ):
        self._compiler = compiler or pattern_compiler
        self._identity = identity or IdentityMapper()
        self._entries: list[tuple[Matcher, OwnershipRule]] = []
        self.path: Path | None = None

    @staticmethod
    def discover(repo_root: Path) -> Path | None:
        """Find the manifest in its standard locations."""
        for relative in MANIFEST_LOCATIONS:
            candidate = Path(repo_root) / relative
            if candidate.is_file():
                return candidate
        return None

    @property
    def rules(self) -> list[OwnershipRule]:
        return [rule for _, rule in self._entries]

    def load(self, path: Path) -> list[OwnershipRule]:
        """
        Load rules from a manifest file, replacing any previously loaded rules.

        Raises:
            ConfigurationError: If the file cannot be read.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read ownership manifest {path}: {e}") from e

        self.path = path
        rules = self.parse(text)
        logger.info("Ownership manifest loaded", path=str(path), rules=len(rules))
        return rules

    def parse(self, text: str) -> list[OwnershipRule]:
        """Parse manifest text; malformed lines are skipped."""
        self._entries = []

        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            tokens = line.split()
            pattern = tokens[0]
            owners: list[str] = []
            for token in tokens[1:]:
                if token.startswith("#"):
                    break
                owners.append(token)

            if not owners:
                logger.debug("Manifest line has no owners", line=line_number, pattern=pattern)
                continue

            matcher = self._compiler.try_compile(pattern)
            if matcher is None:
                logger.warning("Skipping manifest rule", line=line_number, pattern=pattern)
                continue

            for owner in owners:
                rule = OwnershipRule(
                    pattern=pattern,
                    owner_name=owner,
                    canonical_handle=self._identity.normalize(owner),
                    strength=MAX_STRENGTH,
                    scope=RuleScope.FILE,
                    source=RuleSource.MANIFEST,
                )
                self._entries.append((matcher, rule))

        return self.rules

    def match(self, path: str) -> list[OwnershipRule]:
        """Rules of every manifest line covering the path, in file order."""
        return [rule for matcher, rule in self._entries if matcher.matches(path)]
