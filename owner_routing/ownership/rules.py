"""
Ownership data model.

Strengths and scores are plain integers on a 0-100 scale. Nothing in
this module accepts or produces floats, so ranking is deterministic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

MAX_STRENGTH = 100


class RuleScope(str, Enum):
    """What a rule's pattern is matched against."""

    FILE = "file"
    MODULE = "module"


class RuleSource(str, Enum):
    """Where a rule was learned from."""

    MANIFEST = "manifest"
    STORE = "store"
    HISTORY = "history"


class PatternSyntax(str, Enum):
    """How a stored pattern is interpreted."""

    GLOB = "glob"
    REGEX = "regex"  # Legacy rows matched with the database regex operator


class OwnerType(str, Enum):
    """Kind of owner behind a handle."""

    USER = "user"
    TEAM = "team"

    @classmethod
    def for_handle(cls, handle: str) -> "OwnerType":
        """Teams are written as org/team."""
        return cls.TEAM if "/" in handle else cls.USER


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OwnershipRule:
    """A (pattern, owner, strength) association."""

    pattern: str
    owner_name: str
    canonical_handle: str
    strength: int = MAX_STRENGTH
    scope: RuleScope = RuleScope.FILE
    source: RuleSource = RuleSource.STORE
    last_verified: datetime = field(default_factory=_utcnow)
    syntax: PatternSyntax = PatternSyntax.GLOB

    def __post_init__(self) -> None:
        # bool is an int subclass; reject it along with floats
        if isinstance(self.strength, bool) or not isinstance(self.strength, int):
            raise ValueError(
                f"strength must be an integer, got {type(self.strength).__name__}"
            )
        if not 0 <= self.strength <= MAX_STRENGTH:
            raise ValueError(f"strength must be within 0-{MAX_STRENGTH}, got {self.strength}")
        if not self.pattern:
            raise ValueError("pattern must not be empty")
        if not self.owner_name:
            raise ValueError("owner_name must not be empty")

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key used by the store."""
        return (self.pattern, self.owner_name)

    @property
    def owner_type(self) -> OwnerType:
        return OwnerType.for_handle(self.canonical_handle)


@dataclass
class Contribution:
    """Points one artifact contributes to one owner.

    ``rule`` is set when the contribution came from a discovery worth
    persisting (manifest or history).
    """

    handle: str
    points: int
    source: RuleSource
    rule: OwnershipRule | None = None


@dataclass
class ResolutionRequest:
    """Ordered artifact tokens (paths or module names)."""

    artifacts: list[str] = field(default_factory=list)


@dataclass
class OwnerCandidate:
    """A ranked owner with its aggregate score."""

    canonical_handle: str
    aggregate_score: int = 0
    contributing_rule_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "handle": self.canonical_handle,
            "aggregate_score": self.aggregate_score,
            "contributing_rule_count": self.contributing_rule_count,
        }


class ResolutionMethod(str, Enum):
    """How the final candidate list was produced."""

    OWNERSHIP = "ownership"
    DEFAULT = "default"


@dataclass
class ResolutionResult:
    """Ranked, capped candidates for one request."""

    candidates: list[OwnerCandidate] = field(default_factory=list)
    method: ResolutionMethod = ResolutionMethod.DEFAULT
    rejected: list[str] = field(default_factory=list)

    @property
    def handles(self) -> list[str]:
        return [c.canonical_handle for c in self.candidates]

    def to_response(self) -> dict[str, Any]:
        """Convert to API response format."""
        return {
            "handles": self.handles,
            "method": self.method.value,
            "candidates": [c.to_dict() for c in self.candidates],
            "rejected": list(self.rejected),
        }
