"""Ownership resolution: patterns, rules, sources and ranking."""

from owner_routing.ownership.errors import (
    ConfigurationError,
    InvalidArtifact,
    NoCandidates,
    OwnershipError,
    PatternError,
    StoreUnavailable,
)
from owner_routing.ownership.patterns import Matcher, PatternCompiler, pattern_compiler
from owner_routing.ownership.rules import (
    OwnerCandidate,
    OwnershipRule,
    PatternSyntax,
    ResolutionMethod,
    ResolutionRequest,
    ResolutionResult,
    RuleScope,
    RuleSource,
)

__all__ = [
    "ConfigurationError",
    "InvalidArtifact",
    "Matcher",
    "NoCandidates",
    "OwnerCandidate",
    "OwnershipError",
    "OwnershipRule",
    "PatternCompiler",
    "PatternError",
    "PatternSyntax",
    "ResolutionMethod",
    "ResolutionRequest",
    "ResolutionResult",
    "RuleScope",
    "RuleSource",
    "StoreUnavailable",
    "pattern_compiler",
]
