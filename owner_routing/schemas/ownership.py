"""Ownership API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from owner_routing.ownership.assignment import AssignmentKind
from owner_routing.ownership.rules import PatternSyntax, RuleScope, RuleSource


class ResolveRequest(BaseModel):
    """Schema for resolving explicit artifacts."""

    artifacts: list[str] = Field(default_factory=list, max_length=1000)


class ResolveTextRequest(BaseModel):
    """Schema for resolving artifacts mentioned in free text (issue bodies)."""

    text: str = Field(max_length=65536)
    known_modules: list[str] | None = None


class CandidateResponse(BaseModel):
    """Schema for a ranked owner."""

    handle: str
    aggregate_score: int
    contributing_rule_count: int


class ResolveResponse(BaseModel):
    """Schema for a resolution result."""

    handles: list[str]
    method: str  # ownership, default
    candidates: list[CandidateResponse]
    rejected: list[str] = Field(default_factory=list)


class ResolveTextResponse(ResolveResponse):
    """Resolution result plus the artifacts found in the text."""

    artifacts: list[str]


class RuleRequest(BaseModel):
    """Schema for storing a rule."""

    pattern: str = Field(min_length=1, max_length=500)
    owner_name: str = Field(min_length=1, max_length=100)
    canonical_handle: str | None = Field(default=None, max_length=100)
    strength: int = Field(default=100, ge=0, le=100, strict=True)
    scope: RuleScope = RuleScope.FILE
    syntax: PatternSyntax = PatternSyntax.GLOB


class RuleResponse(BaseModel):
    """Schema for a stored rule."""

    pattern: str
    owner_name: str
    canonical_handle: str
    strength: int
    scope: RuleScope
    source: RuleSource
    syntax: PatternSyntax
    last_verified: datetime


class RuleMatchResponse(BaseModel):
    """Schema for the store rules covering an artifact."""

    artifact: str
    rules: list[RuleResponse]


class ManifestSyncResponse(BaseModel):
    path: str | None
    rules_written: int


class AssignmentRequest(BaseModel):
    """Schema for planning an issue assignment or review request."""

    issue_number: int = Field(gt=0)
    kind: AssignmentKind = AssignmentKind.ISSUE
    artifacts: list[str] = Field(default_factory=list)
    text: str | None = None  # Issue body; artifacts are extracted when given
    current: list[str] = Field(default_factory=list)
    verify: bool = False
    record: bool = True


class AssignmentResponse(BaseModel):
    """Schema for an assignment plan."""

    issue_number: int
    kind: AssignmentKind
    handles: list[str]
    users: list[str]
    teams: list[str]
    method: str
    skipped: dict[str, str]
    recorded: bool
    resolution: ResolveResponse | None = None
