"""Pydantic schemas for request/response validation."""

from owner_routing.schemas.ownership import (
    AssignmentRequest,
    AssignmentResponse,
    CandidateResponse,
    ManifestSyncResponse,
    ResolveRequest,
    ResolveResponse,
    ResolveTextRequest,
    ResolveTextResponse,
    RuleMatchResponse,
    RuleRequest,
    RuleResponse,
)

__all__ = [
    "AssignmentRequest",
    "AssignmentResponse",
    "CandidateResponse",
    "ManifestSyncResponse",
    "ResolveRequest",
    "ResolveResponse",
    "ResolveTextRequest",
    "ResolveTextResponse",
    "RuleMatchResponse",
    "RuleRequest",
    "RuleResponse",
]
