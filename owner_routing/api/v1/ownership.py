"""Ownership API endpoints."""

from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncEngine

from owner_routing.config import settings
from owner_routing.connectors import GitHistoryClient, github_connector
from owner_routing.models.database import get_engine
from owner_routing.ownership.assignment import AssignmentPlanner
from owner_routing.ownership.engine import ResolutionEngine
from owner_routing.ownership.errors import (
    ConfigurationError,
    InvalidArtifact,
    NoCandidates,
    PatternError,
    StoreUnavailable,
)
from owner_routing.ownership.extraction import extract_artifacts, is_module_token
from owner_routing.ownership.patterns import pattern_compiler
from owner_routing.ownership.rules import OwnershipRule, RuleSource
from owner_routing.ownership.service import build_engine, build_store, known_modules, sync_manifest
from owner_routing.ownership.store import OwnershipStore
from owner_routing.schemas.ownership import (
    AssignmentRequest,
    AssignmentResponse,
    ManifestSyncResponse,
    ResolveRequest,
    ResolveResponse,
    ResolveTextRequest,
    ResolveTextResponse,
    RuleMatchResponse,
    RuleRequest,
    RuleResponse,
)
from owner_routing.security.validation import validate_artifact

logger = structlog.get_logger()

router = APIRouter()


def get_db_engine() -> AsyncEngine:
    return get_engine()


@lru_cache
def _store(db: AsyncEngine) -> OwnershipStore:
    return build_store(settings, db)


def get_store(db: AsyncEngine = Depends(get_db_engine)) -> OwnershipStore:
    """Process-wide ownership store."""
    try:
        return _store(db)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))


@lru_cache
def _resolution_engine(store: OwnershipStore) -> ResolutionEngine:
    return build_engine(settings, store=store, vcs=GitHistoryClient(settings.repo_root))


def get_resolution_engine(store: OwnershipStore = Depends(get_store)) -> ResolutionEngine:
    """Process-wide resolution engine bound to the store."""
    try:
        return _resolution_engine(store)
    except ConfigurationError as e:
        logger.error("Resolution engine misconfigured", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))


def _rule_response(rule: OwnershipRule) -> RuleResponse:
    return RuleResponse(
        pattern=rule.pattern,
        owner_name=rule.owner_name,
        canonical_handle=rule.canonical_handle,
        strength=rule.strength,
        scope=rule.scope,
        source=rule.source,
        syntax=rule.syntax,
        last_verified=rule.last_verified,
    )


@router.post("/resolve", response_model=ResolveResponse)
async def resolve(
    request: ResolveRequest,
    engine: ResolutionEngine = Depends(get_resolution_engine),
) -> ResolveResponse:
    """Resolve artifacts to ranked owners."""
    result = await engine.resolve(request.artifacts)
    return ResolveResponse(**result.to_response())


@router.post("/resolve/text", response_model=ResolveTextResponse)
async def resolve_text(
    request: ResolveTextRequest,
    engine: ResolutionEngine = Depends(get_resolution_engine),
) -> ResolveTextResponse:
    """Resolve the paths and modules mentioned in free text."""
    modules = request.known_modules if request.known_modules is not None else known_modules(settings)
    artifacts = extract_artifacts(request.text, modules)
    result = await engine.resolve(artifacts)
    return ResolveTextResponse(artifacts=artifacts, **result.to_response())


@router.put("/rules", response_model=RuleResponse)
async def put_rule(
    request: RuleRequest,
    store: OwnershipStore = Depends(get_store),
    engine: ResolutionEngine = Depends(get_resolution_engine),
) -> RuleResponse:
    """Insert a rule, or refresh the one with the same pattern and owner."""
    try:
        pattern_compiler.compile(request.pattern, request.syntax)
    except PatternError as e:
        raise HTTPException(status_code=422, detail=str(e))

    rule = OwnershipRule(
        pattern=request.pattern,
        owner_name=request.owner_name,
        canonical_handle=request.canonical_handle or engine.identity.normalize(request.owner_name),
        strength=request.strength,
        scope=request.scope,
        source=RuleSource.STORE,
        syntax=request.syntax,
    )
    try:
        await store.upsert(rule)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Ownership store unavailable: {e}")

    logger.info("Ownership rule stored", pattern=rule.pattern, owner=rule.owner_name)
    return _rule_response(rule)


@router.get("/rules/match", response_model=RuleMatchResponse)
async def match_rules(
    artifact: str = Query(..., min_length=1),
    store: OwnershipStore = Depends(get_store),
) -> RuleMatchResponse:
    """Stored rules covering a path (or naming a module), strongest first."""
    try:
        normalized = validate_artifact(artifact)
    except InvalidArtifact as e:
        raise HTTPException(status_code=422, detail=str(e))

    rules = []
    if is_module_token(normalized):
        rules = await store.rules_for_module(normalized)
    if not rules:
        rules = await store.rules_for_artifact(normalized)
    return RuleMatchResponse(artifact=normalized, rules=[_rule_response(r) for r in rules])


@router.post("/manifest/sync", response_model=ManifestSyncResponse)
async def sync_manifest_rules(
    store: OwnershipStore = Depends(get_store),
    engine: ResolutionEngine = Depends(get_resolution_engine),
) -> ManifestSyncResponse:
    """Copy the loaded manifest into the store."""
    if engine.manifest is None:
        raise HTTPException(status_code=404, detail="No ownership manifest loaded")

    try:
        written = await sync_manifest(engine.manifest, store)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Ownership store unavailable: {e}")

    path = str(engine.manifest.path) if engine.manifest.path else None
    return ManifestSyncResponse(path=path, rules_written=written)


@router.post("/assignments/plan", response_model=AssignmentResponse)
async def plan_assignment(
    request: AssignmentRequest,
    engine: ResolutionEngine = Depends(get_resolution_engine),
    db: AsyncEngine = Depends(get_db_engine),
) -> AssignmentResponse:
    """Plan who an issue or pull request should be routed to."""
    artifacts = list(request.artifacts)
    if request.text:
        artifacts.extend(
            a for a in extract_artifacts(request.text, known_modules(settings)) if a not in artifacts
        )

    planner = AssignmentPlanner(
        engine,
        db=db,
        exists=github_connector.user_exists if request.verify else None,
        default_owners=settings.default_owners,
        default_reviewers=settings.default_reviewers,
        fallback_reviewers=settings.fallback_reviewers,
    )

    try:
        plan = await planner.plan(
            request.issue_number,
            artifacts,
            kind=request.kind,
            current=request.current,
            record=request.record,
        )
    except NoCandidates as e:
        raise HTTPException(status_code=404, detail=str(e))

    return AssignmentResponse(**plan.to_response())
