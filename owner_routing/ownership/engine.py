"""
Resolution Engine - Routes artifacts to accountable owners.

Each artifact runs through an ordered chain of strategies; the first
strategy that yields owners wins for that artifact:

- file paths: manifest -> store -> history
- module tokens: module-scoped store lookup, then the file chain

Contributions from every artifact are accumulated before ranking.
"""

import asyncio
from abc import ABC, abstractmethod

import structlog

from owner_routing.ownership.errors import InvalidArtifact, StoreUnavailable
from owner_routing.ownership.extraction import is_module_token
from owner_routing.ownership.history import HistorySource
from owner_routing.ownership.identity import IdentityMapper
from owner_routing.ownership.manifest import ManifestSource
from owner_routing.ownership.patterns import escape_glob
from owner_routing.ownership.ranker import Ranker, ScoreAccumulator
from owner_routing.ownership.rules import (
    Contribution,
    OwnerCandidate,
    OwnershipRule,
    ResolutionMethod,
    ResolutionRequest,
    ResolutionResult,
    RuleScope,
    RuleSource,
)
from owner_routing.ownership.store import OwnershipStore
from owner_routing.security.validation import validate_artifact

logger = structlog.get_logger()

# Fixed points for signals without a graded strength
MODULE_MATCH_POINTS = 50
HISTORY_MATCH_POINTS = 50


class ArtifactStrategy(ABC):
    """One link of the precedence chain."""

    name: str = ""

    @abstractmethod
    async def contributions(self, artifact: str) -> list[Contribution]:
        """Owners for the artifact; empty means "try the next strategy"."""
        pass


class ManifestStrategy(ArtifactStrategy):
    """Explicit manifest declarations, at their declared strength."""

    name = "manifest"

    def __init__(self, manifest: ManifestSource):
        self._manifest = manifest

    async def contributions(self, artifact: str) -> list[Contribution]:
        return [
            Contribution(
                handle=rule.canonical_handle,
                points=rule.strength,
                source=RuleSource.MANIFEST,
                rule=rule,
            )
            for rule in self._manifest.match(artifact)
        ]


class StoreStrategy(ArtifactStrategy):
    """Learned file rules, at their stored strength."""

    name = "store"

    def __init__(self, store: OwnershipStore):
        self._store = store

    async def contributions(self, artifact: str) -> list[Contribution]:
        pairs = await self._store.query_by_artifact(artifact)
        return [
            Contribution(handle=handle, points=strength, source=RuleSource.STORE)
            for handle, strength in pairs
        ]


class ModuleStoreStrategy(ArtifactStrategy):
    """Module owners, at a fixed number of points regardless of stored strength."""

    name = "module"

    def __init__(self, store: OwnershipStore, points: int = MODULE_MATCH_POINTS):
        self._store = store
        self._points = points

    async def contributions(self, artifact: str) -> list[Contribution]:
        pairs = await self._store.query_by_module(artifact)
        return [
            Contribution(handle=handle, points=self._points, source=RuleSource.STORE)
            for handle, _strength in pairs
        ]


class HistoryStrategy(ArtifactStrategy):
    """Recent committers, at a fixed number of points each."""

    name = "history"

    def __init__(
        self,
        history: HistorySource,
        identity: IdentityMapper,
        points: int = HISTORY_MATCH_POINTS,
        write_back_strength: int = HISTORY_MATCH_POINTS,
    ):
        self._history = history
        self._identity = identity
        self._points = points
        self._write_back_strength = write_back_strength

    async def contributions(self, artifact: str) -> list[Contribution]:
        contributions = []
        for author in await self._history.owners_for_path(artifact):
            handle = await self._identity.to_canonical_handle(author)
            rule = OwnershipRule(
                # Anchored literal path so the learned rule covers only this file
                pattern="/" + escape_glob(artifact),
                owner_name=author,
                canonical_handle=handle,
                strength=self._write_back_strength,
                scope=RuleScope.FILE,
                source=RuleSource.HISTORY,
            )
            contributions.append(
                Contribution(
                    handle=handle,
                    points=self._points,
                    source=RuleSource.HISTORY,
                    rule=rule,
                )
            )
        return contributions


class ResolutionEngine:
    """
    Resolves a request to ranked owners.

    Owner totals live in a request-local accumulator. Artifacts may be
    processed concurrently; their contributions are merged in request
    order, so the result matches sequential processing exactly.
    """

    def __init__(
        self,
        *,
        manifest: ManifestSource | None = None,
        store: OwnershipStore | None = None,
        history: HistorySource | None = None,
        identity: IdentityMapper | None = None,
        ranker: Ranker | None = None,
        module_points: int = MODULE_MATCH_POINTS,
        history_points: int = HISTORY_MATCH_POINTS,
        history_write_back_strength: int = HISTORY_MATCH_POINTS,
        default_owners: list[str] | None = None,
        write_back: bool = True,
        concurrency: int = 1,
    ):
        self.manifest = manifest
        self.store = store
        self.identity = identity or IdentityMapper()
        self.ranker = ranker or Ranker()
        self.default_owners = list(default_owners or [])
        self.write_back = write_back and store is not None
        self._concurrency = max(1, concurrency)

        self.file_chain: list[ArtifactStrategy] = []
        if manifest is not None:
            self.file_chain.append(ManifestStrategy(manifest))
        if store is not None:
            self.file_chain.append(StoreStrategy(store))
        if history is not None:
            self.file_chain.append(
                HistoryStrategy(
                    history,
                    self.identity,
                    points=history_points,
                    write_back_strength=history_write_back_strength,
                )
            )

        self.module_chain: list[ArtifactStrategy] = []
        if store is not None:
            self.module_chain.append(ModuleStoreStrategy(store, points=module_points))

    async def resolve(self, request: ResolutionRequest | list[str]) -> ResolutionResult:
        """
        Resolve every artifact in the request and rank the owners.

        Invalid artifacts are rejected individually; nothing that happens
        while processing one artifact stops the others.
        """
        if not isinstance(request, ResolutionRequest):
            request = ResolutionRequest(artifacts=list(request))

        artifacts: list[str] = []
        rejected: list[str] = []
        for token in request.artifacts:
            try:
                artifacts.append(validate_artifact(token))
            except InvalidArtifact as e:
                logger.warning("Rejected artifact", artifact=e.artifact, reason=e.reason)
                rejected.append(token)

        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(artifact: str) -> list[Contribution]:
            async with semaphore:
                return await self._resolve_artifact(artifact)

        per_artifact = await asyncio.gather(*(run(a) for a in artifacts))

        accumulator = ScoreAccumulator()
        for contributions in per_artifact:
            accumulator.extend(contributions)

        candidates = self.ranker.rank(accumulator)
        method = ResolutionMethod.OWNERSHIP
        if not candidates:
            method = ResolutionMethod.DEFAULT
            candidates = [OwnerCandidate(canonical_handle=h) for h in self.default_owners]

        # Only after every artifact has been processed
        if self.write_back:
            await self._write_back(per_artifact)

        result = ResolutionResult(candidates=candidates, method=method, rejected=rejected)
        logger.info(
            "Ownership resolved",
            artifacts=len(artifacts),
            rejected=len(rejected),
            owners=len(accumulator.totals),
            method=method.value,
            handles=result.handles,
        )
        return result

    async def _resolve_artifact(self, artifact: str) -> list[Contribution]:
        chain = self.file_chain
        if is_module_token(artifact):
            # Bare names like Dockerfile or Makefile may still be files
            chain = self.module_chain + self.file_chain

        for strategy in chain:
            try:
                contributions = await strategy.contributions(artifact)
            except Exception as e:
                logger.error(
                    "Ownership strategy failed",
                    artifact=artifact,
                    strategy=strategy.name,
                    error=str(e),
                )
                continue

            if contributions:
                logger.debug(
                    "Artifact resolved",
                    artifact=artifact,
                    strategy=strategy.name,
                    owners=[c.handle for c in contributions],
                )
                return contributions

        logger.info("No owners found", artifact=artifact)
        return []

    async def _write_back(self, per_artifact: list[list[Contribution]]) -> None:
        discovered: dict[tuple[str, str], OwnershipRule] = {}
        for contributions in per_artifact:
            for contribution in contributions:
                if contribution.rule is not None:
                    discovered[contribution.rule.key] = contribution.rule

        if not discovered:
            return

        try:
            written = await self.store.upsert_many(discovered.values())
            logger.info("Ownership learned", rules=written)
        except StoreUnavailable as e:
            logger.warning("Ownership write-back skipped", error=str(e))
