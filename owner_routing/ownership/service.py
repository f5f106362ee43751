"""
Wiring - Builds a resolution engine from settings.
"""

from pathlib import Path

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from owner_routing.config import Settings
from owner_routing.ownership.engine import ResolutionEngine
from owner_routing.ownership.errors import ConfigurationError
from owner_routing.ownership.extraction import discover_modules
from owner_routing.ownership.history import HistorySource, VersionControl
from owner_routing.ownership.identity import IdentityMapper
from owner_routing.ownership.manifest import ManifestSource
from owner_routing.ownership.ranker import Ranker
from owner_routing.ownership.store import OwnershipStore

logger = structlog.get_logger()


def build_identity(settings: Settings, vcs: VersionControl | None = None) -> IdentityMapper:
    """Identity mapper from the configured override table and commit emails."""
    email_lookup = vcs.latest_email if vcs is not None else None
    if settings.identity_map_file:
        return IdentityMapper.from_file(
            settings.identity_map_file,
            overrides=settings.identity_map,
            email_lookup=email_lookup,
            noreply_domain=settings.noreply_domain,
        )
    return IdentityMapper(
        overrides=settings.identity_map,
        email_lookup=email_lookup,
        noreply_domain=settings.noreply_domain,
    )


def load_manifest(settings: Settings, identity: IdentityMapper) -> ManifestSource | None:
    """
    Load the configured manifest, or discover one under the repository root.

    Returns None when no manifest exists.

    Raises:
        ConfigurationError: If a manifest exists but cannot be read.
    """
    path = settings.manifest_path
    if path is None:
        path = ManifestSource.discover(settings.repo_root)
        if path is None:
            logger.info("No ownership manifest found", repo_root=str(settings.repo_root))
            return None
    elif not Path(path).is_absolute():
        path = Path(settings.repo_root) / path

    manifest = ManifestSource(identity=identity)
    manifest.load(path)
    return manifest


def build_engine(
    settings: Settings,
    store: OwnershipStore | None = None,
    vcs: VersionControl | None = None,
) -> ResolutionEngine:
    """
    Assemble the engine.

    An unreadable manifest is only fatal when nothing else could answer.

    Raises:
        ConfigurationError: If no ownership source is usable.
    """
    identity = build_identity(settings, vcs)
    history = None
    if settings.history_enabled and vcs is not None:
        history = HistorySource(
            vcs,
            window_months=settings.history_window_months,
            max_candidates=settings.history_max_candidates,
        )

    try:
        manifest = load_manifest(settings, identity)
    except ConfigurationError as e:
        if store is None and history is None:
            raise
        logger.warning("Ownership manifest unusable, continuing without it", error=str(e))
        manifest = None

    if manifest is None and store is None and history is None:
        raise ConfigurationError("No ownership sources configured")

    engine = ResolutionEngine(
        manifest=manifest,
        store=store,
        history=history,
        identity=identity,
        ranker=Ranker(min_score=settings.min_score, max_candidates=settings.max_candidates),
        module_points=settings.module_match_points,
        history_points=settings.history_match_points,
        history_write_back_strength=settings.history_write_back_strength,
        default_owners=settings.default_owners,
        write_back=settings.write_back,
        concurrency=settings.resolution_concurrency,
    )
    logger.info(
        "Resolution engine ready",
        manifest=str(manifest.path) if manifest else None,
        store=store is not None,
        history=history is not None,
    )
    return engine


def build_store(settings: Settings, engine: AsyncEngine) -> OwnershipStore:
    return OwnershipStore(engine, query_limit=settings.store_query_limit)


def known_modules(settings: Settings) -> list[str]:
    """Configured module names plus top-level directories that carry a build marker."""
    modules = list(settings.known_modules)
    try:
        discovered = discover_modules(settings.repo_root, settings.module_markers)
    except OSError as e:
        logger.warning("Module discovery failed", error=str(e))
        discovered = []
    for module in discovered:
        if "/" not in module and module not in modules:
            modules.append(module)
    return modules


async def sync_manifest(manifest: ManifestSource, store: OwnershipStore) -> int:
    """Copy every manifest rule into the store; returns the number of rules written."""
    written = await store.upsert_many(manifest.rules)
    logger.info("Manifest synced", path=str(manifest.path) if manifest.path else None, rules=written)
    return written
