"""Pytest fixtures and configuration."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from owner_routing.config import Settings
from owner_routing.models.database import init_db
from owner_routing.ownership.engine import ResolutionEngine
from owner_routing.ownership.history import HistorySource
from owner_routing.ownership.manifest import ManifestSource
from owner_routing.ownership.ranker import Ranker
from owner_routing.ownership.rules import OwnershipRule, PatternSyntax, RuleScope
from owner_routing.ownership.store import OwnershipStore


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway repository and database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ownership.db'}",
        repo_root=tmp_path,
        default_owners=["fallback-owner"],
        default_reviewers=["lead-reviewer"],
        fallback_reviewers=["backup-reviewer"],
        log_format="console",
    )


# Test database engine
@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ownership.db'}")
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def store(db_engine) -> OwnershipStore:
    return OwnershipStore(db_engine)


@pytest.fixture
def make_rule():
    """Factory for rules with sensible defaults."""

    def _make(
        pattern: str,
        owner: str,
        strength: int = 100,
        scope: RuleScope = RuleScope.FILE,
        syntax: PatternSyntax = PatternSyntax.GLOB,
    ) -> OwnershipRule:
        return OwnershipRule(
            pattern=pattern,
            owner_name=owner,
            canonical_handle=owner,
            strength=strength,
            scope=scope,
            syntax=syntax,
        )

    return _make


@pytest.fixture
def manifest_from():
    """Parse manifest text into a source."""

    def _parse(text: str) -> ManifestSource:
        manifest = ManifestSource()
        manifest.parse(text)
        return manifest

    return _parse


# Mock version control
@pytest.fixture
def mock_vcs():
    """Version control double with no history."""
    vcs = MagicMock()
    vcs.author_commit_counts = AsyncMock(return_value=[])
    vcs.latest_email = AsyncMock(return_value=None)
    return vcs


@pytest.fixture
def history(mock_vcs) -> HistorySource:
    return HistorySource(mock_vcs)


@pytest.fixture
def api_engine(store) -> ResolutionEngine:
    """Resolution engine served by the API under test."""
    manifest = ManifestSource()
    manifest.parse("src/ui/** @alice\n")
    return ResolutionEngine(
        manifest=manifest,
        store=store,
        ranker=Ranker(),
        default_owners=["fallback-owner"],
    )


@pytest.fixture
async def async_client(db_engine, store, api_engine) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the database and engine overridden."""
    from owner_routing.api.v1 import ownership
    from owner_routing.main import app

    app.dependency_overrides[ownership.get_db_engine] = lambda: db_engine
    app.dependency_overrides[ownership.get_store] = lambda: store
    app.dependency_overrides[ownership.get_resolution_engine] = lambda: api_engine

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
