"""Unit tests for the ownership store."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine

from owner_routing.ownership.errors import StoreUnavailable
from owner_routing.ownership.rules import PatternSyntax, RuleScope
from owner_routing.ownership.store import OwnershipStore


class TestUpsert:
    """Tests for keyed upserts."""

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, store, make_rule):
        """Test that repeated upserts converge on one row with the latest strength."""
        await store.upsert(make_rule("src/ui/**", "alice", 80))
        await store.upsert(make_rule("src/ui/**", "alice", 80))
        await store.upsert(make_rule("src/ui/**", "alice", 90))

        assert await store.count() == 1
        rule = await store.get("src/ui/**", "alice")
        assert rule.strength == 90

    @pytest.mark.asyncio
    async def test_distinct_owners_are_distinct_rows(self, store, make_rule):
        await store.upsert_many(
            [
                make_rule("src/ui/**", "alice", 80),
                make_rule("src/ui/**", "bob", 60),
            ]
        )

        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_upsert_many_empty(self, store):
        assert await store.upsert_many([]) == 0

    @pytest.mark.asyncio
    async def test_upsert_unavailable_raises(self, tmp_path, make_rule):
        """Test that writes to an unreachable store raise StoreUnavailable."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")
        store = OwnershipStore(engine)

        with pytest.raises(StoreUnavailable):
            await store.upsert(make_rule("src/**", "alice"))

        await engine.dispose()


class TestQueryByArtifact:
    """Tests for file-scoped lookups."""

    @pytest.mark.asyncio
    async def test_strongest_first(self, store, make_rule):
        await store.upsert_many(
            [
                make_rule("src/**", "bob", 40),
                make_rule("src/ui/**", "alice", 90),
                make_rule("docs/**", "carol", 100),
            ]
        )

        pairs = await store.query_by_artifact("src/ui/Main.x")

        assert pairs == [("alice", 90), ("bob", 40)]

    @pytest.mark.asyncio
    async def test_regex_rows(self, store, make_rule):
        """Test that legacy regex rows are searched as regular expressions."""
        await store.upsert(make_rule("app/.*", "bob", 80, syntax=PatternSyntax.REGEX))

        assert await store.query_by_artifact("app/Main.x") == [("bob", 80)]
        assert await store.query_by_artifact("core/Main.x") == []

    @pytest.mark.asyncio
    async def test_results_are_capped(self, db_engine, make_rule):
        store = OwnershipStore(db_engine, query_limit=2)
        await store.upsert_many(
            [make_rule("src/**", f"owner{i}", 10 * i) for i in range(1, 5)]
        )

        pairs = await store.query_by_artifact("src/a.py")

        assert pairs == [("owner4", 40), ("owner3", 30)]

    @pytest.mark.asyncio
    async def test_malformed_stored_pattern_is_skipped(self, store, make_rule):
        await store.upsert_many(
            [
                make_rule("src/[abc", "broken", 100),
                make_rule("src/**", "alice", 70),
            ]
        )

        assert await store.query_by_artifact("src/a.py") == [("alice", 70)]

    @pytest.mark.asyncio
    async def test_unconvertible_row_is_skipped(self, store, db_engine, make_rule):
        """Test that one row with unknown enum values does not hide the rest."""
        await store.upsert_many(
            [
                make_rule("src/**", "legacy", 90),
                make_rule("src/**", "alice", 70),
            ]
        )
        async with db_engine.begin() as conn:
            await conn.execute(
                text("UPDATE code_ownership SET pattern_syntax = 'bogus' WHERE owner_name = 'legacy'")
            )

        assert await store.query_by_artifact("src/a.py") == [("alice", 70)]

    @pytest.mark.asyncio
    async def test_module_rules_are_not_file_matches(self, store, make_rule):
        await store.upsert(make_rule("domain", "carol", 90, scope=RuleScope.MODULE))

        assert await store.query_by_artifact("domain/Model.kt") == []

    @pytest.mark.asyncio
    async def test_unavailable_store_returns_empty(self, tmp_path):
        """Test that an unreachable store reads as empty."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")
        store = OwnershipStore(engine)

        assert await store.query_by_artifact("src/a.py") == []
        assert await store.query_by_module("domain") == []
        assert await store.ping() is False

        await engine.dispose()

    @pytest.mark.asyncio
    async def test_keyed_reads_raise_when_unavailable(self, tmp_path):
        """Test that get and count report an unreachable store as StoreUnavailable."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")
        store = OwnershipStore(engine)

        with pytest.raises(StoreUnavailable):
            await store.get("src/**", "alice")
        with pytest.raises(StoreUnavailable):
            await store.count()

        await engine.dispose()


class TestQueryByModule:
    """Tests for module-scoped lookups."""

    @pytest.mark.asyncio
    async def test_module_rule(self, store, make_rule):
        await store.upsert(make_rule("domain", "carol", 90, scope=RuleScope.MODULE))

        assert await store.query_by_module("domain") == [("carol", 90)]
        assert await store.query_by_module("data") == []

    @pytest.mark.asyncio
    async def test_file_rule_covering_module_directory(self, store, make_rule):
        await store.upsert(make_rule("/network/**", "dan", 60))

        assert await store.query_by_module("network") == [("dan", 60)]


@pytest.mark.asyncio
async def test_ping(store):
    assert await store.ping() is True


class TestTableConstraints:
    """Tests for constraints enforced by the table itself."""

    @pytest.mark.asyncio
    async def test_strength_out_of_range_is_rejected(self, store, db_engine, make_rule):
        await store.upsert(make_rule("src/**", "alice", 70))

        with pytest.raises(IntegrityError):
            async with db_engine.begin() as conn:
                await conn.execute(text("UPDATE code_ownership SET strength = 150"))

        assert (await store.get("src/**", "alice")).strength == 70
