"""End-to-end tests for ownership resolution flows."""

import pytest

from owner_routing.ownership.engine import ResolutionEngine
from owner_routing.ownership.history import HistorySource
from owner_routing.ownership.ranker import Ranker
from owner_routing.ownership.rules import PatternSyntax, ResolutionMethod, RuleScope
from owner_routing.ownership.service import build_engine, sync_manifest


class TestResolutionScenarios:
    """Full resolution flows over a real store."""

    @pytest.mark.asyncio
    async def test_manifest_owner(self, store, manifest_from):
        """A manifest declaration gives its owner full strength."""
        engine = ResolutionEngine(manifest=manifest_from("src/ui/** @alice\n"), store=store)

        result = await engine.resolve(["src/ui/Main.x"])

        assert result.handles == ["alice"]
        assert result.candidates[0].aggregate_score == 100
        assert result.method == ResolutionMethod.OWNERSHIP

    @pytest.mark.asyncio
    async def test_store_regex_owner(self, store, make_rule):
        """A legacy regex row answers when there is no manifest."""
        await store.upsert(make_rule("app/.*", "bob", 80, syntax=PatternSyntax.REGEX))
        engine = ResolutionEngine(store=store)

        result = await engine.resolve(["app/Main.x"])

        assert result.handles == ["bob"]
        assert result.candidates[0].aggregate_score == 80

    @pytest.mark.asyncio
    async def test_module_owner_gets_fixed_points(self, store, make_rule):
        """A module match is worth 50 points whatever the stored strength."""
        await store.upsert(make_rule("domain", "carol", 90, scope=RuleScope.MODULE))
        await store.upsert(make_rule("core/**", "carol", 5))
        engine = ResolutionEngine(store=store, write_back=False)

        result = await engine.resolve(["domain", "core/Util.x"])

        assert result.handles == ["carol"]
        assert result.candidates[0].aggregate_score == 55

    @pytest.mark.asyncio
    async def test_scores_add_across_artifacts(self, store, make_rule):
        """Two files owned by the same person add up past the threshold."""
        await store.upsert(make_rule("/a/**", "dave", 30))
        await store.upsert(make_rule("/b/**", "dave", 25))
        await store.upsert(make_rule("/c/**", "dave", 50))
        engine = ResolutionEngine(store=store, default_owners=["fallback-owner"])

        combined = await engine.resolve(["a/1.x", "b/1.x"])
        single = await engine.resolve(["c/1.x"])

        assert combined.handles == ["dave"]
        assert combined.candidates[0].aggregate_score == 55
        assert single.handles == ["fallback-owner"]
        assert single.method == ResolutionMethod.DEFAULT

    @pytest.mark.asyncio
    async def test_additive_store_strengths(self, store, make_rule):
        await store.upsert(make_rule("/a1/**", "bob", 40))
        await store.upsert(make_rule("/a2/**", "bob", 30))
        engine = ResolutionEngine(store=store)

        result = await engine.resolve(["a1/x.py", "a2/y.py"])

        assert result.candidates[0].aggregate_score == 70

    @pytest.mark.asyncio
    async def test_history_owners(self, store, mock_vcs):
        """Committers receive 50 points each, ties in discovery order."""
        mock_vcs.author_commit_counts.return_value = [("erin", 4), ("frank", 4)]
        engine = ResolutionEngine(
            store=store,
            history=HistorySource(mock_vcs),
            ranker=Ranker(min_score=0),
        )

        result = await engine.resolve(["src/feature/Login.x"])

        assert [(c.canonical_handle, c.aggregate_score) for c in result.candidates] == [
            ("erin", 50),
            ("frank", 50),
        ]

    @pytest.mark.asyncio
    async def test_history_owners_alone_do_not_pass_threshold(self, store, mock_vcs):
        mock_vcs.author_commit_counts.return_value = [("erin", 4), ("frank", 4)]
        engine = ResolutionEngine(
            store=store,
            history=HistorySource(mock_vcs),
            default_owners=["fallback-owner"],
        )

        result = await engine.resolve(["src/feature/Login.x"])

        assert result.method == ResolutionMethod.DEFAULT


class TestDeterminism:
    """Repeated resolution gives identical output."""

    @pytest.mark.asyncio
    async def test_same_request_same_result(self, store, make_rule, manifest_from):
        await store.upsert_many(
            [
                make_rule("src/**", "bob", 70),
                make_rule("src/**", "carol", 70),
                make_rule("lib/**", "dave", 60),
            ]
        )
        engine = ResolutionEngine(
            manifest=manifest_from("docs/** @alice @erin\n"),
            store=store,
            write_back=False,
        )
        request = ["src/a.py", "docs/guide.md", "lib/b.py"]

        first = await engine.resolve(request)
        second = await engine.resolve(request)

        assert first.to_response() == second.to_response()
        assert first.handles == ["alice", "erin", "bob"]


class TestLearning:
    """Resolution results feed the store."""

    @pytest.mark.asyncio
    async def test_history_discovery_answers_next_time(self, store, mock_vcs):
        mock_vcs.author_commit_counts.return_value = [("erin", 2)]
        engine = ResolutionEngine(store=store, history=HistorySource(mock_vcs))

        await engine.resolve(["src/a.py"])
        mock_vcs.author_commit_counts.reset_mock()
        await engine.resolve(["src/a.py"])

        mock_vcs.author_commit_counts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_synced_manifest_serves_store_only_engine(self, test_settings, store):
        (test_settings.repo_root / "CODEOWNERS").write_text("src/ui/** @alice\n")
        manifest_engine = build_engine(test_settings)
        await sync_manifest(manifest_engine.manifest, store)

        result = await ResolutionEngine(store=store).resolve(["src/ui/Main.x"])

        assert result.handles == ["alice"]
        assert result.candidates[0].aggregate_score == 100
