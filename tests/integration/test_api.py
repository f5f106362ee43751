"""Integration tests for API endpoints."""

import pytest


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, async_client):
        """Test health endpoint."""
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_readiness_check(self, async_client):
        response = await async_client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


class TestResolveAPI:
    """Tests for resolution endpoints."""

    @pytest.mark.asyncio
    async def test_resolve(self, async_client):
        response = await async_client.post(
            "/api/v1/ownership/resolve",
            json={"artifacts": ["src/ui/Main.x"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["handles"] == ["alice"]
        assert data["method"] == "ownership"
        assert data["candidates"] == [
            {"handle": "alice", "aggregate_score": 100, "contributing_rule_count": 1}
        ]

    @pytest.mark.asyncio
    async def test_resolve_rejects_bad_tokens(self, async_client):
        response = await async_client.post(
            "/api/v1/ownership/resolve",
            json={"artifacts": ["../secret", "docs/readme.md"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["rejected"] == ["../secret"]
        assert data["method"] == "default"
        assert data["handles"] == ["fallback-owner"]

    @pytest.mark.asyncio
    async def test_resolve_text(self, async_client):
        response = await async_client.post(
            "/api/v1/ownership/resolve/text",
            json={"text": "Layout breaks in src/ui/Main.x", "known_modules": []},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["artifacts"] == ["src/ui/Main.x"]
        assert data["handles"] == ["alice"]


class TestRulesAPI:
    """Tests for rule management endpoints."""

    @pytest.mark.asyncio
    async def test_put_and_match(self, async_client):
        response = await async_client.put(
            "/api/v1/ownership/rules",
            json={"pattern": "app/**", "owner_name": "@bob", "strength": 80},
        )

        assert response.status_code == 200
        assert response.json()["canonical_handle"] == "bob"

        response = await async_client.get(
            "/api/v1/ownership/rules/match",
            params={"artifact": "app/Main.x"},
        )

        assert response.status_code == 200
        rules = response.json()["rules"]
        assert [(r["canonical_handle"], r["strength"]) for r in rules] == [("bob", 80)]

    @pytest.mark.asyncio
    async def test_put_is_idempotent(self, async_client, store):
        for strength in (80, 80, 90):
            await async_client.put(
                "/api/v1/ownership/rules",
                json={"pattern": "src/ui/**", "owner_name": "alice", "strength": strength},
            )

        assert await store.count() == 1
        assert (await store.get("src/ui/**", "alice")).strength == 90

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strength", [101, -1, 50.5])
    async def test_put_rejects_bad_strength(self, async_client, strength):
        response = await async_client.put(
            "/api/v1/ownership/rules",
            json={"pattern": "src/**", "owner_name": "alice", "strength": strength},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_put_rejects_bad_pattern(self, async_client):
        response = await async_client.put(
            "/api/v1/ownership/rules",
            json={"pattern": "src/[abc", "owner_name": "alice"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_match_rejects_traversal(self, async_client):
        response = await async_client.get(
            "/api/v1/ownership/rules/match",
            params={"artifact": "../etc/passwd"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_match_module(self, async_client):
        await async_client.put(
            "/api/v1/ownership/rules",
            json={"pattern": "domain", "owner_name": "carol", "strength": 70, "scope": "module"},
        )

        response = await async_client.get(
            "/api/v1/ownership/rules/match",
            params={"artifact": "domain"},
        )

        assert [r["owner_name"] for r in response.json()["rules"]] == ["carol"]

    @pytest.mark.asyncio
    async def test_match_bare_file_name(self, async_client):
        await async_client.put(
            "/api/v1/ownership/rules",
            json={"pattern": "Dockerfile", "owner_name": "ops", "strength": 90},
        )

        response = await async_client.get(
            "/api/v1/ownership/rules/match",
            params={"artifact": "Dockerfile"},
        )

        assert [r["owner_name"] for r in response.json()["rules"]] == ["ops"]


class TestManifestAPI:
    """Tests for manifest sync."""

    @pytest.mark.asyncio
    async def test_sync(self, async_client, store):
        response = await async_client.post("/api/v1/ownership/manifest/sync")

        assert response.status_code == 200
        assert response.json()["rules_written"] == 1
        assert await store.count() == 1


class TestAssignmentsAPI:
    """Tests for assignment planning."""

    @pytest.mark.asyncio
    async def test_plan_from_text(self, async_client):
        response = await async_client.post(
            "/api/v1/ownership/assignments/plan",
            json={"issue_number": 42, "text": "Crash in src/ui/Main.x"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["handles"] == ["alice"]
        assert data["method"] == "ownership"
        assert data["recorded"] is True

    @pytest.mark.asyncio
    async def test_plan_rejects_bad_issue_number(self, async_client):
        response = await async_client.post(
            "/api/v1/ownership/assignments/plan",
            json={"issue_number": 0, "artifacts": ["src/ui/Main.x"]},
        )

        assert response.status_code == 422
