"""GitHub connector for identity verification."""

import time

import httpx
import structlog

from owner_routing.config import settings
from owner_routing.connectors.base import BaseConnector

logger = structlog.get_logger()


class GitHubConnector(BaseConnector):
    """Confirms that handles exist on GitHub.

    Existence checks are slow and rate limited, so results are cached for
    ``cache_ttl`` seconds. Resolution itself never calls this connector;
    only the assignment workflow does.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        cache_ttl: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__("github")
        self._token = token if token is not None else settings.github_token.get_secret_value()
        self._base_url = base_url or settings.github_api_url
        self._cache_ttl = cache_ttl if cache_ttl is not None else settings.identity_cache_ttl
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._cache: dict[str, tuple[bool, float]] = {}

    async def connect(self) -> None:
        """Connect to GitHub API."""
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        else:
            logger.warning("GitHub token not configured, using anonymous rate limits")

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=30.0,
            transport=self._transport,
        )
        self._connected = True
        logger.info("GitHub connector connected")

    async def disconnect(self) -> None:
        """Disconnect from GitHub API."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._connected = False

    async def health_check(self) -> bool:
        """Check GitHub API health."""
        if not self._client:
            return False
        try:
            response = await self._client.get("/rate_limit")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _cached(self, handle: str) -> bool | None:
        entry = self._cache.get(handle)
        if entry is None:
            return None
        exists, stored_at = entry
        if time.monotonic() - stored_at > self._cache_ttl:
            del self._cache[handle]
            return None
        return exists

    async def user_exists(self, handle: str) -> bool:
        """Check that a user (or ``org/team``) handle exists.

        Network failures count as "does not exist" and are not cached.
        """
        cached = self._cached(handle)
        if cached is not None:
            return cached

        if not self._client:
            await self.connect()

        if "/" in handle:
            org, team = handle.split("/", 1)
            url = f"/orgs/{org}/teams/{team}"
        else:
            url = f"/users/{handle}"

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.warning("GitHub identity check failed", handle=handle, error=str(e))
            return False

        if response.status_code not in (200, 404):
            logger.warning(
                "Unexpected GitHub response",
                handle=handle,
                status_code=response.status_code,
            )
            return False

        exists = response.status_code == 200
        self._cache[handle] = (exists, time.monotonic())
        return exists


# Singleton instance
github_connector = GitHubConnector()
