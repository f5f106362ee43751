"""
History Source - Candidate owners from commit history.

A frequency ranking only: authors are ordered by how often they touched
a path recently, with no graded strength.
"""

from typing import Protocol

import structlog

logger = structlog.get_logger()


class VersionControl(Protocol):
    """The version-control queries history resolution depends on."""

    async def author_commit_counts(self, path: str, since: str) -> list[tuple[str, int]]: ...

    async def latest_email(self, author: str) -> str | None: ...


class HistorySource:
    """Ranks recent committers of a path."""

    def __init__(
        self,
        vcs: VersionControl,
        window_months: int = 6,
        max_candidates: int = 3,
    ):
        self._vcs = vcs
        self.window_months = window_months
        self.max_candidates = max_candidates

    async def owners_for_path(
        self,
        path: str,
        window_months: int | None = None,
        max_candidates: int | None = None,
    ) -> list[str]:
        """Raw author names, most commits first."""
        window = self.window_months if window_months is None else window_months
        limit = self.max_candidates if max_candidates is None else max_candidates

        try:
            counts = await self._vcs.author_commit_counts(path, f"{window} months ago")
        except Exception as e:
            logger.warning("History lookup failed", path=path, error=str(e))
            return []

        # Stable sort keeps the collaborator's order among equal counts
        ranked = sorted(counts, key=lambda pair: pair[1], reverse=True)
        authors = [author for author, count in ranked if author and count > 0][:limit]

        logger.debug("History owners", path=path, authors=authors)
        return authors
