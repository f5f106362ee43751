"""
Assignment Planner - Turns a resolution into assignees or reviewers.

Workflow:
1. Resolve the changed artifacts to ranked owners
2. Drop handles that are malformed, unknown on the platform, or already
   requested
3. Fall back to the configured defaults when nobody is left
4. Record who the issue or pull request was routed to

Applying the plan (calling the platform) is left to the caller.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from owner_routing.models.assignment import IssueAssignment
from owner_routing.ownership.engine import ResolutionEngine
from owner_routing.ownership.errors import NoCandidates
from owner_routing.ownership.rules import ResolutionMethod, ResolutionResult
from owner_routing.security.validation import is_valid_github_username, is_valid_issue_number

logger = structlog.get_logger()

ExistenceCheck = Callable[[str], Awaitable[bool]]

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AssignmentKind(str, Enum):
    """What is being routed."""

    ISSUE = "issue"
    REVIEW = "review"


@dataclass
class AssignmentPlan:
    """Who to assign, and why."""

    issue_number: int
    kind: AssignmentKind
    handles: list[str] = field(default_factory=list)
    method: ResolutionMethod = ResolutionMethod.OWNERSHIP
    skipped: dict[str, str] = field(default_factory=dict)  # handle -> reason
    resolution: ResolutionResult | None = None
    recorded: bool = False

    @property
    def users(self) -> list[str]:
        return [h for h in self.handles if "/" not in h]

    @property
    def teams(self) -> list[str]:
        return [h for h in self.handles if "/" in h]

    def to_response(self) -> dict[str, Any]:
        """Convert to API response format."""
        return {
            "issue_number": self.issue_number,
            "kind": self.kind.value,
            "handles": list(self.handles),
            "users": self.users,
            "teams": self.teams,
            "method": self.method.value,
            "skipped": dict(self.skipped),
            "recorded": self.recorded,
            "resolution": self.resolution.to_response() if self.resolution else None,
        }


class AssignmentPlanner:
    """Plans issue assignment and review requests from ownership."""

    def __init__(
        self,
        resolver: ResolutionEngine,
        db: AsyncEngine | None = None,
        exists: ExistenceCheck | None = None,
        default_owners: list[str] | None = None,
        default_reviewers: list[str] | None = None,
        fallback_reviewers: list[str] | None = None,
    ):
        self.resolver = resolver
        self.exists = exists
        self.default_owners = list(default_owners or [])
        self.default_reviewers = list(default_reviewers or [])
        self.fallback_reviewers = list(fallback_reviewers or [])
        self._db = db
        self._sessions = (
            async_sessionmaker(db, expire_on_commit=False, class_=AsyncSession) if db else None
        )

    def _fallbacks(self, kind: AssignmentKind) -> list[str]:
        if kind == AssignmentKind.ISSUE:
            return self.default_owners
        # Default reviewers win; fallback reviewers only when none are configured
        return self.default_reviewers or self.fallback_reviewers

    async def _filter(
        self,
        handles: list[str],
        already: set[str],
        skipped: dict[str, str],
    ) -> list[str]:
        kept = []
        for handle in handles:
            handle = handle.strip().lstrip("@")
            if not handle or handle in kept:
                continue
            if handle.lower() in already:
                skipped[handle] = "already requested"
                continue
            if not is_valid_github_username(handle):
                logger.warning("Invalid handle format", handle=handle)
                skipped[handle] = "invalid handle"
                continue
            if self.exists is not None and not await self.exists(handle):
                logger.warning("Handle not found on platform", handle=handle)
                skipped[handle] = "not found"
                continue
            kept.append(handle)
        return kept

    async def plan(
        self,
        issue_number: int,
        artifacts: list[str],
        kind: AssignmentKind = AssignmentKind.ISSUE,
        current: list[str] | None = None,
        record: bool = True,
    ) -> AssignmentPlan:
        """
        Plan an assignment.

        Args:
            issue_number: Issue or pull request number
            artifacts: Changed paths or module tokens
            kind: Issue assignment or review request
            current: Handles already assigned or requested
            record: Persist the assignments

        Raises:
            ValueError: If the issue number is not a positive integer.
            NoCandidates: If neither ownership nor defaults yield anyone.
        """
        if not is_valid_issue_number(issue_number):
            raise ValueError(f"Invalid issue number: {issue_number!r}")
        issue_number = int(issue_number)

        result = await self.resolver.resolve(artifacts)
        already = {h.strip().lstrip("@").lower() for h in (current or [])}
        plan = AssignmentPlan(issue_number=issue_number, kind=kind, resolution=result)

        if result.method == ResolutionMethod.OWNERSHIP:
            plan.handles = await self._filter(result.handles, already, plan.skipped)

        if not plan.handles:
            logger.info("Using default assignees", issue_number=issue_number, kind=kind.value)
            plan.method = ResolutionMethod.DEFAULT
            plan.handles = await self._filter(self._fallbacks(kind), already, plan.skipped)

        if not plan.handles:
            raise NoCandidates(f"No assignee found for #{issue_number}")

        if record and self._sessions is not None:
            plan.recorded = await self._record(plan, artifacts)

        logger.info(
            "Assignment planned",
            issue_number=issue_number,
            kind=kind.value,
            handles=plan.handles,
            method=plan.method.value,
        )
        return plan

    async def _record(self, plan: AssignmentPlan, artifacts: list[str]) -> bool:
        insert = _INSERTS.get(self._db.dialect.name)
        if insert is None:
            logger.warning("Assignment recording unsupported", dialect=self._db.dialect.name)
            return False

        file_pattern = ",".join(artifacts)[:500] or None
        try:
            async with self._sessions() as session:
                for handle in plan.handles:
                    stmt = insert(IssueAssignment).values(
                        issue_number=plan.issue_number,
                        assigned_to=handle,
                        assignment_method=plan.method.value,
                        file_pattern=file_pattern,
                    )
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[IssueAssignment.issue_number, IssueAssignment.assigned_to],
                        set_={
                            "assignment_method": stmt.excluded.assignment_method,
                            "file_pattern": stmt.excluded.file_pattern,
                            "assigned_at": func.now(),
                        },
                    )
                    await session.execute(stmt)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to record assignment", issue_number=plan.issue_number, error=str(e))
            return False
        return True
