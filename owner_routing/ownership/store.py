"""
Ownership Store - Persistent (pattern, owner) rules.

Rows are keyed by (file_pattern, owner_name). Writes go through the
database's native INSERT ... ON CONFLICT DO UPDATE so concurrent writers
converge on a single row per key.
"""

from collections.abc import Iterable

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from owner_routing.models.ownership import CodeOwnership
from owner_routing.ownership.errors import ConfigurationError, StoreUnavailable
from owner_routing.ownership.patterns import PatternCompiler, pattern_compiler
from owner_routing.ownership.rules import OwnershipRule, RuleScope

logger = structlog.get_logger()

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class OwnershipStore:
    """Keyed collection of ownership rules backed by SQLAlchemy."""

    def __init__(
        self,
        engine: AsyncEngine,
        compiler: PatternCompiler | None = None,
        query_limit: int = 5,
    ):
        if engine.dialect.name not in _INSERTS:
            raise ConfigurationError(
                f"Unsupported database dialect for ownership store: {engine.dialect.name}"
            )
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        self._compiler = compiler or pattern_compiler
        self._query_limit = query_limit

    def _upsert_statement(self, rule: OwnershipRule):
        insert = _INSERTS[self._engine.dialect.name]
        stmt = insert(CodeOwnership).values(
            file_pattern=rule.pattern,
            pattern_syntax=rule.syntax.value,
            scope=rule.scope.value,
            owner_type=rule.owner_type.value,
            owner_name=rule.owner_name,
            canonical_handle=rule.canonical_handle,
            strength=rule.strength,
            source=rule.source.value,
            last_verified=rule.last_verified,
        )
        return stmt.on_conflict_do_update(
            index_elements=[CodeOwnership.file_pattern, CodeOwnership.owner_name],
            set_={
                "strength": stmt.excluded.strength,
                "last_verified": stmt.excluded.last_verified,
                "canonical_handle": stmt.excluded.canonical_handle,
                "updated_at": func.now(),
            },
        )

    async def upsert(self, rule: OwnershipRule) -> None:
        """
        Insert a rule or refresh the existing row with the same key.

        Raises:
            StoreUnavailable: If the backing store cannot be reached.
        """
        await self.upsert_many([rule])

    async def upsert_many(self, rules: Iterable[OwnershipRule]) -> int:
        """Upsert rules one statement per row; returns the number written."""
        rules = list(rules)
        if not rules:
            return 0

        try:
            async with self._sessions() as session:
                for rule in rules:
                    await session.execute(self._upsert_statement(rule))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Ownership upsert failed", rules=len(rules), error=str(e))
            raise StoreUnavailable(str(e)) from e

        logger.debug("Ownership rules stored", count=len(rules))
        return len(rules)

    async def _load(self, scope: RuleScope | None = None) -> list[OwnershipRule]:
        try:
            async with self._sessions() as session:
                stmt = select(CodeOwnership).order_by(
                    CodeOwnership.strength.desc(),
                    CodeOwnership.id,
                )
                if scope is not None:
                    stmt = stmt.where(CodeOwnership.scope == scope.value)
                result = await session.execute(stmt)
                rows = list(result.scalars())
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(str(e)) from e

        rules = []
        for row in rows:
            try:
                rules.append(row.to_rule())
            except ValueError as e:
                logger.warning(
                    "Skipping invalid ownership row",
                    pattern=row.file_pattern,
                    owner=row.owner_name,
                    error=str(e),
                )
        return rules

    def _matches(self, rule: OwnershipRule, path: str) -> bool:
        matcher = self._compiler.try_compile(rule.pattern, rule.syntax)
        return matcher is not None and matcher.matches(path)

    async def rules_for_artifact(self, artifact: str) -> list[OwnershipRule]:
        """File-scoped rules whose pattern covers the artifact, strongest first."""
        try:
            rules = await self._load(RuleScope.FILE)
        except StoreUnavailable as e:
            logger.warning("Ownership store unavailable", artifact=artifact, error=str(e))
            return []

        matched = [rule for rule in rules if self._matches(rule, artifact)]
        return matched[: self._query_limit]

    async def query_by_artifact(self, artifact: str) -> list[tuple[str, int]]:
        """(canonical_handle, strength) pairs for a file path, strongest first."""
        rules = await self.rules_for_artifact(artifact)
        return [(rule.canonical_handle, rule.strength) for rule in rules]

    async def rules_for_module(self, module: str) -> list[OwnershipRule]:
        """Module-scoped rules named after the module, plus file rules covering its directory."""
        try:
            rules = await self._load()
        except StoreUnavailable as e:
            logger.warning("Ownership store unavailable", module=module, error=str(e))
            return []

        directory = f"{module}/"
        matched = [
            rule
            for rule in rules
            if (rule.scope == RuleScope.MODULE and rule.pattern == module)
            or (rule.scope == RuleScope.FILE and self._matches(rule, directory))
        ]
        return matched[: self._query_limit]

    async def query_by_module(self, module: str) -> list[tuple[str, int]]:
        rules = await self.rules_for_module(module)
        return [(rule.canonical_handle, rule.strength) for rule in rules]

    async def get(self, pattern: str, owner_name: str) -> OwnershipRule | None:
        """Fetch a single rule by key."""
        try:
            async with self._sessions() as session:
                stmt = select(CodeOwnership).where(
                    CodeOwnership.file_pattern == pattern,
                    CodeOwnership.owner_name == owner_name,
                )
                row = (await session.execute(stmt)).scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(str(e)) from e
        return row.to_rule() if row else None

    async def count(self) -> int:
        try:
            async with self._sessions() as session:
                result = await session.execute(select(func.count()).select_from(CodeOwnership))
                return int(result.scalar_one())
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(str(e)) from e

    async def ping(self) -> bool:
        """Check connectivity."""
        try:
            async with self._sessions() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Ownership store ping failed", error=str(e))
            return False
