"""Async database engine helpers."""

from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from owner_routing.config import settings
from owner_routing.models.base import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return create_async_engine(database_url, **options)


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine, created on first use."""
    return build_engine(settings.database_url, echo=settings.debug)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables."""
    # Register table metadata
    from owner_routing.models import assignment, ownership  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
