"""Code ownership model."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from owner_routing.models.base import Base, TimestampMixin
from owner_routing.ownership.rules import (
    OwnershipRule,
    PatternSyntax,
    RuleScope,
    RuleSource,
)


class CodeOwnership(Base, TimestampMixin):
    """A learned or declared (pattern, owner) association."""

    __tablename__ = "code_ownership"
    __table_args__ = (
        UniqueConstraint("file_pattern", "owner_name", name="unique_owner"),
        CheckConstraint("strength BETWEEN 0 AND 100", name="strength_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Code location
    file_pattern: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    pattern_syntax: Mapped[str] = mapped_column(
        String(10), default=PatternSyntax.GLOB.value, nullable=False
    )
    scope: Mapped[str] = mapped_column(String(10), default=RuleScope.FILE.value, nullable=False)

    # Owner information
    owner_type: Mapped[str] = mapped_column(String(20), nullable=False)  # user, team
    owner_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    canonical_handle: Mapped[str] = mapped_column(String(100), nullable=False)

    # Ownership strength (integer, 0-100)
    strength: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    source: Mapped[str] = mapped_column(String(20), default=RuleSource.STORE.value, nullable=False)

    # Metadata
    last_verified: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_rule(self) -> OwnershipRule:
        return OwnershipRule(
            pattern=self.file_pattern,
            owner_name=self.owner_name,
            canonical_handle=self.canonical_handle,
            strength=self.strength,
            scope=RuleScope(self.scope),
            source=RuleSource(self.source),
            last_verified=self.last_verified,
            syntax=PatternSyntax(self.pattern_syntax),
        )

    def __repr__(self) -> str:
        return f"<CodeOwnership {self.file_pattern} -> {self.owner_name} ({self.strength})>"
