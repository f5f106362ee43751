"""Issue assignment tracking model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from owner_routing.models.base import Base


class IssueAssignment(Base):
    """Records who an issue or pull request was routed to, and how."""

    __tablename__ = "issue_assignments"
    __table_args__ = (
        UniqueConstraint("issue_number", "assigned_to", name="unique_issue_assignee"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    assigned_to: Mapped[str] = mapped_column(String(100), nullable=False)
    assignment_method: Mapped[str] = mapped_column(String(50), nullable=False)  # ownership, default
    file_pattern: Mapped[str | None] = mapped_column(String(500), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<IssueAssignment #{self.issue_number} -> {self.assigned_to}>"
