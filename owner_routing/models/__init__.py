"""SQLAlchemy models."""

from owner_routing.models.assignment import IssueAssignment
from owner_routing.models.base import Base
from owner_routing.models.ownership import CodeOwnership

__all__ = [
    "Base",
    "CodeOwnership",
    "IssueAssignment",
]
