"""Input validation."""

from owner_routing.security.validation import (
    is_valid_github_username,
    is_valid_issue_number,
    validate_artifact,
)

__all__ = [
    "is_valid_github_username",
    "is_valid_issue_number",
    "validate_artifact",
]
