"""Input validation for artifact tokens, handles and issue numbers."""

import re

from owner_routing.ownership.errors import InvalidArtifact
from owner_routing.ownership.patterns import normalize_path

# GitHub: max 39 chars, alphanumeric and hyphens, no leading/trailing hyphen
GITHUB_USERNAME = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?$")
GITHUB_TEAM_SLUG = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

MAX_ARTIFACT_LENGTH = 500


def validate_artifact(token: str) -> str:
    """
    Validate an artifact token and return it repository-relative.

    Raises:
        InvalidArtifact: On empty tokens, control characters, backslashes,
            or ``..`` path components.
    """
    if token is None or not token.strip():
        raise InvalidArtifact(token or "", "empty artifact")

    candidate = token.strip()
    if len(candidate) > MAX_ARTIFACT_LENGTH:
        raise InvalidArtifact(candidate, "artifact too long")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in candidate):
        raise InvalidArtifact(candidate, "contains control characters")
    if "\\" in candidate:
        raise InvalidArtifact(candidate, "contains backslashes")
    if ".." in candidate.split("/"):
        raise InvalidArtifact(candidate, "contains directory traversal")

    normalized = normalize_path(candidate)
    if not normalized:
        raise InvalidArtifact(candidate, "empty artifact")
    return normalized


def is_valid_github_username(handle: str) -> bool:
    """Check a user handle, or an ``org/team`` handle part by part."""
    if not handle:
        return False
    if "/" in handle:
        org, _, team = handle.partition("/")
        return bool(GITHUB_USERNAME.match(org)) and bool(GITHUB_TEAM_SLUG.match(team))
    return bool(GITHUB_USERNAME.match(handle))


def is_valid_issue_number(number: int | str) -> bool:
    """Issue numbers are positive integers."""
    if isinstance(number, bool):
        return False
    if isinstance(number, int):
        return number > 0
    return bool(re.fullmatch(r"[0-9]+", str(number))) and int(number) > 0
