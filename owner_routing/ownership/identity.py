"""
Identity Mapper - Maps contributor names to platform handles.

Resolution order:
1. Explicit override table (case-insensitive on the raw name)
2. Handle embedded in the author's latest no-reply commit email
3. The raw name, unchanged

Mapping never fails; an unmapped name is still a usable handle.
"""

import json
import re
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from owner_routing.ownership.errors import ConfigurationError

logger = structlog.get_logger()

EmailLookup = Callable[[str], Awaitable[str | None]]

DEFAULT_NOREPLY_DOMAIN = "users.noreply.github.com"


class IdentityMapper:
    """Maps raw author names and manifest owner tokens to canonical handles."""

    def __init__(
        self,
        overrides: dict[str, str] | None = None,
        email_lookup: EmailLookup | None = None,
        noreply_domain: str = DEFAULT_NOREPLY_DOMAIN,
    ):
        self._overrides = {
            name.strip().lower(): handle.strip().lstrip("@")
            for name, handle in (overrides or {}).items()
            if name.strip() and handle.strip()
        }
        self._email_lookup = email_lookup
        self._noreply = re.compile(
            r"^(?:\d+\+)?(?P<handle>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)@"
            + re.escape(noreply_domain)
            + r"$",
            re.IGNORECASE,
        )
        self._cache: dict[str, str] = {}

    @classmethod
    def from_file(cls, path: Path, **kwargs) -> "IdentityMapper":
        """
        Build a mapper from a JSON object of ``{"Raw Name": "handle"}``.

        Entries passed via ``overrides`` take precedence over the file.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read identity map {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Identity map {path} must be a JSON object")

        overrides = {str(k): str(v) for k, v in data.items()}
        overrides.update(kwargs.pop("overrides", None) or {})
        return cls(overrides=overrides, **kwargs)

    def handle_from_email(self, email: str) -> str | None:
        """Extract the handle from a platform no-reply address."""
        match = self._noreply.match(email.strip())
        return match.group("handle") if match else None

    def _override(self, raw: str) -> str | None:
        key = raw.strip().lower()
        return self._overrides.get(key) or self._overrides.get(key.lstrip("@"))

    def normalize(self, token: str) -> str:
        """Canonical handle for a manifest owner token such as ``@alice``."""
        token = token.strip()
        override = self._override(token)
        if override:
            return override
        if "@" in token.lstrip("@"):
            handle = self.handle_from_email(token)
            if handle:
                return handle
            return token
        return token.lstrip("@")

    async def to_canonical_handle(self, raw: str) -> str:
        """Canonical handle for a raw author name from commit history."""
        if raw in self._cache:
            return self._cache[raw]

        handle = self._override(raw)

        if handle is None and "@" in raw:
            handle = self.handle_from_email(raw)

        if handle is None and self._email_lookup is not None:
            try:
                email = await self._email_lookup(raw)
            except Exception as e:
                logger.warning("Author email lookup failed", author=raw, error=str(e))
                email = None
            if email:
                handle = self.handle_from_email(email)

        handle = handle or raw
        self._cache[raw] = handle
        return handle
