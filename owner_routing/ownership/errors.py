"""Errors raised while resolving ownership."""


class OwnershipError(Exception):
    """Base class for ownership resolution errors."""


class PatternError(OwnershipError):
    """An ownership pattern could not be compiled into a matcher."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid ownership pattern {pattern!r}: {reason}")


class StoreUnavailable(OwnershipError):
    """The ownership store could not be reached."""


class InvalidArtifact(OwnershipError):
    """An artifact token was rejected before resolution."""

    def __init__(self, artifact: str, reason: str):
        self.artifact = artifact
        self.reason = reason
        super().__init__(f"Invalid artifact {artifact!r}: {reason}")


class NoCandidates(OwnershipError):
    """Nobody could be routed: neither ownership data nor a default applied."""


class ConfigurationError(OwnershipError):
    """Fatal misconfiguration detected before any artifact is processed."""
