"""Base class for external collaborators."""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger()


class BaseConnector(ABC):
    """Base class for connectors.

    Each connector wraps one external system (version control, the
    hosting platform) behind a small async interface.
    """

    def __init__(self, name: str):
        self.name = name
        self._connected = False

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the external system."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release any held resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the connection is healthy."""
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected
