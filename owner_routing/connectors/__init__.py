"""Connectors for version control and the hosting platform."""

from owner_routing.connectors.base import BaseConnector
from owner_routing.connectors.git import GitHistoryClient
from owner_routing.connectors.github import GitHubConnector, github_connector

__all__ = [
    "BaseConnector",
    "GitHistoryClient",
    "GitHubConnector",
    "github_connector",
]
