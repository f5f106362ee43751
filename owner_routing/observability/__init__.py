"""Observability helpers."""

from owner_routing.observability.logs import configure_logging

__all__ = ["configure_logging"]
