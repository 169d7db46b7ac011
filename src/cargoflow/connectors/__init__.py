"""Integration dispatch to downstream export connectors."""

from .dispatcher import IntegrationDispatcher
from .implementations import DropzoneJsonConnector, InMemoryConnector

__all__ = ["DropzoneJsonConnector", "InMemoryConnector", "IntegrationDispatcher"]
