"""In-memory connector package (fixtures, offline demos, tests)."""

from connectors.memory.memory_connector import InMemoryConnector

__all__ = ["InMemoryConnector"]
