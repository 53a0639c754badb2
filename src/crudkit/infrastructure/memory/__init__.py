"""In-memory reference backend."""

from .repository import InMemoryRepository

__all__ = ["InMemoryRepository"]
