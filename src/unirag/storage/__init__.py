"""In-memory storage for the most recently ingested file."""

from .store import FileStore, SingleFileStore

__all__ = ["FileStore", "SingleFileStore"]
