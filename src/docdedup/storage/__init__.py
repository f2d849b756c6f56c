"""Document store implementations."""

from .sqlite_store import SQLiteDocumentStore

__all__ = ["SQLiteDocumentStore"]
