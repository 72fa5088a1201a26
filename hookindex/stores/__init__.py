"""Persistence and search for the hook index."""

from .index_store import FileReconciliation, IndexStore, StorageError
from .query import QuerySyntaxError
from .search import NOT_FOUND, REMOVED, VALID, SearchService, ValidationResult

__all__ = [
    "FileReconciliation",
    "IndexStore",
    "NOT_FOUND",
    "QuerySyntaxError",
    "REMOVED",
    "SearchService",
    "StorageError",
    "VALID",
    "ValidationResult",
]
