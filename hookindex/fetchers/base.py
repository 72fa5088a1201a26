"""Fetch-layer contract and error types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import Source


class FetchError(RuntimeError):
    """Raised when a source cannot be made available locally."""


class MissingCredentialError(FetchError):
    """A private source lacks its token reference or the variable is unset."""


class SourcePathError(FetchError):
    """A configured local path (or subfolder) does not exist."""


class Fetcher(ABC):
    """Hands the indexer a local directory for one source."""

    @abstractmethod
    def supports(self, source: Source) -> bool:
        """Return True when this fetcher handles ``source.type``."""

    @abstractmethod
    def fetch(self, source: Source) -> Path:
        """Return the directory to scan, raising :class:`FetchError` on failure."""


def resolve_subfolder(root: Path, source: Source) -> Path:
    if not source.subfolder:
        return root
    target = root / source.subfolder
    if not target.is_dir():
        raise SourcePathError(f"Subfolder '{source.subfolder}' not found in {root}")
    return target


__all__ = [
    "FetchError",
    "Fetcher",
    "MissingCredentialError",
    "SourcePathError",
    "resolve_subfolder",
]
