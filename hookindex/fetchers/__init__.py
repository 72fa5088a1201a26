"""Fetch collaborators that turn a registered source into a local directory."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..models import Source
from .base import FetchError, Fetcher, MissingCredentialError, SourcePathError
from .git import GitFetcher, Runner
from .local import LocalFolderFetcher


class SourceFetcher:
    """Dispatches a source to the first fetcher that supports its type."""

    def __init__(self, fetchers: Sequence[Fetcher]) -> None:
        self.fetchers: List[Fetcher] = list(fetchers)

    @classmethod
    def default(cls, cache_dir: Path, runner: Runner | None = None) -> "SourceFetcher":
        return cls([GitFetcher(cache_dir, runner=runner), LocalFolderFetcher()])

    def fetch(self, source: Source) -> Path:
        for fetcher in self.fetchers:
            if fetcher.supports(source):
                return fetcher.fetch(source)
        raise FetchError(f"Unknown source type: {source.type}")


__all__ = [
    "FetchError",
    "Fetcher",
    "GitFetcher",
    "LocalFolderFetcher",
    "MissingCredentialError",
    "SourceFetcher",
    "SourcePathError",
]
