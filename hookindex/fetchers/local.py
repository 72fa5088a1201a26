"""Local directories registered as sources."""

from __future__ import annotations

from pathlib import Path

from ..models import Source
from .base import FetchError, Fetcher, SourcePathError, resolve_subfolder


class LocalFolderFetcher(Fetcher):
    def supports(self, source: Source) -> bool:
        return source.type == "local-folder"

    def fetch(self, source: Source) -> Path:
        if not source.local_path:
            raise FetchError(f"Source '{source.name}' is local-folder but has no local_path configured")
        root = Path(source.local_path).expanduser()
        if not root.is_dir():
            raise SourcePathError(f"Local path does not exist: {root}")
        return resolve_subfolder(root, source)


__all__ = ["LocalFolderFetcher"]
