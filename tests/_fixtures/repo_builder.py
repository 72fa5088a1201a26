"""Helper utilities for constructing temporary source trees in tests."""

from __future__ import annotations

import os
import textwrap
from pathlib import Path
from typing import Mapping

from hookindex.repo_scanner import DiscoveredFile, RepoScanner


class RepoBuilder:
    """Writes files into a throwaway tree with strictly increasing mtimes.

    Every write or touch stamps the file with a new modification time, so
    change detection never depends on filesystem timestamp resolution.
    """

    def __init__(self, tmp_path: Path, name: str = "repo") -> None:
        self.root = tmp_path / name
        self.root.mkdir(parents=True)
        self._clock = 1_700_000_000

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")
            self._stamp(path)

    def write_bytes(self, relative: str, data: bytes) -> None:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self._stamp(path)

    def touch(self, relative: str) -> None:
        """Bump the modification time without changing the contents."""
        self._stamp(self.root / relative)

    def remove(self, relative: str) -> None:
        (self.root / relative).unlink()

    def scan(self, content_type: str = "source") -> list[DiscoveredFile]:
        return RepoScanner().scan(self.root, content_type)

    def path(self) -> Path:
        """Return the tree root path."""
        return self.root

    def _stamp(self, path: Path) -> None:
        self._clock += 10
        os.utime(path, (self._clock, self._clock))


__all__ = ["RepoBuilder"]
