"""File discovery for code and documentation sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import FrozenSet, Iterable, Iterator, List, Sequence

from .constants import CONTENT_TYPE_DOCS
from .parsers import CODE_EXTENSIONS

_CODE_EXCLUDED_DIRS = {
    ".git",
    "node_modules",
    "vendor",
    "dist",
    "build",
    "tests",
    "test",
    "__tests__",
    "spec",
}

_DOC_EXCLUDED_DIRS = {
    ".git",
    "node_modules",
    "vendor",
    "images",
    "img",
    "assets",
    "static",
}

_DOC_EXCLUDED_FILES = {
    "changelog.md",
    "code_of_conduct.md",
    "contributing.md",
    "license.md",
}

DOC_EXTENSIONS: FrozenSet[str] = frozenset({".md"})


@dataclass
class IgnoreRule:
    """A gitignore-style pattern from the source .gitignore or ``scanning.exclude_paths``."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.is_file():
        return []
    text = path.read_text(encoding="utf-8", errors="replace")
    rules = (build_ignore_rule(line) for line in text.splitlines())
    return [rule for rule in rules if rule is not None]


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


@dataclass(frozen=True)
class DiscoveredFile:
    """A file found under a source root."""

    rel_path: str
    path: Path


class RepoScanner:
    """Enumerates the files of one source tree in a stable order."""

    def __init__(self, exclude_paths: Iterable[str] = ()) -> None:
        self.rules: List[IgnoreRule] = [
            rule for rule in (build_ignore_rule(p) for p in exclude_paths) if rule is not None
        ]

    def scan(self, root: str | Path, content_type: str) -> List[DiscoveredFile]:
        """Return the indexable files under ``root`` for ``content_type``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {root}")
        rules = _parse_gitignore(root_path / ".gitignore") + self.rules

        if content_type == CONTENT_TYPE_DOCS:
            found = self._iter_files(
                root_path, rules, _DOC_EXCLUDED_DIRS, DOC_EXTENSIONS, _DOC_EXCLUDED_FILES
            )
        else:
            found = self._iter_files(
                root_path, rules, _CODE_EXCLUDED_DIRS, CODE_EXTENSIONS, frozenset()
            )
        return sorted(found, key=lambda item: item.rel_path)

    def _iter_files(
        self,
        root: Path,
        rules: Sequence[IgnoreRule],
        excluded_dirs: Iterable[str],
        extensions: FrozenSet[str],
        excluded_files: Iterable[str],
    ) -> Iterator[DiscoveredFile]:
        excluded_dirs = set(excluded_dirs)
        excluded_files = set(excluded_files)
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept = []
            for name in dirnames:
                if name in excluded_dirs:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in filenames:
                if Path(filename).suffix.lower() not in extensions:
                    continue
                if filename.lower() in excluded_files:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield DiscoveredFile(rel_path=rel_path, path=current_dir / filename)


__all__ = ["DOC_EXTENSIONS", "DiscoveredFile", "IgnoreRule", "RepoScanner", "build_ignore_rule"]
