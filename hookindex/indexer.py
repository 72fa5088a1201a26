"""Incremental indexing of registered sources."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Set

from .config import ConfigurationError, HookIndexConfig, load_config
from .constants import CONTENT_TYPE_DOCS
from .docs import DocParserRegistry
from .fetchers import SourceFetcher
from .logging import get_logger
from .models import IndexStats, ParseResult, Source
from .parsers import DeclarationParser, build_parsers, select_parser
from .parsers.utils import text_hash
from .repo_scanner import DiscoveredFile, RepoScanner
from .stores import IndexStore, StorageError
from .stores.index_store import INSERTED, UPDATED
from .stores.schema import DOCS

logger = get_logger("indexer")

NO_SOURCES_MESSAGE = "No enabled sources found. Add a source first."


class FileError(RuntimeError):
    """Raised when one file cannot be read or stat'ed."""


class Indexer:
    """Walks sources, skips unchanged files and reconciles extraction output.

    Per-file failures are recorded and skipped; per-source failures (fetch
    errors included) are recorded and the next source continues.
    :class:`StorageError` always propagates.
    """

    def __init__(
        self,
        store: IndexStore,
        *,
        config: HookIndexConfig | None = None,
        fetcher: SourceFetcher | None = None,
        parsers: Sequence[DeclarationParser] | None = None,
        doc_registry: DocParserRegistry | None = None,
    ) -> None:
        self.store = store
        self.config = config or load_config()
        self.fetcher = fetcher or SourceFetcher.default(self.config.cache_dir)
        self.parsers = list(parsers) if parsers is not None else build_parsers(self.config.scanning)
        self.doc_registry = doc_registry or DocParserRegistry.default()
        self.scanner = RepoScanner(self.config.scanning.exclude_paths)

    def index_sources(self, source_name: str | None = None, force: bool = False) -> IndexStats:
        """Index every enabled source, or only ``source_name``."""
        stats = IndexStats()
        sources = self._select_sources(source_name)
        if not sources:
            stats.message = NO_SOURCES_MESSAGE
            return stats

        for source in sources:
            try:
                root = self.fetcher.fetch(source)
                logger.info("Indexing %s from %s (%s)", source.name, root, source.content_type)
                if source.content_type == CONTENT_TYPE_DOCS:
                    self.index_docs(source, root, force, stats)
                else:
                    self.index_code(source, root, force, stats)
                self.store.mark_source_indexed(int(source.id))
                stats.sources_processed += 1
            except StorageError:
                raise
            except Exception as exc:
                message = f'Error processing source "{source.name}": {exc}'
                logger.error(message)
                stats.errors.append(message)
        return stats

    def _select_sources(self, source_name: str | None) -> List[Source]:
        if source_name:
            source = self.store.get_source(source_name)
            if source is None:
                raise ConfigurationError(f"Source not found: {source_name}")
            if not source.enabled:
                raise ConfigurationError(f'Source "{source_name}" is disabled')
            return [source]
        return [source for source in self.store.list_sources() if source.enabled]

    # ------------------------------------------------------------------
    # Code sources

    def index_code(self, source: Source, root: Path, force: bool, stats: IndexStats) -> None:
        source_id = int(source.id)
        files = self.scanner.scan(root, source.content_type)
        logger.info("Found %d files to check in %s", len(files), source.name)

        for item in files:
            try:
                self._index_code_file(source_id, item, force, stats)
            except FileError as exc:
                message = f"Error indexing file {item.rel_path}: {exc}"
                logger.warning(message)
                stats.errors.append(message)

        self._sweep_deleted_code(source_id, {item.rel_path for item in files}, stats)

    def _index_code_file(
        self, source_id: int, item: DiscoveredFile, force: bool, stats: IndexStats
    ) -> None:
        mtime = _stat_mtime(item.path)
        cached = None if force else self.store.get_indexed_file(source_id, item.rel_path)
        if cached is not None and cached.mtime == mtime:
            logger.debug("Unchanged (mtime): %s", item.rel_path)
            stats.files_skipped += 1
            return

        content = _read_text(item.path)
        digest = text_hash(content)
        if cached is not None and cached.content_hash == digest:
            self.store.upsert_indexed_file(source_id, item.rel_path, mtime, digest)
            logger.debug("Unchanged (hash): %s", item.rel_path)
            stats.files_skipped += 1
            return

        parser = select_parser(self.parsers, item.rel_path)
        result = _extract(parser, content, item.rel_path) if parser is not None else ParseResult()
        outcome = self.store.reconcile_file(source_id, item.rel_path, result, mtime, digest)
        stats.hooks_inserted += outcome.hooks_inserted
        stats.hooks_updated += outcome.hooks_updated
        stats.hooks_unchanged += outcome.hooks_unchanged
        stats.hooks_removed += outcome.hooks_removed
        stats.blocks_indexed += outcome.blocks_indexed
        stats.blocks_removed += outcome.blocks_removed
        stats.apis_indexed += outcome.apis_indexed
        stats.apis_removed += outcome.apis_removed
        stats.files_processed += 1

    def _sweep_deleted_code(self, source_id: int, present: Set[str], stats: IndexStats) -> None:
        for rel_path in self.store.indexed_paths(source_id):
            if rel_path in present:
                continue
            outcome = self.store.reconcile_file(source_id, rel_path, ParseResult(), None, None)
            logger.info("File no longer present: %s", rel_path)
            stats.hooks_removed += outcome.hooks_removed
            stats.blocks_removed += outcome.blocks_removed
            stats.apis_removed += outcome.apis_removed

    # ------------------------------------------------------------------
    # Documentation sources

    def index_docs(self, source: Source, root: Path, force: bool, stats: IndexStats) -> None:
        source_id = int(source.id)
        files = self.scanner.scan(root, source.content_type)
        logger.info("Found %d doc files to check in %s", len(files), source.name)
        touched: Set[int] = set()

        for item in files:
            try:
                doc_id = self._index_doc_file(source, item, force, stats)
            except FileError as exc:
                message = f"Error indexing doc {item.rel_path}: {exc}"
                logger.warning(message)
                stats.errors.append(message)
                continue
            if doc_id is not None:
                touched.add(doc_id)
            else:
                # Cache hit: the page stays as it is.
                touched.update(self.store.active_ids(DOCS, source_id, item.rel_path))

        present = {item.rel_path for item in files}
        with self.store.transaction():
            for rel_path in self.store.indexed_paths(source_id):
                if rel_path not in present:
                    self.store.upsert_indexed_file(source_id, rel_path, None, None)
            stats.docs_removed += self.store.sweep_docs(source_id, touched)

    def _index_doc_file(
        self, source: Source, item: DiscoveredFile, force: bool, stats: IndexStats
    ) -> Optional[int]:
        source_id = int(source.id)
        mtime = _stat_mtime(item.path)
        cached = None if force else self.store.get_indexed_file(source_id, item.rel_path)
        if cached is not None and cached.mtime == mtime:
            stats.files_skipped += 1
            return None

        content = _read_text(item.path)
        digest = text_hash(content)
        if cached is not None and cached.content_hash == digest:
            self.store.upsert_indexed_file(source_id, item.rel_path, mtime, digest)
            stats.files_skipped += 1
            return None

        try:
            page = self.doc_registry.parse(content, item.rel_path, source.name)
        except Exception as exc:
            raise FileError(f"extraction failed: {exc}") from exc
        if page is None:
            self.store.upsert_indexed_file(source_id, item.rel_path, mtime, digest)
            stats.files_processed += 1
            return None

        with self.store.transaction():
            doc_id, action = self.store.upsert_doc(source_id, page.to_row())
            self.store.upsert_indexed_file(source_id, item.rel_path, mtime, digest)
        if action == INSERTED:
            stats.docs_inserted += 1
        elif action == UPDATED:
            stats.docs_updated += 1
        else:
            stats.docs_unchanged += 1
        stats.files_processed += 1
        return doc_id


def _extract(parser: DeclarationParser, content: str, rel_path: str) -> ParseResult:
    try:
        return parser.parse(content, rel_path)
    except Exception as exc:
        raise FileError(f"extraction failed: {exc}") from exc


def _stat_mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError as exc:
        raise FileError(f"stat failed: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileError(f"read failed: {exc}") from exc


__all__ = ["FileError", "Indexer", "NO_SOURCES_MESSAGE"]
