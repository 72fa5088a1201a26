"""SQLite-backed store for sources, declarations, docs and the file cache."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from ..config import ConfigurationError
from ..constants import STATUS_ACTIVE, STATUS_REMOVED
from ..logging import get_logger
from ..models import IndexedFile, ParseResult, Source
from .schema import APIS, BLOCKS, DOCS, HOOKS, RECORD_TABLES, SCHEMA_SQL, RecordTable

logger = get_logger("stores.index")

INSERTED = "inserted"
UPDATED = "updated"
UNCHANGED = "unchanged"

_SOURCE_COLUMNS = (
    "name",
    "type",
    "repo_url",
    "subfolder",
    "local_path",
    "token_env_var",
    "branch",
    "content_type",
    "enabled",
)


class StorageError(RuntimeError):
    """Raised when the database rejects a write unexpectedly."""


@dataclass
class FileReconciliation:
    """Outcome of reconciling one file's extraction output."""

    hooks_inserted: int = 0
    hooks_updated: int = 0
    hooks_unchanged: int = 0
    hooks_removed: int = 0
    blocks_indexed: int = 0
    blocks_removed: int = 0
    apis_indexed: int = 0
    apis_removed: int = 0


def utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class IndexStore:
    """Owns one SQLite connection in WAL mode.

    Construct it explicitly at the top of an invocation and close it on
    every exit path; it is also a context manager.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
            self._conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to open index database {self.path}: {exc}") from exc

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "IndexStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the body in one ``BEGIN IMMEDIATE`` transaction.

        Nested use joins the outer transaction. ``sqlite3.Error`` raised in
        the body is rolled back and re-raised as :class:`StorageError`.
        """
        if self._conn.in_transaction:
            yield self._conn
            return
        try:
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise StorageError(f"Could not start a write transaction: {exc}") from exc
        try:
            yield self._conn
        except sqlite3.Error as exc:
            self._rollback()
            raise StorageError(str(exc)) from exc
        except BaseException:
            self._rollback()
            raise
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback()
            raise StorageError(f"Commit failed: {exc}") from exc

    def _rollback(self) -> None:
        # SQLite may already have rolled back on its own for some errors.
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    # ------------------------------------------------------------------
    # Sources

    def add_source(self, source: Source) -> Source:
        if self.get_source(source.name) is not None:
            raise ConfigurationError(f"Source '{source.name}' already exists")
        values = [getattr(source, column) for column in _SOURCE_COLUMNS]
        values[_SOURCE_COLUMNS.index("enabled")] = 1 if source.enabled else 0
        placeholders = ", ".join("?" for _ in _SOURCE_COLUMNS)
        with self.transaction() as conn:
            cursor = conn.execute(
                f"INSERT INTO sources ({', '.join(_SOURCE_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
        source.id = int(cursor.lastrowid)
        logger.info("Registered source %s (%s)", source.name, source.type)
        return source

    def get_source(self, name: str) -> Optional[Source]:
        row = self._conn.execute("SELECT * FROM sources WHERE name = ?", (name,)).fetchone()
        return _source_from_row(row) if row else None

    def list_sources(self) -> List[Source]:
        rows = self._conn.execute("SELECT * FROM sources ORDER BY name").fetchall()
        return [_source_from_row(row) for row in rows]

    def remove_source(self, name: str) -> Optional[Source]:
        """Delete a source and every dependent row, shadow rows included."""
        source = self.get_source(name)
        if source is None:
            return None
        with self.transaction() as conn:
            for table in RECORD_TABLES:
                conn.execute(
                    f"DELETE FROM {table.fts} WHERE rowid IN "
                    f"(SELECT id FROM {table.name} WHERE source_id = ?)",
                    (source.id,),
                )
            conn.execute("DELETE FROM sources WHERE id = ?", (source.id,))
        logger.info("Removed source %s", name)
        return source

    def mark_source_indexed(self, source_id: int) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE sources SET last_indexed_at = ? WHERE id = ?", (utc_now(), source_id)
            )

    # ------------------------------------------------------------------
    # File cache

    def get_indexed_file(self, source_id: int, file_path: str) -> Optional[IndexedFile]:
        row = self._conn.execute(
            "SELECT * FROM indexed_files WHERE source_id = ? AND file_path = ?",
            (source_id, file_path),
        ).fetchone()
        if row is None:
            return None
        return IndexedFile(
            source_id=row["source_id"],
            file_path=row["file_path"],
            mtime=row["mtime"],
            content_hash=row["content_hash"],
        )

    def upsert_indexed_file(
        self, source_id: int, file_path: str, mtime: float | None, content_hash: str | None
    ) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO indexed_files (source_id, file_path, mtime, content_hash)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(source_id, file_path)
                DO UPDATE SET mtime = excluded.mtime, content_hash = excluded.content_hash
                """,
                (source_id, file_path, mtime, content_hash),
            )

    def indexed_paths(self, source_id: int) -> List[str]:
        """Paths with a live cache entry (mtime or hash recorded)."""
        rows = self._conn.execute(
            "SELECT file_path FROM indexed_files WHERE source_id = ? "
            "AND (mtime IS NOT NULL OR content_hash IS NOT NULL) ORDER BY file_path",
            (source_id,),
        ).fetchall()
        return [row["file_path"] for row in rows]

    # ------------------------------------------------------------------
    # Generic record lifecycle

    def upsert_record(
        self, table: RecordTable, source_id: int, row: Mapping[str, Any], now: str | None = None
    ) -> Tuple[int, str]:
        """Natural-key upsert; returns ``(id, inserted|updated|unchanged)``."""
        now = now or utc_now()
        key_sql = " AND ".join(f"{column} = ?" for column in table.key_columns)
        with self.transaction() as conn:
            existing = conn.execute(
                f"SELECT id, content_hash FROM {table.name} WHERE source_id = ? AND {key_sql}",
                (source_id, *(row[column] for column in table.key_columns)),
            ).fetchone()

            if existing is None:
                columns = ("source_id", *table.columns, "status", "first_seen_at", "last_seen_at")
                values = (source_id, *(row.get(c) for c in table.columns), STATUS_ACTIVE, now, now)
                cursor = conn.execute(
                    f"INSERT INTO {table.name} ({', '.join(columns)}) "
                    f"VALUES ({', '.join('?' for _ in columns)})",
                    values,
                )
                record_id = int(cursor.lastrowid)
                self._insert_shadow(conn, table, record_id, row)
                return record_id, INSERTED

            record_id = int(existing["id"])
            if existing["content_hash"] == row.get("content_hash"):
                conn.execute(
                    f"UPDATE {table.name} SET last_seen_at = ?, status = ?, removed_at = NULL "
                    "WHERE id = ?",
                    (now, STATUS_ACTIVE, record_id),
                )
                return record_id, UNCHANGED

            assignments = ", ".join(f"{column} = ?" for column in table.columns)
            conn.execute(
                f"UPDATE {table.name} SET {assignments}, status = ?, removed_at = NULL, "
                "last_seen_at = ? WHERE id = ?",
                (*(row.get(c) for c in table.columns), STATUS_ACTIVE, now, record_id),
            )
            conn.execute(f"DELETE FROM {table.fts} WHERE rowid = ?", (record_id,))
            self._insert_shadow(conn, table, record_id, row)
            return record_id, UPDATED

    @staticmethod
    def _insert_shadow(
        conn: sqlite3.Connection, table: RecordTable, record_id: int, row: Mapping[str, Any]
    ) -> None:
        conn.execute(
            f"INSERT INTO {table.fts} (rowid, {', '.join(table.fts_columns)}) "
            f"VALUES (?, {', '.join('?' for _ in table.fts_columns)})",
            (record_id, *(row.get(column) for column in table.fts_columns)),
        )

    def active_ids(self, table: RecordTable, source_id: int, file_path: str | None = None) -> Set[int]:
        sql = f"SELECT id FROM {table.name} WHERE source_id = ? AND status = ?"
        params: List[Any] = [source_id, STATUS_ACTIVE]
        if file_path is not None:
            sql += " AND file_path = ?"
            params.append(file_path)
        return {int(row["id"]) for row in self._conn.execute(sql, params).fetchall()}

    def sweep_removed(
        self,
        table: RecordTable,
        source_id: int,
        touched: Iterable[int],
        file_path: str | None = None,
        now: str | None = None,
    ) -> int:
        """Mark active rows of the file (or source) not in ``touched`` as removed."""
        now = now or utc_now()
        with self.transaction() as conn:
            stale = sorted(self.active_ids(table, source_id, file_path) - set(touched))
            conn.executemany(
                f"UPDATE {table.name} SET status = ?, removed_at = ? WHERE id = ?",
                [(STATUS_REMOVED, now, record_id) for record_id in stale],
            )
        return len(stale)

    def reconcile_file(
        self,
        source_id: int,
        file_path: str,
        result: ParseResult,
        mtime: float | None,
        content_hash: str | None,
    ) -> FileReconciliation:
        """Apply one file's extraction output and its cache row atomically."""
        outcome = FileReconciliation()
        now = utc_now()
        with self.transaction():
            touched: List[int] = []
            for hook in result.hooks:
                record_id, action = self.upsert_record(HOOKS, source_id, hook.to_row(), now)
                touched.append(record_id)
                if action == INSERTED:
                    outcome.hooks_inserted += 1
                elif action == UPDATED:
                    outcome.hooks_updated += 1
                else:
                    outcome.hooks_unchanged += 1
            outcome.hooks_removed = self.sweep_removed(HOOKS, source_id, touched, file_path, now)

            touched = []
            for block in result.blocks:
                record_id, action = self.upsert_record(BLOCKS, source_id, block.to_row(), now)
                touched.append(record_id)
                if action != UNCHANGED:
                    outcome.blocks_indexed += 1
            outcome.blocks_removed = self.sweep_removed(BLOCKS, source_id, touched, file_path, now)

            touched = []
            for usage in result.apis:
                record_id, action = self.upsert_record(APIS, source_id, usage.to_row(), now)
                touched.append(record_id)
                if action != UNCHANGED:
                    outcome.apis_indexed += 1
            outcome.apis_removed = self.sweep_removed(APIS, source_id, touched, file_path, now)

            self.upsert_indexed_file(source_id, file_path, mtime, content_hash)
        return outcome

    # ------------------------------------------------------------------
    # Docs

    def upsert_doc(self, source_id: int, row: Mapping[str, Any]) -> Tuple[int, str]:
        return self.upsert_record(DOCS, source_id, row)

    def sweep_docs(self, source_id: int, touched: Iterable[int]) -> int:
        return self.sweep_removed(DOCS, source_id, touched)

    # ------------------------------------------------------------------
    # Maintenance

    def rebuild_search_index(self) -> Dict[str, int]:
        """Truncate every shadow table and repopulate it from its primary table."""
        counts: Dict[str, int] = {}
        with self.transaction() as conn:
            for table in RECORD_TABLES:
                columns = ", ".join(table.fts_columns)
                conn.execute(f"DELETE FROM {table.fts}")
                conn.execute(
                    f"INSERT INTO {table.fts} (rowid, {columns}) "
                    f"SELECT id, {columns} FROM {table.name}"
                )
                counts[table.name] = int(
                    conn.execute(f"SELECT COUNT(*) FROM {table.fts}").fetchone()[0]
                )
        logger.info("Rebuilt search index: %s", counts)
        return counts

    def get_stats(self) -> Dict[str, Any]:
        conn = self._conn

        def count(sql: str, params: Sequence[Any] = ()) -> int:
            return int(conn.execute(sql, params).fetchone()[0])

        totals = {
            "sources": count("SELECT COUNT(*) FROM sources"),
            "active_hooks": count("SELECT COUNT(*) FROM hooks WHERE status = ?", (STATUS_ACTIVE,)),
            "removed_hooks": count("SELECT COUNT(*) FROM hooks WHERE status = ?", (STATUS_REMOVED,)),
            "block_registrations": count(
                "SELECT COUNT(*) FROM block_registrations WHERE status = ?", (STATUS_ACTIVE,)
            ),
            "api_usages": count("SELECT COUNT(*) FROM api_usages WHERE status = ?", (STATUS_ACTIVE,)),
            "docs": count("SELECT COUNT(*) FROM docs WHERE status = ?", (STATUS_ACTIVE,)),
        }
        per_source = [
            dict(row)
            for row in conn.execute(
                """
                SELECT s.name, s.content_type,
                  (SELECT COUNT(*) FROM hooks WHERE source_id = s.id AND status = 'active') AS hooks,
                  (SELECT COUNT(*) FROM hooks WHERE source_id = s.id AND status = 'removed') AS removed_hooks,
                  (SELECT COUNT(*) FROM block_registrations WHERE source_id = s.id AND status = 'active') AS blocks,
                  (SELECT COUNT(*) FROM api_usages WHERE source_id = s.id AND status = 'active') AS apis,
                  (SELECT COUNT(*) FROM docs WHERE source_id = s.id AND status = 'active') AS docs,
                  (SELECT COUNT(*) FROM indexed_files WHERE source_id = s.id) AS files
                FROM sources s ORDER BY s.name
                """
            ).fetchall()
        ]
        return {"totals": totals, "per_source": per_source}


def _source_from_row(row: sqlite3.Row) -> Source:
    return Source(
        id=row["id"],
        name=row["name"],
        type=row["type"],
        repo_url=row["repo_url"],
        subfolder=row["subfolder"],
        local_path=row["local_path"],
        token_env_var=row["token_env_var"],
        branch=row["branch"],
        content_type=row["content_type"],
        enabled=bool(row["enabled"]),
        last_indexed_at=row["last_indexed_at"],
    )


__all__ = [
    "FileReconciliation",
    "INSERTED",
    "IndexStore",
    "StorageError",
    "UNCHANGED",
    "UPDATED",
    "utc_now",
]
