"""Ranked search, exact validation and lookups over an :class:`IndexStore`."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import SearchConfig
from ..constants import MAX_SUGGESTIONS, STATUS_ACTIVE, STATUS_REMOVED
from ..logging import get_logger
from .index_store import IndexStore
from .query import (
    QuerySyntaxError,
    any_match_expression,
    match_expression,
    name_fragments,
    prefix_terms,
    scoped_match_expression,
)

logger = get_logger("stores.search")

VALID = "VALID"
REMOVED = "REMOVED"
NOT_FOUND = "NOT_FOUND"

_BLOCK_SEARCH_COLUMNS = ("block_name", "block_title", "block_category")
_API_SEARCH_COLUMNS = ("api_call", "namespace", "method")


@dataclass
class ValidationResult:
    """Outcome of an exact hook-name check."""

    status: str
    name: str
    hooks: List[Dict[str, Any]] = field(default_factory=list)
    similar: List[Dict[str, Any]] = field(default_factory=list)
    removed_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _weights(values: Sequence[float]) -> str:
    return ", ".join(repr(float(value)) for value in values)


class SearchService:
    """Read-only queries; every call is a single statement over one snapshot."""

    def __init__(self, store: IndexStore, config: SearchConfig | None = None) -> None:
        self.store = store
        self.config = config or SearchConfig()

    # ------------------------------------------------------------------
    # Helpers

    def _query(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        try:
            rows = self.store.conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as exc:
            raise QuerySyntaxError(str(exc)) from exc
        return [dict(row) for row in rows]

    def _safe_query(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        try:
            return self._query(sql, params)
        except QuerySyntaxError as exc:
            logger.debug("Search query rejected: %s", exc)
            return []

    def _limit(self, limit: int | None) -> int:
        if limit is None or limit <= 0:
            return self.config.default_limit
        return limit

    # ------------------------------------------------------------------
    # Hooks

    def search_hooks(
        self,
        query: str,
        *,
        type: str | None = None,
        source: str | None = None,
        is_dynamic: bool | None = None,
        include_removed: bool = False,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Ranked full-text search over hooks; filters narrow, never replace, the match."""
        expression = match_expression(query)
        if expression is None:
            return []
        return self._safe_query(*self._hook_sql(expression, type, source, is_dynamic, include_removed, limit))

    def _hook_sql(
        self,
        expression: str,
        type: str | None,
        source: str | None,
        is_dynamic: bool | None,
        include_removed: bool,
        limit: int | None,
    ) -> tuple:
        sql = f"""
            SELECT h.*, s.name AS source_name,
              bm25(hooks_fts, {_weights(self.config.hook_weights)}) AS rank
            FROM hooks_fts
            JOIN hooks h ON h.id = hooks_fts.rowid
            JOIN sources s ON s.id = h.source_id
            WHERE hooks_fts MATCH ?
        """
        params: List[Any] = [expression]
        if not include_removed:
            sql += " AND h.status = ?"
            params.append(STATUS_ACTIVE)
        if type:
            sql += " AND h.type = ?"
            params.append(type)
        if source:
            sql += " AND s.name = ?"
            params.append(source)
        if is_dynamic is not None:
            sql += " AND h.is_dynamic = ?"
            params.append(1 if is_dynamic else 0)
        sql += " ORDER BY rank, h.id LIMIT ?"
        params.append(self._limit(limit))
        return sql, params

    def validate_hook(self, name: str) -> ValidationResult:
        """Exact, case-sensitive check of ``name`` with fuzzy fallback."""
        base = """
            SELECT h.*, s.name AS source_name FROM hooks h
            JOIN sources s ON s.id = h.source_id
            WHERE h.name = ? AND h.status = ?
            ORDER BY s.name, h.file_path, h.line_number
        """
        active = self._query(base, (name, STATUS_ACTIVE))
        if active:
            return ValidationResult(status=VALID, name=name, hooks=active)

        removed = self._query(base, (name, STATUS_REMOVED))
        if removed:
            removed_at = max((row["removed_at"] or "" for row in removed), default="") or None
            return ValidationResult(status=REMOVED, name=name, hooks=removed, removed_at=removed_at)

        return ValidationResult(status=NOT_FOUND, name=name, similar=self.suggest(name))

    def suggest(self, name: str, limit: int = MAX_SUGGESTIONS) -> List[Dict[str, Any]]:
        """Best-effort similar active hooks; any failure yields an empty list."""
        fragments = name_fragments(name)
        if not fragments:
            return []
        # All fragments first, then any fragment when the stricter query finds nothing.
        for expression in (" ".join(prefix_terms(fragments)), any_match_expression(fragments)):
            if not expression:
                continue
            rows = self._safe_query(
                f"""
                SELECT h.id, h.name, h.type, h.file_path, h.line_number, s.name AS source_name,
                  bm25(hooks_fts, {_weights(self.config.hook_weights)}) AS rank
                FROM hooks_fts
                JOIN hooks h ON h.id = hooks_fts.rowid
                JOIN sources s ON s.id = h.source_id
                WHERE hooks_fts MATCH ? AND h.status = ?
                ORDER BY rank, h.id LIMIT ?
                """,
                (expression, STATUS_ACTIVE, limit),
            )
            if rows:
                return rows
        return []

    def get_hook_context(self, id_or_name: int | str) -> Optional[Dict[str, Any]]:
        """Look a hook up by numeric id first, then by exact active name."""
        text = str(id_or_name).strip()
        if text.isdigit():
            rows = self._query(
                """
                SELECT h.*, s.name AS source_name FROM hooks h
                JOIN sources s ON s.id = h.source_id WHERE h.id = ?
                """,
                (int(text),),
            )
            if rows:
                return rows[0]
        rows = self._query(
            """
            SELECT h.*, s.name AS source_name FROM hooks h
            JOIN sources s ON s.id = h.source_id
            WHERE h.name = ? AND h.status = ?
            ORDER BY h.last_seen_at DESC, h.id DESC LIMIT 1
            """,
            (text, STATUS_ACTIVE),
        )
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Blocks and APIs

    def search_block_apis(self, query: str, *, limit: int | None = None) -> Dict[str, List[Dict[str, Any]]]:
        """Search block registrations and API usages on their structured columns only."""
        result: Dict[str, List[Dict[str, Any]]] = {"blocks": [], "apis": []}
        block_expression = scoped_match_expression(query, _BLOCK_SEARCH_COLUMNS)
        api_expression = scoped_match_expression(query, _API_SEARCH_COLUMNS)
        if block_expression is None or api_expression is None:
            return result
        limit = self._limit(limit)

        result["blocks"] = self._safe_query(
            f"""
            SELECT b.*, s.name AS source_name,
              bm25(block_registrations_fts, {_weights(self.config.block_weights)}) AS rank
            FROM block_registrations_fts
            JOIN block_registrations b ON b.id = block_registrations_fts.rowid
            JOIN sources s ON s.id = b.source_id
            WHERE block_registrations_fts MATCH ? AND b.status = ?
            ORDER BY rank, b.id LIMIT ?
            """,
            (block_expression, STATUS_ACTIVE, limit),
        )
        result["apis"] = self._safe_query(
            f"""
            SELECT a.*, s.name AS source_name,
              bm25(api_usages_fts, {_weights(self.config.api_weights)}) AS rank
            FROM api_usages_fts
            JOIN api_usages a ON a.id = api_usages_fts.rowid
            JOIN sources s ON s.id = a.source_id
            WHERE api_usages_fts MATCH ? AND a.status = ?
            ORDER BY rank, a.id LIMIT ?
            """,
            (api_expression, STATUS_ACTIVE, limit),
        )
        return result

    # ------------------------------------------------------------------
    # Docs

    def search_docs(
        self,
        query: str,
        *,
        doc_type: str | None = None,
        category: str | None = None,
        source: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        expression = match_expression(query)
        if expression is None:
            return []
        sql = f"""
            SELECT d.id, d.file_path, d.slug, d.title, d.doc_type, d.category, d.subcategory,
              d.description, s.name AS source_name,
              bm25(docs_fts, {_weights(self.config.doc_weights)}) AS rank
            FROM docs_fts
            JOIN docs d ON d.id = docs_fts.rowid
            JOIN sources s ON s.id = d.source_id
            WHERE docs_fts MATCH ? AND d.status = ?
        """
        params: List[Any] = [expression, STATUS_ACTIVE]
        sql, params = _doc_filters(sql, params, doc_type, category, source)
        sql += " ORDER BY rank, d.id LIMIT ?"
        params.append(self._limit(limit))
        return self._safe_query(sql, params)

    def list_docs(
        self,
        *,
        doc_type: str | None = None,
        category: str | None = None,
        source: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        sql = """
            SELECT d.id, d.file_path, d.slug, d.title, d.doc_type, d.category, d.subcategory,
              d.description, s.name AS source_name
            FROM docs d JOIN sources s ON s.id = d.source_id
            WHERE d.status = ?
        """
        params: List[Any] = [STATUS_ACTIVE]
        sql, params = _doc_filters(sql, params, doc_type, category, source)
        sql += " ORDER BY d.category, d.title, d.id LIMIT ?"
        params.append(limit if limit and limit > 0 else 100)
        return self._query(sql, params)

    def get_doc(self, id_or_slug: int | str) -> Optional[Dict[str, Any]]:
        """Look a page up by numeric id first, then by slug."""
        text = str(id_or_slug).strip()
        if text.isdigit():
            rows = self._query(
                "SELECT d.*, s.name AS source_name FROM docs d "
                "JOIN sources s ON s.id = d.source_id WHERE d.id = ?",
                (int(text),),
            )
            if rows:
                return rows[0]
        rows = self._query(
            """
            SELECT d.*, s.name AS source_name FROM docs d
            JOIN sources s ON s.id = d.source_id
            WHERE d.slug = ? AND d.status = ?
            ORDER BY d.last_seen_at DESC, d.id DESC LIMIT 1
            """,
            (text, STATUS_ACTIVE),
        )
        return rows[0] if rows else None

    def doc_category_counts(self) -> Dict[str, int]:
        rows = self._query(
            "SELECT COALESCE(category, 'uncategorized') AS category, COUNT(*) AS total "
            "FROM docs WHERE status = ? GROUP BY 1 ORDER BY 1",
            (STATUS_ACTIVE,),
        )
        return {row["category"]: row["total"] for row in rows}


def _doc_filters(
    sql: str,
    params: List[Any],
    doc_type: str | None,
    category: str | None,
    source: str | None,
) -> tuple:
    if doc_type:
        sql += " AND d.doc_type = ?"
        params.append(doc_type)
    if category:
        sql += " AND d.category = ?"
        params.append(category)
    if source:
        sql += " AND s.name = ?"
        params.append(source)
    return sql, params


__all__ = ["NOT_FOUND", "REMOVED", "SearchService", "VALID", "ValidationResult"]
