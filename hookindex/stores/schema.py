"""Relational schema and per-kind table descriptors for the index database."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RecordTable:
    """A primary record table and its row-aligned FTS5 shadow table.

    ``key_columns`` together with ``source_id`` form the natural key used for
    upserts. ``fts_columns`` are mirrored into the shadow table in the order
    the bm25 weights expect.
    """

    name: str
    fts: str
    key_columns: Tuple[str, ...]
    columns: Tuple[str, ...]
    fts_columns: Tuple[str, ...]


HOOKS = RecordTable(
    name="hooks",
    fts="hooks_fts",
    key_columns=("file_path", "line_number", "name"),
    columns=(
        "file_path",
        "line_number",
        "name",
        "type",
        "params",
        "param_count",
        "docblock",
        "inferred_description",
        "function_context",
        "class_name",
        "code_before",
        "hook_line",
        "code_after",
        "is_dynamic",
        "content_hash",
    ),
    fts_columns=(
        "name",
        "type",
        "docblock",
        "inferred_description",
        "function_context",
        "class_name",
        "params",
    ),
)

BLOCKS = RecordTable(
    name="block_registrations",
    fts="block_registrations_fts",
    key_columns=("file_path", "line_number", "block_name"),
    columns=(
        "file_path",
        "line_number",
        "block_name",
        "registration_type",
        "block_title",
        "block_category",
        "block_attributes",
        "supports",
        "code_context",
        "content_hash",
    ),
    fts_columns=(
        "block_name",
        "block_title",
        "block_category",
        "block_attributes",
        "supports",
        "code_context",
    ),
)

APIS = RecordTable(
    name="api_usages",
    fts="api_usages_fts",
    key_columns=("file_path", "line_number", "api_call"),
    columns=(
        "file_path",
        "line_number",
        "api_call",
        "namespace",
        "method",
        "code_context",
        "content_hash",
    ),
    fts_columns=("api_call", "namespace", "method", "code_context"),
)

DOCS = RecordTable(
    name="docs",
    fts="docs_fts",
    key_columns=("file_path",),
    columns=(
        "file_path",
        "slug",
        "title",
        "doc_type",
        "content",
        "category",
        "subcategory",
        "description",
        "code_examples",
        "metadata",
        "content_hash",
    ),
    fts_columns=("title", "description", "content", "category", "subcategory"),
)

RECORD_TABLES: Tuple[RecordTable, ...] = (HOOKS, BLOCKS, APIS, DOCS)

# Lifecycle columns shared by every record table.
_LIFECYCLE = """
      status TEXT NOT NULL DEFAULT 'active',
      first_seen_at TEXT NOT NULL,
      last_seen_at TEXT NOT NULL,
      removed_at TEXT"""

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS sources (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      name TEXT UNIQUE NOT NULL,
      type TEXT NOT NULL,
      repo_url TEXT,
      subfolder TEXT,
      local_path TEXT,
      token_env_var TEXT,
      branch TEXT NOT NULL DEFAULT 'main',
      content_type TEXT NOT NULL DEFAULT 'source',
      enabled INTEGER NOT NULL DEFAULT 1,
      last_indexed_at TEXT
);

CREATE TABLE IF NOT EXISTS indexed_files (
      source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
      file_path TEXT NOT NULL,
      mtime REAL,
      content_hash TEXT,
      UNIQUE(source_id, file_path)
);

CREATE TABLE IF NOT EXISTS hooks (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
      file_path TEXT NOT NULL,
      line_number INTEGER NOT NULL,
      name TEXT NOT NULL,
      type TEXT NOT NULL,
      params TEXT,
      param_count INTEGER NOT NULL DEFAULT 0,
      docblock TEXT,
      inferred_description TEXT,
      function_context TEXT,
      class_name TEXT,
      code_before TEXT,
      hook_line TEXT,
      code_after TEXT,
      is_dynamic INTEGER NOT NULL DEFAULT 0,
      content_hash TEXT,{_LIFECYCLE},
      UNIQUE(source_id, file_path, line_number, name)
);
CREATE INDEX IF NOT EXISTS idx_hooks_name ON hooks(name);
CREATE INDEX IF NOT EXISTS idx_hooks_source_file ON hooks(source_id, file_path, status);

CREATE VIRTUAL TABLE IF NOT EXISTS hooks_fts USING fts5(
      name, type, docblock, inferred_description, function_context, class_name, params
);

CREATE TABLE IF NOT EXISTS block_registrations (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
      file_path TEXT NOT NULL,
      line_number INTEGER NOT NULL,
      block_name TEXT NOT NULL,
      registration_type TEXT NOT NULL,
      block_title TEXT,
      block_category TEXT,
      block_attributes TEXT,
      supports TEXT,
      code_context TEXT,
      content_hash TEXT,{_LIFECYCLE},
      UNIQUE(source_id, file_path, line_number, block_name)
);
CREATE INDEX IF NOT EXISTS idx_blocks_source_file ON block_registrations(source_id, file_path, status);

CREATE VIRTUAL TABLE IF NOT EXISTS block_registrations_fts USING fts5(
      block_name, block_title, block_category, block_attributes, supports, code_context
);

CREATE TABLE IF NOT EXISTS api_usages (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
      file_path TEXT NOT NULL,
      line_number INTEGER NOT NULL,
      api_call TEXT NOT NULL,
      namespace TEXT,
      method TEXT,
      code_context TEXT,
      content_hash TEXT,{_LIFECYCLE},
      UNIQUE(source_id, file_path, line_number, api_call)
);
CREATE INDEX IF NOT EXISTS idx_apis_source_file ON api_usages(source_id, file_path, status);

CREATE VIRTUAL TABLE IF NOT EXISTS api_usages_fts USING fts5(
      api_call, namespace, method, code_context
);

CREATE TABLE IF NOT EXISTS docs (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      source_id INTEGER NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
      file_path TEXT NOT NULL,
      slug TEXT NOT NULL,
      title TEXT NOT NULL,
      doc_type TEXT NOT NULL,
      content TEXT,
      category TEXT,
      subcategory TEXT,
      description TEXT,
      code_examples TEXT,
      metadata TEXT,
      content_hash TEXT,{_LIFECYCLE},
      UNIQUE(source_id, file_path)
);
CREATE INDEX IF NOT EXISTS idx_docs_slug ON docs(slug);

CREATE VIRTUAL TABLE IF NOT EXISTS docs_fts USING fts5(
      title, description, content, category, subcategory
);
"""


__all__ = ["APIS", "BLOCKS", "DOCS", "HOOKS", "RECORD_TABLES", "RecordTable", "SCHEMA_SQL"]
