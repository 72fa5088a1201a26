"""Shared constants for hookindex."""

from __future__ import annotations

from typing import Dict, Tuple

HOME_ENV_VAR = "HOOKINDEX_HOME"
DEFAULT_HOME_DIRNAME = ".hookindex"
CONFIG_FILENAME = "config.yml"
DB_FILENAME = "hooks.db"
CACHE_DIRNAME = "cache"

DYNAMIC_PLACEHOLDER = "{dynamic}"

STATUS_ACTIVE = "active"
STATUS_REMOVED = "removed"

CONTENT_TYPE_SOURCE = "source"
CONTENT_TYPE_DOCS = "docs"
CONTENT_TYPES: Tuple[str, ...] = (CONTENT_TYPE_SOURCE, CONTENT_TYPE_DOCS)

SOURCE_TYPES: Tuple[str, ...] = ("github-public", "github-private", "local-folder")

DOC_TYPES: Tuple[str, ...] = (
    "guide",
    "tutorial",
    "reference",
    "api",
    "howto",
    "faq",
    "general",
)

HOOK_TYPE_LABELS: Dict[str, str] = {
    "action": "Action hook",
    "filter": "Filter hook",
    "action_ref_array": "Action hook (ref array)",
    "filter_ref_array": "Filter hook (ref array)",
    "js_action": "JavaScript action hook",
    "js_filter": "JavaScript filter hook",
}

# Code window sizes (lines before, lines after) per record kind.
HOOK_WINDOW = (8, 4)
BLOCK_WINDOW = (4, 20)
API_WINDOW = (3, 3)
MAX_CONTEXT_CHARS = 2000

DEFAULT_DOC_LOOKBACK = 50
DEFAULT_PHP_SCAN_LIMIT = 2000
DEFAULT_JS_SCAN_LIMIT = 5000

DEFAULT_SEARCH_LIMIT = 20
MAX_SUGGESTIONS = 5

# bm25 column weights, aligned with the shadow table column order in stores.schema.
DEFAULT_HOOK_WEIGHTS: Tuple[float, ...] = (10.0, 5.0, 2.0, 3.0, 1.0, 1.0, 1.0)
DEFAULT_BLOCK_WEIGHTS: Tuple[float, ...] = (10.0, 5.0, 3.0, 1.0, 1.0, 0.0)
DEFAULT_API_WEIGHTS: Tuple[float, ...] = (10.0, 3.0, 5.0, 0.0)
DEFAULT_DOC_WEIGHTS: Tuple[float, ...] = (10.0, 5.0, 1.0, 2.0, 2.0)
