"""Builders for FTS5 ``MATCH`` expressions from free text."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

_SPECIAL_CHARS = re.compile(r"""['"(){}\[\]*:^~!]""")
_FRAGMENT_SPLIT = re.compile(r"[^0-9A-Za-z]+")


class QuerySyntaxError(ValueError):
    """Raised when SQLite rejects a MATCH expression built from user text."""


def sanitize_terms(text: str) -> List[str]:
    """Strip ranking-syntax characters and split on whitespace."""
    return _SPECIAL_CHARS.sub(" ", text or "").split()


def prefix_terms(terms: Sequence[str]) -> List[str]:
    return [f'"{term}"*' for term in terms]


def match_expression(text: str) -> Optional[str]:
    """Return an implicit-AND prefix query, or None when nothing is left."""
    terms = prefix_terms(sanitize_terms(text))
    return " ".join(terms) if terms else None


def any_match_expression(terms: Sequence[str]) -> Optional[str]:
    phrases = prefix_terms(terms)
    return " OR ".join(phrases) if phrases else None


def scoped_match_expression(text: str, columns: Sequence[str]) -> Optional[str]:
    """Restrict every term of ``text`` to ``columns`` with an FTS5 column filter."""
    terms = prefix_terms(sanitize_terms(text))
    if not terms:
        return None
    colspec = "{" + " ".join(columns) + "}"
    return " ".join(f"{colspec} : {term}" for term in terms)


def name_fragments(name: str) -> List[str]:
    """Split a symbol name into word-like fragments on non-alphanumerics."""
    return [part for part in _FRAGMENT_SPLIT.split(name or "") if part]


__all__ = [
    "QuerySyntaxError",
    "any_match_expression",
    "match_expression",
    "name_fragments",
    "prefix_terms",
    "sanitize_terms",
    "scoped_match_expression",
]
