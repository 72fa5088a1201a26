"""Declaration extraction engines and dialect selection."""

from __future__ import annotations

from typing import Callable, FrozenSet, List, Optional, Sequence

from ..config import ScanConfig
from .base import DeclarationParser
from .javascript import JavaScriptParser
from .php import PhpParser
from .scanning import ArgumentScanner, ExtractionError

_BUILTIN_FACTORIES: dict[str, Callable[[ScanConfig], DeclarationParser]] = {
    "php": lambda cfg: PhpParser(scan_limit=cfg.php_scan_limit, doc_lookback=cfg.doc_lookback),
    "javascript": lambda cfg: JavaScriptParser(
        scan_limit=cfg.js_scan_limit, doc_lookback=cfg.doc_lookback
    ),
}

CODE_EXTENSIONS: FrozenSet[str] = frozenset(PhpParser.extensions + JavaScriptParser.extensions)


def build_parsers(config: ScanConfig | None = None) -> List[DeclarationParser]:
    """Instantiate every built-in engine with the configured scan bounds."""
    config = config or ScanConfig()
    return [factory(config) for factory in _BUILTIN_FACTORIES.values()]


def select_parser(parsers: Sequence[DeclarationParser], path: str) -> Optional[DeclarationParser]:
    """Return the first engine that supports ``path``."""
    for parser in parsers:
        if parser.supports(path):
            return parser
    return None


__all__ = [
    "ArgumentScanner",
    "CODE_EXTENSIONS",
    "DeclarationParser",
    "ExtractionError",
    "JavaScriptParser",
    "PhpParser",
    "build_parsers",
    "select_parser",
]
