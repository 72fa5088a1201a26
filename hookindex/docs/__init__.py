"""Documentation page handlers and the first-match registry."""

from __future__ import annotations

from typing import Callable, List, Mapping, Optional

from .base import DocParser, split_frontmatter
from .handbooks import (
    AdminHandbookDocParser,
    BlockEditorDocParser,
    GeneralDocParser,
    PluginHandbookDocParser,
    RestApiDocParser,
    WpCliDocParser,
)
from ..models import DocumentPage

# Specialised handlers first; the general fallback always matches.
_BUILTIN_FACTORIES: List[Callable[[], DocParser]] = [
    BlockEditorDocParser,
    PluginHandbookDocParser,
    RestApiDocParser,
    WpCliDocParser,
    AdminHandbookDocParser,
    GeneralDocParser,
]


class DocParserRegistry:
    """Ordered handler list; the first handler whose ``can_parse`` holds wins."""

    def __init__(self, parsers: List[DocParser] | None = None) -> None:
        self.parsers: List[DocParser] = list(parsers) if parsers is not None else []

    @classmethod
    def default(cls) -> "DocParserRegistry":
        return cls([factory() for factory in _BUILTIN_FACTORIES])

    def select(
        self, file_path: str, frontmatter: Mapping[str, str], source_name: str
    ) -> Optional[DocParser]:
        for parser in self.parsers:
            if parser.can_parse(file_path, frontmatter, source_name):
                return parser
        return None

    def parse(self, content: str, file_path: str, source_name: str) -> Optional[DocumentPage]:
        """Parse ``content`` with the first matching handler, or return None."""
        frontmatter, _ = split_frontmatter(content)
        parser = self.select(file_path, frontmatter, source_name)
        if parser is None:
            return None
        return parser.parse(content, file_path)


__all__ = [
    "DocParser",
    "DocParserRegistry",
]
