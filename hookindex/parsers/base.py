"""Base class for declaration extraction engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Pattern, Sequence, Tuple

from ..constants import DEFAULT_DOC_LOOKBACK, HOOK_WINDOW, MAX_CONTEXT_CHARS
from ..logging import get_logger
from ..models import HookRecord, ParseResult
from .scanning import ArgumentScanner, Dialect, ExtractionError
from .utils import (
    code_window,
    content_hash,
    doc_comment,
    enclosing_scope,
    infer_description,
    line_number,
)

logger = get_logger("parsers")

_COMMENT_PREFIXES = ("*", "//", "/*", "#")


class CallSite:
    """One keyword match whose argument span balanced."""

    __slots__ = ("keyword", "offset", "line_index", "arguments", "span")

    def __init__(self, keyword: str, offset: int, line_index: int, span: str, arguments: List[str]):
        self.keyword = keyword
        self.offset = offset
        self.line_index = line_index
        self.span = span
        self.arguments = arguments


class DeclarationParser(ABC):
    """Contract for engines that turn one file's text into declaration records."""

    extensions: Tuple[str, ...] = ()
    hook_keywords: Dict[str, str] = {}
    function_pattern: Pattern[str]
    class_pattern: Pattern[str]

    def __init__(
        self,
        dialect: Dialect,
        *,
        scan_limit: int | None = None,
        doc_lookback: int = DEFAULT_DOC_LOOKBACK,
    ) -> None:
        self.scanner = ArgumentScanner(dialect, scan_limit=scan_limit)
        self.doc_lookback = doc_lookback

    def supports(self, path: str) -> bool:
        """Return True when this engine understands the file at ``path``."""
        return PurePosixPath(path).suffix.lower() in self.extensions

    @abstractmethod
    def parse(self, content: str, file_path: str) -> ParseResult:
        """Extract every declaration from ``content`` in source order."""

    # ------------------------------------------------------------------
    # Shared call-site machinery

    def iter_call_sites(self, content: str, pattern: Pattern[str]) -> Iterator[CallSite]:
        """Yield call sites of ``pattern`` whose argument spans balance.

        ``pattern`` must capture the keyword in group 1 and end right after
        the opening parenthesis. Matches inside comment lines or on function
        definitions are ignored; unbalanced spans are dropped.
        """
        for match in pattern.finditer(content):
            start = match.start(1)
            if inside_comment_line(content, start) or _is_definition(content, start):
                continue
            span = self.scanner.extract_span(content, match.end())
            if span is None:
                logger.debug("Unbalanced call to %s at offset %d skipped", match.group(1), start)
                continue
            try:
                arguments = self.scanner.split_arguments(span)
            except ExtractionError as exc:
                logger.debug("Could not split arguments of %s: %s", match.group(1), exc)
                continue
            yield CallSite(
                keyword=match.group(1),
                offset=start,
                line_index=line_number(content, start) - 1,
                span=span,
                arguments=arguments,
            )

    def extract_hooks(
        self, content: str, lines: Sequence[str], file_path: str, pattern: Pattern[str]
    ) -> List[HookRecord]:
        hooks: List[HookRecord] = []
        for site in self.iter_call_sites(content, pattern):
            record = self._build_hook(site, lines, file_path)
            if record is not None:
                hooks.append(record)
        return hooks

    def _build_hook(
        self, site: CallSite, lines: Sequence[str], file_path: str
    ) -> Optional[HookRecord]:
        if not site.arguments:
            return None
        try:
            name, is_dynamic = self.scanner.classify_name(site.arguments[0])
        except ExtractionError as exc:
            logger.debug("Dropped %s call in %s: %s", site.keyword, file_path, exc)
            return None

        hook_type = self.hook_keywords[site.keyword]
        params = [arg for arg in site.arguments[1:] if arg]
        params_text = ", ".join(params) if params else None
        before, after = HOOK_WINDOW
        window = code_window(lines, site.line_index, before, after)
        docblock = doc_comment(lines, site.line_index, self.doc_lookback) or None
        function = enclosing_scope(lines, site.line_index, self.function_pattern)
        class_name = enclosing_scope(lines, site.line_index, self.class_pattern)

        record = HookRecord(
            file_path=file_path,
            line_number=site.line_index + 1,
            name=name,
            type=hook_type,
            params=params_text,
            param_count=len(params),
            docblock=docblock,
            inferred_description=infer_description(
                name=name,
                type=hook_type,
                is_dynamic=is_dynamic,
                function=function,
                class_name=class_name,
                param_count=len(params),
            ),
            function_context=function,
            class_name=class_name,
            code_before=window.before or None,
            hook_line=window.line,
            code_after=window.after or None,
            is_dynamic=is_dynamic,
        )
        record.content_hash = content_hash(record.to_row())
        return record

    @staticmethod
    def context_text(lines: Sequence[str], index: int, window: Tuple[int, int]) -> str:
        before, after = window
        return code_window(lines, index, before, after).joined(MAX_CONTEXT_CHARS)


def inside_comment_line(content: str, offset: int) -> bool:
    line_start = content.rfind("\n", 0, offset) + 1
    prefix = content[line_start:offset].lstrip()
    return prefix.startswith(_COMMENT_PREFIXES)


def _is_definition(content: str, offset: int) -> bool:
    preceding = content[max(0, offset - 40) : offset].rstrip()
    return preceding.endswith("function") or preceding.endswith("function &")


__all__ = ["CallSite", "DeclarationParser", "inside_comment_line"]
