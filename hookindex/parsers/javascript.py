"""JavaScript/TypeScript hook, block-registration and ``wp.*`` API extraction."""

from __future__ import annotations

import json
import re
from bisect import bisect_right
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..constants import API_WINDOW, BLOCK_WINDOW, DEFAULT_DOC_LOOKBACK
from ..models import ApiUsage, BlockRegistration, ParseResult
from .base import CallSite, DeclarationParser, inside_comment_line
from .scanning import JS_DIALECT, ExtractionError
from .utils import JS_CLASS_PATTERN, JS_FUNCTION_PATTERN, content_hash, line_number

JS_HOOK_KEYWORDS = {
    "addAction": "js_action",
    "doAction": "js_action",
    "doActionAsync": "js_action",
    "addFilter": "js_filter",
    "applyFilters": "js_filter",
    "applyFiltersAsync": "js_filter",
}

JS_BLOCK_KEYWORDS = (
    "registerBlockType",
    "registerBlockVariation",
    "registerBlockStyle",
    "registerBlockCollection",
)

API_NAMESPACES = (
    "blocks",
    "editor",
    "blockEditor",
    "data",
    "element",
    "components",
    "plugins",
    "editPost",
    "editSite",
    "hooks",
    "i18n",
    "richText",
    "apiFetch",
    "url",
    "compose",
)

_HOOK_CALL = re.compile(
    r"\b(doActionAsync|applyFiltersAsync|addAction|doAction|addFilter|applyFilters)\s*\("
)
_BLOCK_CALL = re.compile(
    r"\b(registerBlockType|registerBlockVariation|registerBlockStyle|registerBlockCollection)\s*\("
)
_API_USAGE = re.compile(r"\bwp\.(" + "|".join(API_NAMESPACES) + r")\s*\.\s*(\w+)")
_TRANSLATION_CALL = re.compile(r"^(?:__|_x|_n|sprintf)\s*\(")


class JavaScriptParser(DeclarationParser):
    """Extracts ``@wordpress/hooks`` calls, block registrations and API usages."""

    extensions = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")
    hook_keywords = JS_HOOK_KEYWORDS
    function_pattern = JS_FUNCTION_PATTERN
    class_pattern = JS_CLASS_PATTERN

    def __init__(self, *, scan_limit: int | None = None, doc_lookback: int = DEFAULT_DOC_LOOKBACK):
        super().__init__(JS_DIALECT, scan_limit=scan_limit, doc_lookback=doc_lookback)

    def parse(self, content: str, file_path: str) -> ParseResult:
        lines = content.split("\n")
        result = ParseResult()
        result.hooks = self.extract_hooks(content, lines, file_path, _HOOK_CALL)
        for site in self.iter_call_sites(content, _BLOCK_CALL):
            block = self._build_block(site, lines, file_path)
            if block is not None:
                result.blocks.append(block)
        result.apis = self._extract_apis(content, lines, file_path)
        return result

    # ------------------------------------------------------------------
    # Block registrations

    def _build_block(
        self, site: CallSite, lines: Sequence[str], file_path: str
    ) -> Optional[BlockRegistration]:
        if not site.arguments:
            return None
        try:
            block_name = self.scanner.literal_value(site.arguments[0])
        except ExtractionError:
            return None
        if block_name is None:
            return None

        properties: Dict[str, str] = {}
        if len(site.arguments) > 1:
            properties = self.object_properties(site.arguments[1])
        title = self._string_value(properties.get("title"))
        category = self._string_value(properties.get("category"))
        attributes = _object_literal(properties.get("attributes"))
        supports = _object_literal(properties.get("supports"))
        line_text = lines[site.line_index] if site.line_index < len(lines) else ""

        block = BlockRegistration(
            file_path=file_path,
            line_number=site.line_index + 1,
            block_name=block_name,
            registration_type=site.keyword,
            block_title=title,
            block_category=category,
            block_attributes=attributes,
            supports=supports,
            code_context=self.context_text(lines, site.line_index, BLOCK_WINDOW),
        )
        block.content_hash = content_hash(
            {
                "name": block_name,
                "type": site.keyword,
                "params": json.dumps([title, category, attributes, supports]),
                "hook_line": line_text,
            }
        )
        return block

    def object_properties(self, expression: str) -> Dict[str, str]:
        """Return the top-level ``key: value`` pairs of an object literal.

        Shorthand properties, spreads and methods are ignored. Anything that
        is not a balanced object literal yields an empty mapping.
        """
        text = expression.strip()
        if not (text.startswith("{") and text.endswith("}")):
            return {}
        try:
            entries = self.scanner.split_top_level(text[1:-1], ",")
        except ExtractionError:
            return {}

        properties: Dict[str, str] = {}
        for entry in entries:
            try:
                parts = self.scanner.split_top_level(entry, ":")
            except ExtractionError:
                continue
            if len(parts) < 2:
                continue
            key = parts[0].strip().strip("'\"")
            if not key or key.startswith("..."):
                continue
            properties.setdefault(key, ":".join(parts[1:]).strip())
        return properties

    def _string_value(self, expression: Optional[str]) -> Optional[str]:
        if not expression:
            return None
        try:
            value = self.scanner.literal_value(expression)
        except ExtractionError:
            return None
        if value is not None:
            return value
        call = _TRANSLATION_CALL.match(expression)
        if not call:
            return None
        span = self.scanner.extract_span(expression, call.end())
        if span is None:
            return None
        try:
            arguments = self.scanner.split_arguments(span)
        except ExtractionError:
            return None
        return self.scanner.literal_value(arguments[0]) if arguments else None

    # ------------------------------------------------------------------
    # API usages

    def _extract_apis(self, content: str, lines: Sequence[str], file_path: str) -> List[ApiUsage]:
        apis: List[ApiUsage] = []
        seen: Set[Tuple[int, str]] = set()
        ignored = self.scanner.ignored_spans(content)
        ignored_starts = [start for start, _ in ignored]
        for match in _API_USAGE.finditer(content):
            if inside_comment_line(content, match.start()) or _in_spans(
                match.start(), ignored, ignored_starts
            ):
                continue
            namespace, method = match.group(1), match.group(2)
            api_call = f"wp.{namespace}.{method}"
            line_no = line_number(content, match.start())
            if (line_no, api_call) in seen:
                continue
            seen.add((line_no, api_call))

            line_text = lines[line_no - 1] if line_no - 1 < len(lines) else ""
            usage = ApiUsage(
                file_path=file_path,
                line_number=line_no,
                api_call=api_call,
                namespace=namespace,
                method=method,
                code_context=self.context_text(lines, line_no - 1, API_WINDOW) or None,
            )
            usage.content_hash = content_hash(
                {"name": api_call, "type": "api_usage", "params": "", "docblock": "", "hook_line": line_text}
            )
            apis.append(usage)
        return apis


def _in_spans(offset: int, spans: Sequence[Tuple[int, int]], starts: Sequence[int]) -> bool:
    index = bisect_right(starts, offset) - 1
    return index >= 0 and offset < spans[index][1]


def _object_literal(expression: Optional[str]) -> Optional[str]:
    if not expression:
        return None
    text = expression.strip()
    if text.startswith("{") and text.endswith("}"):
        return text
    return None


__all__ = ["API_NAMESPACES", "JS_BLOCK_KEYWORDS", "JS_HOOK_KEYWORDS", "JavaScriptParser"]
