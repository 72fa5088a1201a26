"""PHP hook and block-registration extraction."""

from __future__ import annotations

import json
import re
from typing import Optional, Sequence

from ..constants import BLOCK_WINDOW, DEFAULT_DOC_LOOKBACK
from ..models import BlockRegistration, ParseResult
from .base import CallSite, DeclarationParser
from .scanning import PHP_DIALECT, ExtractionError
from .utils import PHP_CLASS_PATTERN, PHP_FUNCTION_PATTERN, content_hash

PHP_HOOK_KEYWORDS = {
    "do_action": "action",
    "apply_filters": "filter",
    "do_action_ref_array": "action_ref_array",
    "apply_filters_ref_array": "filter_ref_array",
}

PHP_BLOCK_KEYWORDS = (
    "register_block_type",
    "register_block_type_from_metadata",
    "register_block_style",
    "register_block_pattern",
)

# Longest alternatives first so do_action_ref_array never matches as do_action.
_HOOK_CALL = re.compile(
    r"\b(do_action_ref_array|apply_filters_ref_array|do_action|apply_filters)\s*\("
)
_BLOCK_CALL = re.compile(
    r"\b(register_block_type_from_metadata|register_block_type|register_block_style|register_block_pattern)\s*\("
)
_TRANSLATED = r"(?:(?:__|_x|_e|esc_html__|esc_attr__|esc_html_x|esc_attr_x)\s*\(\s*)?"


def _array_entry(key: str) -> re.Pattern[str]:
    return re.compile(
        r"""['"]""" + key + r"""['"]\s*=>\s*""" + _TRANSLATED + r"""(['"])((?:\\.|(?!\1).)*)\1""",
        re.DOTALL,
    )


_TITLE_ENTRY = _array_entry("title")
_CATEGORY_ENTRY = _array_entry("category")


class PhpParser(DeclarationParser):
    """Extracts ``do_action``/``apply_filters`` hooks and block registrations."""

    extensions = (".php",)
    hook_keywords = PHP_HOOK_KEYWORDS
    function_pattern = PHP_FUNCTION_PATTERN
    class_pattern = PHP_CLASS_PATTERN

    def __init__(self, *, scan_limit: int | None = None, doc_lookback: int = DEFAULT_DOC_LOOKBACK):
        super().__init__(PHP_DIALECT, scan_limit=scan_limit, doc_lookback=doc_lookback)

    def parse(self, content: str, file_path: str) -> ParseResult:
        lines = content.split("\n")
        result = ParseResult()
        result.hooks = self.extract_hooks(content, lines, file_path, _HOOK_CALL)
        for site in self.iter_call_sites(content, _BLOCK_CALL):
            block = self._build_block(site, lines, file_path)
            if block is not None:
                result.blocks.append(block)
        return result

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

        settings = " ".join(site.arguments[1:])
        title = _entry_value(_TITLE_ENTRY, settings)
        category = _entry_value(_CATEGORY_ENTRY, settings)
        line_text = lines[site.line_index] if site.line_index < len(lines) else ""

        block = BlockRegistration(
            file_path=file_path,
            line_number=site.line_index + 1,
            block_name=block_name,
            registration_type=site.keyword,
            block_title=title,
            block_category=category,
            code_context=self.context_text(lines, site.line_index, BLOCK_WINDOW),
        )
        block.content_hash = content_hash(
            {
                "name": block_name,
                "type": site.keyword,
                "params": json.dumps([title, category]),
                "hook_line": line_text,
            }
        )
        return block


def _entry_value(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    return match.group(2) or None


__all__ = ["PHP_BLOCK_KEYWORDS", "PHP_HOOK_KEYWORDS", "PhpParser"]
