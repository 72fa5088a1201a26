"""Line, window, comment and scope helpers shared by the extraction engines."""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Pattern, Sequence

from ..constants import DEFAULT_DOC_LOOKBACK, HOOK_TYPE_LABELS

PHP_FUNCTION_PATTERN = re.compile(
    r"(?:(?:public|protected|private|static|final|abstract)\s+)*function\s+&?\s*(\w+)\s*\("
)
PHP_CLASS_PATTERN = re.compile(r"\b(?:abstract\s+|final\s+|readonly\s+)*(?:class|trait|interface|enum)\s+(\w+)")
JS_FUNCTION_PATTERN = re.compile(
    r"(?:(?:async\s+)?function\s*\*?\s*(\w+)\s*\("
    r"|(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*=>|\w+\s*=>)"
    r"|^\s*(?:static\s+)?(?:async\s+)?(?!if\b|for\b|while\b|switch\b|catch\b|return\b|function\b)(\w+)\s*\([^()]*\)\s*\{)"
)
JS_CLASS_PATTERN = re.compile(r"\bclass\s+(\w+)")


@dataclass(frozen=True)
class CodeWindow:
    """Lines surrounding a declaration."""

    before: str
    line: str
    after: str

    def joined(self, limit: int | None = None) -> str:
        text = "\n".join(part for part in (self.before, self.line, self.after) if part)
        return text[:limit] if limit is not None else text


def line_number(content: str, offset: int) -> int:
    """Return the 1-based line number containing ``offset``."""
    return content.count("\n", 0, max(0, offset)) + 1


def code_window(lines: Sequence[str], index: int, before: int = 8, after: int = 4) -> CodeWindow:
    """Slice ``before`` lines above and ``after`` lines below ``index``, clipped to bounds."""
    if not lines:
        return CodeWindow("", "", "")
    index = min(max(index, 0), len(lines) - 1)
    start = max(0, index - before)
    end = min(len(lines), index + after + 1)
    return CodeWindow(
        before="\n".join(lines[start:index]),
        line=lines[index],
        after="\n".join(lines[index + 1 : end]),
    )


def _is_line_comment(stripped: str) -> bool:
    return stripped.startswith("//") or (stripped.startswith("#") and not stripped.startswith("#["))


def doc_comment(
    lines: Sequence[str], index: int, max_lookback: int = DEFAULT_DOC_LOOKBACK
) -> str:
    """Return the comment block directly above ``index``.

    Blank lines and single-line comments between the comment and the
    declaration are tolerated. A block comment is only accepted once its
    opening marker is reached; any code line met before that, or running
    out of lookback, discards it.
    """
    collected: list[str] = []
    in_block = False
    stop = max(-1, index - 1 - max_lookback)

    for i in range(index - 1, stop, -1):
        raw = lines[i]
        stripped = raw.strip()

        if in_block:
            if stripped.startswith("/*"):
                collected.insert(0, raw)
                return "\n".join(collected).strip()
            if stripped.startswith("*") or not stripped:
                collected.insert(0, raw)
                continue
            return ""

        if stripped.endswith("*/"):
            collected.insert(0, raw)
            if stripped.startswith("/*"):
                return "\n".join(collected).strip()
            in_block = True
            continue
        if not stripped:
            continue
        if _is_line_comment(stripped):
            collected.insert(0, raw)
            continue
        break

    if in_block:
        return ""
    return "\n".join(collected).strip()


def enclosing_scope(lines: Sequence[str], index: int, pattern: Pattern[str]) -> Optional[str]:
    """Find the innermost scope header above ``index`` matching ``pattern``.

    Braces are counted per physical line from right to left: a ``}``
    increments the depth and a ``{`` decrements it. The first header seen
    at depth <= 0 wins; headers passed while depth is positive belong to
    blocks that close between them and the declaration.
    """
    depth = 0
    for i in range(min(index, len(lines) - 1), -1, -1):
        line = lines[i]
        for char in reversed(line):
            if char == "}":
                depth += 1
            elif char == "{":
                depth -= 1
        match = pattern.search(line)
        if not match:
            continue
        if depth <= 0:
            return next((group for group in match.groups() if group), None)
    return None


def content_hash(fields: Mapping[str, object]) -> str:
    """Stable 16-hex-digit digest over the semantically meaningful fields."""
    payload = json.dumps(
        {
            "name": fields.get("name"),
            "type": fields.get("type"),
            "params": fields.get("params"),
            "docblock": fields.get("docblock"),
            "hook_line": fields.get("hook_line"),
        },
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def text_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def infer_description(
    *,
    name: str,
    type: str,
    is_dynamic: bool,
    function: Optional[str] = None,
    class_name: Optional[str] = None,
    param_count: int = 0,
) -> str:
    """Assemble a readable one-line description of a hook."""
    parts = [HOOK_TYPE_LABELS.get(type, "Hook")]
    if is_dynamic:
        parts.append("(dynamic name)")
    parts.append(f'"{name}"')
    if function:
        parts.append(f"in {function}()")
    if class_name:
        parts.append(f"of class {class_name}")
    if param_count > 0:
        plural = "s" if param_count > 1 else ""
        parts.append(f"with {param_count} parameter{plural}")
    return " ".join(parts)


__all__ = [
    "CodeWindow",
    "JS_CLASS_PATTERN",
    "JS_FUNCTION_PATTERN",
    "PHP_CLASS_PATTERN",
    "PHP_FUNCTION_PATTERN",
    "code_window",
    "content_hash",
    "doc_comment",
    "enclosing_scope",
    "infer_description",
    "line_number",
    "text_hash",
]
