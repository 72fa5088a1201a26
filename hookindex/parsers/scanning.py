"""Bracket- and string-aware argument scanner shared by every dialect.

The scanner is a small explicit state machine over the raw text. It never
builds a syntax tree: it only knows how to step over quoted strings (with
escape sequences and ``{...}`` interpolations), comments, and nested
brackets, so that call arguments can be sliced out of otherwise unparsed
source. Every scan is bounded by ``scan_limit`` characters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Pattern, Tuple

from ..constants import DYNAMIC_PLACEHOLDER

_OPENERS = "([{"
_CLOSERS = ")]}"


class ExtractionError(ValueError):
    """Raised when a call site cannot be turned into a record."""


@dataclass(frozen=True)
class Dialect:
    """Lexical rules for one source language."""

    name: str
    quotes: FrozenSet[str]
    interpolating_quotes: FrozenSet[str] = frozenset()
    multiline_quotes: FrozenSet[str] = frozenset()
    interpolation_openers: Tuple[str, ...] = ()
    simple_interpolation: Optional[Pattern[str]] = None
    line_comments: Tuple[str, ...] = ("//",)
    block_comments: bool = True
    concat_operator: str = "+"
    scan_limit: int = 5000


PHP_DIALECT = Dialect(
    name="php",
    quotes=frozenset({"'", '"'}),
    interpolating_quotes=frozenset({'"'}),
    multiline_quotes=frozenset({"'", '"'}),
    interpolation_openers=("{$", "${"),
    simple_interpolation=re.compile(r"\$[A-Za-z_]\w*(?:->\w+|\[[^\]\"']*\])?"),
    line_comments=("//", "#"),
    concat_operator=".",
    scan_limit=2000,
)

JS_DIALECT = Dialect(
    name="javascript",
    quotes=frozenset({"'", '"', "`"}),
    interpolating_quotes=frozenset({"`"}),
    multiline_quotes=frozenset({"`"}),
    interpolation_openers=("${",),
    line_comments=("//",),
    concat_operator="+",
    scan_limit=5000,
)


class ArgumentScanner:
    """Extracts and splits call arguments for a given dialect."""

    def __init__(self, dialect: Dialect, scan_limit: int | None = None) -> None:
        self.dialect = dialect
        self.scan_limit = scan_limit or dialect.scan_limit

    # ------------------------------------------------------------------
    # Span extraction

    def extract_span(self, text: str, start: int) -> Optional[str]:
        """Return the text from ``start`` up to the bracket closing depth one.

        ``start`` must point just past an opening bracket. ``None`` means the
        span did not balance within the scan limit.
        """
        limit = min(len(text), start + self.scan_limit)
        depth = 1
        i = start
        while i < limit:
            char = text[i]
            if char in self.dialect.quotes:
                end = self.skip_string(text, i, limit)
                if end < 0:
                    return None
                i = end + 1
                continue
            comment_end = self._skip_comment(text, i, limit)
            if comment_end is not None:
                if comment_end < 0:
                    return None
                i = comment_end
                continue
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                depth -= 1
                if depth == 0:
                    return text[start:i]
            i += 1
        return None

    def skip_string(self, text: str, start: int, limit: int | None = None) -> int:
        """Return the index of the quote closing the string opened at ``start``.

        Returns -1 when the string is not terminated before ``limit``.
        """
        limit = len(text) if limit is None else limit
        return self._unwind(text, start + 1, limit, [[text[start], 0]])

    def _interpolation_opener(self, text: str, index: int) -> Optional[str]:
        for opener in self.dialect.interpolation_openers:
            if text.startswith(opener, index):
                return opener
        return None

    def _skip_interpolation(self, text: str, start: int, limit: int) -> int:
        # Returns the index just past the closing brace of an interpolated expression.
        end = self._unwind(text, start, limit, [[None, 1]])
        return -1 if end < 0 else end + 1

    def _unwind(self, text: str, start: int, limit: int, stack: List[list]) -> int:
        """Walk nested strings and interpolations until ``stack`` empties.

        Each frame is ``[quote, depth]``: a string frame has its quote and
        depth 0, an interpolation frame has quote None and its brace depth.
        Returns the index of the character that closed the outermost frame,
        or -1 when ``limit`` is reached first.
        """
        quotes = self.dialect.quotes
        i = start
        while i < limit:
            char = text[i]
            frame = stack[-1]
            quote = frame[0]
            if quote is not None:
                if char == "\\":
                    i += 2
                    continue
                if char == quote:
                    stack.pop()
                    if not stack:
                        return i
                    i += 1
                    continue
                if quote in self.dialect.interpolating_quotes:
                    opener = self._interpolation_opener(text, i)
                    if opener:
                        stack.append([None, 1])
                        i += len(opener)
                        continue
                i += 1
                continue
            if char in quotes:
                stack.append([char, 0])
            elif char == "{":
                frame[1] += 1
            elif char == "}":
                frame[1] -= 1
                if frame[1] == 0:
                    stack.pop()
                    if not stack:
                        return i
            i += 1
        return -1

    def _skip_comment(self, text: str, index: int, limit: int) -> Optional[int]:
        # None: no comment here. -1: unterminated block comment. Otherwise the resume index.
        for marker in self.dialect.line_comments:
            if text.startswith(marker, index):
                if marker == "#" and text.startswith("#[", index):
                    return None
                newline = text.find("\n", index, limit)
                return limit if newline < 0 else newline
        if self.dialect.block_comments and text.startswith("/*", index):
            end = text.find("*/", index + 2, limit)
            return -1 if end < 0 else end + 2
        return None

    def ignored_spans(self, text: str) -> List[Tuple[int, int]]:
        """Return sorted ``(start, end)`` ranges covered by strings and comments.

        Quotes outside ``multiline_quotes`` end at the line break, so a stray
        quote (a regex literal, say) hides at most the rest of its line.
        """
        spans: List[Tuple[int, int]] = []
        limit = len(text)
        i = 0
        while i < limit:
            char = text[i]
            if char in self.dialect.quotes:
                if char in self.dialect.multiline_quotes:
                    string_limit = limit
                else:
                    newline = text.find("\n", i)
                    string_limit = limit if newline < 0 else newline
                end = self.skip_string(text, i, string_limit)
                if end < 0:
                    i += 1
                    continue
                spans.append((i, end + 1))
                i = end + 1
                continue
            comment_end = self._skip_comment(text, i, limit)
            if comment_end is not None:
                end = limit if comment_end < 0 else comment_end
                spans.append((i, end))
                i = end
                continue
            i += 1
        return spans

    # ------------------------------------------------------------------
    # Splitting

    def split_top_level(self, text: str, separator: str) -> List[str]:
        """Split ``text`` on ``separator`` outside strings, brackets and comments.

        Comments are dropped from the pieces. Raises ExtractionError when a
        string is unterminated or brackets do not balance.
        """
        pieces: List[str] = []
        current: List[str] = []
        depth = 0
        limit = len(text)
        i = 0
        while i < limit:
            char = text[i]
            if char in self.dialect.quotes:
                end = self.skip_string(text, i, limit)
                if end < 0:
                    raise ExtractionError("unterminated string literal")
                current.append(text[i : end + 1])
                i = end + 1
                continue
            comment_end = self._skip_comment(text, i, limit)
            if comment_end is not None:
                if comment_end < 0:
                    raise ExtractionError("unterminated comment")
                current.append(" ")
                i = comment_end
                continue
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                depth -= 1
                if depth < 0:
                    raise ExtractionError("unbalanced brackets")
            elif depth == 0 and text.startswith(separator, i) and self._is_separator(text, i, separator):
                pieces.append("".join(current))
                current = []
                i += len(separator)
                continue
            current.append(char)
            i += 1
        if depth != 0:
            raise ExtractionError("unbalanced brackets")
        pieces.append("".join(current))
        return pieces

    @staticmethod
    def _is_separator(text: str, index: int, separator: str) -> bool:
        if separator == ".":
            # PHP: skip "...", ".=" and decimal points.
            before = text[index - 1] if index > 0 else ""
            after = text[index + 1] if index + 1 < len(text) else ""
            if after in {".", "="} or before == ".":
                return False
            if before.isdigit() and after.isdigit():
                return False
        if separator == "+":
            after = text[index + 1] if index + 1 < len(text) else ""
            before = text[index - 1] if index > 0 else ""
            if after in {"+", "="} or before == "+":
                return False
        return True

    def split_arguments(self, span: str) -> List[str]:
        """Split an argument span on top-level commas; pieces are trimmed."""
        if not span.strip():
            return []
        return [piece.strip() for piece in self.split_top_level(span, ",")]

    # ------------------------------------------------------------------
    # Name classification

    def classify_name(self, expression: str) -> Tuple[str, bool]:
        """Return ``(name, is_dynamic)`` for a name expression.

        A single literal yields its text. Concatenations and interpolations
        keep their literal pieces and replace every non-literal piece with the
        dynamic placeholder. Raises ExtractionError for anything that cannot
        be read as a name.
        """
        expression = expression.strip()
        if not expression:
            raise ExtractionError("empty name expression")

        parts: List[str] = []
        dynamic = False
        for segment in self.split_top_level(expression, self.dialect.concat_operator):
            segment = segment.strip()
            if not segment:
                raise ExtractionError("empty concatenation segment")
            pieces = self.literal_pieces(segment)
            if pieces is None:
                parts.append(DYNAMIC_PLACEHOLDER)
                dynamic = True
                continue
            for text, is_dynamic in pieces:
                parts.append(text)
                dynamic = dynamic or is_dynamic

        name = "".join(parts)
        if not name.strip():
            raise ExtractionError("empty name")
        return name, dynamic

    def literal_value(self, expression: str) -> Optional[str]:
        """Return the text of a single non-interpolated string literal, else None."""
        pieces = self.literal_pieces(expression.strip())
        if pieces is None or any(is_dynamic for _, is_dynamic in pieces):
            return None
        value = "".join(text for text, _ in pieces)
        return value or None

    def literal_pieces(self, segment: str) -> Optional[List[Tuple[str, bool]]]:
        """Decode ``segment`` when it is exactly one quoted string.

        Returns a list of ``(text, is_dynamic)`` pieces, or None when the
        segment is not a single string literal.
        """
        if not segment or segment[0] not in self.dialect.quotes:
            return None
        end = self.skip_string(segment, 0)
        if end < 0:
            raise ExtractionError("unterminated string literal")
        if end != len(segment) - 1:
            return None

        quote = segment[0]
        body = segment[1:end]
        if quote not in self.dialect.interpolating_quotes:
            return [(self._unescape(body), False)]
        return self._interpolated_pieces(body)

    def _interpolated_pieces(self, body: str) -> List[Tuple[str, bool]]:
        pieces: List[Tuple[str, bool]] = []
        literal: List[str] = []
        i = 0
        limit = len(body)
        while i < limit:
            char = body[i]
            if char == "\\" and i + 1 < limit:
                literal.append(body[i + 1])
                i += 2
                continue
            opener = self._interpolation_opener(body, i)
            if opener:
                end = self._skip_interpolation(body, i + len(opener), limit)
                if end < 0:
                    raise ExtractionError("unterminated interpolation")
                if literal:
                    pieces.append(("".join(literal), False))
                    literal = []
                pieces.append((DYNAMIC_PLACEHOLDER, True))
                i = end
                continue
            pattern = self.dialect.simple_interpolation
            if pattern is not None and char == "$":
                match = pattern.match(body, i)
                if match:
                    if literal:
                        pieces.append(("".join(literal), False))
                        literal = []
                    pieces.append((DYNAMIC_PLACEHOLDER, True))
                    i = match.end()
                    continue
            literal.append(char)
            i += 1
        if literal:
            pieces.append(("".join(literal), False))
        if not pieces:
            pieces.append(("", False))
        return pieces

    @staticmethod
    def _unescape(body: str) -> str:
        if "\\" not in body:
            return body
        result: List[str] = []
        i = 0
        while i < len(body):
            if body[i] == "\\" and i + 1 < len(body):
                result.append(body[i + 1])
                i += 2
                continue
            result.append(body[i])
            i += 1
        return "".join(result)


__all__ = [
    "ArgumentScanner",
    "Dialect",
    "ExtractionError",
    "JS_DIALECT",
    "PHP_DIALECT",
]
