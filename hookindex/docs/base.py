"""Base class and shared extraction helpers for documentation pages."""

from __future__ import annotations

import hashlib
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..models import DocumentPage

_FRONTMATTER = re.compile(r"^---\r?\n(.*?)\r?\n---[^\n]*(?:\r?\n|$)", re.DOTALL)
_H1 = re.compile(r"^#\s+(.+)", re.MULTILINE)
_FENCED_CODE = re.compile(r"```(\w*)[^\n]*\n(.*?)```", re.DOTALL)
_DESCRIPTION_LIMIT = 500

_DOC_TYPE_RULES: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("reference", re.compile(r"\breference\b|\bapi\b")),
    ("tutorial", re.compile(r"\btutorial\b|\bstep[- ]by[- ]step\b")),
    ("howto", re.compile(r"\bhow[- ]to\b")),
    ("faq", re.compile(r"\bfaq\b|\bfrequently asked\b")),
    ("guide", re.compile(r"\bguide\b")),
)


def split_frontmatter(content: str) -> Tuple[Dict[str, str], str]:
    """Return ``(frontmatter, body)``; frontmatter values are strings."""
    match = _FRONTMATTER.match(content)
    if not match:
        return {}, content
    raw = match.group(1)
    body = content[match.end() :].strip()

    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError:
        loaded = None
    if isinstance(loaded, dict):
        return {str(key): _as_text(value) for key, value in loaded.items() if key is not None}, body
    return _parse_lines(raw), body


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _parse_lines(raw: str) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for line in raw.split("\n"):
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        result[key] = value
    return result


def extract_title(body: str, frontmatter: Mapping[str, str]) -> Optional[str]:
    if frontmatter.get("title"):
        return frontmatter["title"]
    match = _H1.search(body)
    return match.group(1).strip() if match else None


def extract_description(body: str) -> Optional[str]:
    """Return the first prose paragraph, skipping headings, rules and fences."""
    collected: List[str] = []
    in_fence = False
    for line in body.split("\n"):
        stripped = line.strip()
        if stripped.startswith("```"):
            if collected:
                break
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if not stripped:
            if collected:
                break
            continue
        if stripped.startswith(("#", "---")):
            if collected:
                break
            continue
        collected.append(stripped)
    text = " ".join(collected)[:_DESCRIPTION_LIMIT]
    return text or None


def extract_code_examples(body: str) -> Optional[str]:
    examples = [
        {"language": match.group(1) or "text", "code": match.group(2).strip()}
        for match in _FENCED_CODE.finditer(body)
    ]
    return json.dumps(examples, ensure_ascii=False) if examples else None


def make_slug(file_path: str) -> str:
    slug = file_path.replace("\\", "/").lower()
    if slug.endswith(".md"):
        slug = slug[:-3]
    slug = re.sub(r"[^a-z0-9/_-]", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.replace("/", "--")
    return slug.strip("-")


def infer_doc_type(body: str, frontmatter: Mapping[str, str]) -> str:
    if frontmatter.get("doc_type"):
        return frontmatter["doc_type"]
    text = f"{body} {frontmatter.get('title', '')}".lower()
    for doc_type, pattern in _DOC_TYPE_RULES:
        if pattern.search(text):
            return doc_type
    return "general"


def page_hash(page: DocumentPage) -> str:
    payload = json.dumps(
        {
            "title": page.title,
            "content": page.content,
            "doc_type": page.doc_type,
            "category": page.category,
        },
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def unique(items: List[Any]) -> List[Any]:
    seen: List[Any] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


class DocParser(ABC):
    """Contract for documentation handlers selected per file.

    Subclasses decide whether they apply with :meth:`can_parse` and may
    override the category, subcategory, metadata and doc-type hooks; the
    shared :meth:`parse` assembles the page.
    """

    name: str = "doc"
    category: Optional[str] = None

    @abstractmethod
    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        """Return True when this handler should parse ``file_path``."""

    def parse(self, content: str, file_path: str) -> DocumentPage:
        frontmatter, body = split_frontmatter(content)
        metadata = self.extract_metadata(body)
        if frontmatter:
            metadata["frontmatter"] = dict(frontmatter)

        page = DocumentPage(
            file_path=file_path,
            slug=make_slug(file_path),
            title=extract_title(body, frontmatter) or file_path,
            doc_type=self.doc_type(body, frontmatter, metadata),
            content=body,
            category=self.category_for(file_path, frontmatter),
            subcategory=self.subcategory_for(file_path),
            description=extract_description(body),
            code_examples=extract_code_examples(body),
            metadata=json.dumps(metadata, ensure_ascii=False) if metadata else None,
        )
        page.content_hash = page_hash(page)
        return page

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        return {}

    def category_for(self, file_path: str, frontmatter: Mapping[str, str]) -> Optional[str]:
        return self.category

    def subcategory_for(self, file_path: str) -> Optional[str]:
        parts = file_path.split("/")
        return parts[0] if len(parts) > 1 else None

    def doc_type(self, body: str, frontmatter: Mapping[str, str], metadata: Mapping[str, Any]) -> str:
        return infer_doc_type(body, frontmatter)


__all__ = [
    "DocParser",
    "extract_code_examples",
    "extract_description",
    "extract_title",
    "infer_doc_type",
    "make_slug",
    "page_hash",
    "split_frontmatter",
    "unique",
]
