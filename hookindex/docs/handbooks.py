"""Specialised documentation handlers, one per handbook family."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from .base import DocParser, infer_doc_type, unique

_PACKAGE_REF = re.compile(r"@wordpress/[\w-]+")
_FUNCTION_REF = re.compile(
    r"\b(wp_\w+|get_\w+|add_\w+|remove_\w+|do_action|apply_filters|register_\w+)\s*\("
)
_HOOK_REF = re.compile(r"['\"`]([a-z_]+(?:\{[^}]*\})?[a-z_]*)['\"`]\s*[,)]")
_ENDPOINT = re.compile(r"\b(GET|POST|PUT|PATCH|DELETE)\s+`?(/wp/v2/[\w/{}-]+|/wp-json/[\w/{}-]+)`?")
_ROUTE_LITERAL = re.compile(r"['\"](/wp/v2/[\w/{}-]+)['\"]")
_CLI_COMMAND = re.compile(r"(?:^|\n)[ \t]*(?:#+[ \t]*)?`?(wp[ \t]+[\w-]+(?:[ \t]+[\w-]+)?)`?")
_CLI_OPTION = re.compile(r"--[\w-]+(?:=<[^>]+>)?")
_DEFINE = re.compile(r"define\s*\(\s*['\"](\w+)['\"]")

_PATH_CATEGORIES = (
    (("block", "gutenberg"), "block-editor"),
    (("plugin",), "plugins"),
    (("rest", "api"), "rest-api"),
    (("cli",), "wp-cli"),
    (("admin",), "admin"),
)


class BlockEditorDocParser(DocParser):
    name = "block-editor"
    category = "block-editor"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        # Presets may already point at the docs/ subfolder.
        return "gutenberg" in source_name and (
            file_path.startswith("docs/") or source_name.endswith("-docs")
        )

    def subcategory_for(self, file_path: str) -> Optional[str]:
        parts = file_path.split("/")
        if parts[0] == "docs":
            parts = parts[1:]
        return parts[0] if len(parts) > 1 else None

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        refs = unique(_PACKAGE_REF.findall(body))
        return {"package_refs": refs} if refs else {}


class PluginHandbookDocParser(DocParser):
    name = "plugin-handbook"
    category = "plugins"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        return "plugin-handbook" in source_name or source_name == "plugin"

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        functions = unique(_FUNCTION_REF.findall(body))
        if functions:
            metadata["function_refs"] = functions
        hooks = unique(
            [name for name in _HOOK_REF.findall(body) if "_" in name and len(name) > 3]
        )
        if hooks:
            metadata["hook_refs"] = hooks
        return metadata


class RestApiDocParser(DocParser):
    name = "rest-api"
    category = "rest-api"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        return "rest-api" in source_name or "wp-api" in source_name

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        endpoints: List[Dict[str, str]] = [
            {"method": method, "route": route} for method, route in _ENDPOINT.findall(body)
        ]
        known = {endpoint["route"] for endpoint in endpoints}
        for route in _ROUTE_LITERAL.findall(body):
            if route not in known:
                endpoints.append({"method": "ANY", "route": route})
                known.add(route)
        return {"endpoints": endpoints} if endpoints else {}

    def doc_type(self, body: str, frontmatter: Mapping[str, str], metadata: Mapping[str, Any]) -> str:
        if metadata.get("endpoints"):
            return "api"
        return infer_doc_type(body, frontmatter)


class WpCliDocParser(DocParser):
    name = "wp-cli"
    category = "wp-cli"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        return "wp-cli" in source_name

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        commands = unique([command.strip() for command in _CLI_COMMAND.findall(body)])
        if commands:
            metadata["commands"] = commands
        options = unique(_CLI_OPTION.findall(body))
        if options:
            metadata["options"] = options
        return metadata

    def doc_type(self, body: str, frontmatter: Mapping[str, str], metadata: Mapping[str, Any]) -> str:
        if metadata.get("commands"):
            return "reference"
        return infer_doc_type(body, frontmatter)


class AdminHandbookDocParser(DocParser):
    name = "admin"
    category = "admin"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        return "admin" in source_name

    def extract_metadata(self, body: str) -> Dict[str, Any]:
        defines = unique(_DEFINE.findall(body))
        return {"config_defines": defines} if defines else {}


class GeneralDocParser(DocParser):
    """Fallback handler; always applies and must be registered last."""

    name = "general"

    def can_parse(self, file_path: str, frontmatter: Mapping[str, str], source_name: str) -> bool:
        return True

    def category_for(self, file_path: str, frontmatter: Mapping[str, str]) -> Optional[str]:
        if frontmatter.get("category"):
            return frontmatter["category"]
        lowered = file_path.lower()
        for keywords, category in _PATH_CATEGORIES:
            if any(keyword in lowered for keyword in keywords):
                return category
        return None


__all__ = [
    "AdminHandbookDocParser",
    "BlockEditorDocParser",
    "GeneralDocParser",
    "PluginHandbookDocParser",
    "RestApiDocParser",
    "WpCliDocParser",
]
