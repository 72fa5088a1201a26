"""Well-known sources that can be registered by name."""

from __future__ import annotations

from typing import Dict, List, Optional

from .constants import CONTENT_TYPE_DOCS, CONTENT_TYPE_SOURCE
from .models import Source

_PRESETS: Dict[str, Dict[str, str]] = {
    "wp-core": {
        "repo_url": "https://github.com/WordPress/wordpress-develop.git",
        "branch": "trunk",
        "content_type": CONTENT_TYPE_SOURCE,
    },
    "gutenberg-source": {
        "repo_url": "https://github.com/WordPress/gutenberg.git",
        "branch": "trunk",
        "content_type": CONTENT_TYPE_SOURCE,
    },
    "gutenberg-docs": {
        "repo_url": "https://github.com/WordPress/gutenberg.git",
        "subfolder": "docs",
        "branch": "trunk",
        "content_type": CONTENT_TYPE_DOCS,
    },
    "plugin-handbook": {
        "repo_url": "https://github.com/WordPress/developer-plugins-handbook.git",
        "branch": "main",
        "content_type": CONTENT_TYPE_DOCS,
    },
    "rest-api-handbook": {
        "repo_url": "https://github.com/WP-API/docs.git",
        "branch": "master",
        "content_type": CONTENT_TYPE_DOCS,
    },
    "wp-cli-handbook": {
        "repo_url": "https://github.com/wp-cli/handbook.git",
        "branch": "main",
        "content_type": CONTENT_TYPE_DOCS,
    },
    "admin-handbook": {
        "repo_url": "https://github.com/WordPress/Advanced-administration-handbook.git",
        "branch": "main",
        "content_type": CONTENT_TYPE_DOCS,
    },
    "woocommerce": {
        "repo_url": "https://github.com/woocommerce/woocommerce.git",
        "subfolder": "plugins/woocommerce",
        "branch": "trunk",
        "content_type": CONTENT_TYPE_SOURCE,
    },
}


def preset_names() -> List[str]:
    return list(_PRESETS)


def get_preset(name: str) -> Optional[Source]:
    """Return a fresh :class:`Source` for preset ``name``, or None."""
    data = _PRESETS.get(name)
    if data is None:
        return None
    return Source(
        name=name,
        type="github-public",
        repo_url=data["repo_url"],
        subfolder=data.get("subfolder"),
        branch=data["branch"],
        content_type=data["content_type"],
    )


__all__ = ["get_preset", "preset_names"]
