"""Configuration loading for hookindex (``<home>/config.yml``)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .constants import (
    CACHE_DIRNAME,
    CONFIG_FILENAME,
    DB_FILENAME,
    DEFAULT_API_WEIGHTS,
    DEFAULT_BLOCK_WEIGHTS,
    DEFAULT_DOC_LOOKBACK,
    DEFAULT_DOC_WEIGHTS,
    DEFAULT_HOME_DIRNAME,
    DEFAULT_HOOK_WEIGHTS,
    DEFAULT_JS_SCAN_LIMIT,
    DEFAULT_PHP_SCAN_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    HOME_ENV_VAR,
)


class ConfigurationError(RuntimeError):
    """Raised for invalid configuration or an unusable source registration."""


@dataclass
class SearchConfig:
    """Ranking weights and limits for the full-text search layer."""

    hook_weights: Tuple[float, ...] = DEFAULT_HOOK_WEIGHTS
    block_weights: Tuple[float, ...] = DEFAULT_BLOCK_WEIGHTS
    api_weights: Tuple[float, ...] = DEFAULT_API_WEIGHTS
    doc_weights: Tuple[float, ...] = DEFAULT_DOC_WEIGHTS
    default_limit: int = DEFAULT_SEARCH_LIMIT


@dataclass
class ScanConfig:
    """Bounds and exclusions applied while scanning source trees."""

    php_scan_limit: int = DEFAULT_PHP_SCAN_LIMIT
    js_scan_limit: int = DEFAULT_JS_SCAN_LIMIT
    doc_lookback: int = DEFAULT_DOC_LOOKBACK
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class HookIndexConfig:
    """Effective settings for one hookindex invocation."""

    home: Path
    database: Path
    cache_dir: Path
    search: SearchConfig = field(default_factory=SearchConfig)
    scanning: ScanConfig = field(default_factory=ScanConfig)


def default_home() -> Path:
    """Return the data directory, honouring ``$HOOKINDEX_HOME``."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return (Path.home() / DEFAULT_HOME_DIRNAME).resolve()


def load_config(path: Path | None = None) -> HookIndexConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(path)
    home = config_file.parent

    if not config_file.exists():
        return HookIndexConfig(
            home=home,
            database=home / DB_FILENAME,
            cache_dir=home / CACHE_DIRNAME,
        )

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_file.name} must contain a mapping at the root")

    database = _as_path(data.get("database"), home) or home / DB_FILENAME
    cache_dir = _as_path(data.get("cache_dir"), home) or home / CACHE_DIRNAME

    search = SearchConfig()
    search_data = _as_dict(data.get("search"))
    if search_data:
        search.hook_weights = _as_weights(
            search_data.get("hook_weights"), DEFAULT_HOOK_WEIGHTS, "hook_weights"
        )
        search.block_weights = _as_weights(
            search_data.get("block_weights"), DEFAULT_BLOCK_WEIGHTS, "block_weights"
        )
        search.api_weights = _as_weights(
            search_data.get("api_weights"), DEFAULT_API_WEIGHTS, "api_weights"
        )
        search.doc_weights = _as_weights(
            search_data.get("doc_weights"), DEFAULT_DOC_WEIGHTS, "doc_weights"
        )
        search.default_limit = _as_int(search_data.get("default_limit")) or DEFAULT_SEARCH_LIMIT

    scanning = ScanConfig()
    scan_data = _as_dict(data.get("scanning"))
    if scan_data:
        scanning.php_scan_limit = _as_int(scan_data.get("php_scan_limit")) or DEFAULT_PHP_SCAN_LIMIT
        scanning.js_scan_limit = _as_int(scan_data.get("js_scan_limit")) or DEFAULT_JS_SCAN_LIMIT
        scanning.doc_lookback = _as_int(scan_data.get("doc_lookback")) or DEFAULT_DOC_LOOKBACK
        scanning.exclude_paths = _as_str_list(scan_data.get("exclude_paths"))

    return HookIndexConfig(
        home=home,
        database=database,
        cache_dir=cache_dir,
        search=search,
        scanning=scanning,
    )


def _resolve_config_path(path: Path | None) -> Path:
    if path is None:
        return default_home() / CONFIG_FILENAME
    path = path.expanduser()
    if path.is_dir():
        return (path / CONFIG_FILENAME).resolve()
    return path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_path(value: Any, base: Path) -> Optional[Path]:
    if not isinstance(value, str) or not value.strip():
        return None
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = base / candidate
    return candidate


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = int(value)
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def _as_weights(value: Any, default: Tuple[float, ...], key: str) -> Tuple[float, ...]:
    if value is None:
        return default
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigurationError(f"search.{key} must be a list of numbers")
    weights: List[float] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ConfigurationError(f"search.{key} must be a list of numbers")
        weights.append(float(item))
    if len(weights) != len(default):
        raise ConfigurationError(
            f"search.{key} expects {len(default)} weights, got {len(weights)}"
        )
    return tuple(weights)


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigurationError",
    "HookIndexConfig",
    "ScanConfig",
    "SearchConfig",
    "default_home",
    "load_config",
]
