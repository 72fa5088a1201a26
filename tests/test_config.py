"""Tests for hookindex.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from hookindex.config import ConfigurationError, HookIndexConfig, load_config
from hookindex.constants import DEFAULT_HOOK_WEIGHTS


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, HookIndexConfig)
    assert config.home == tmp_path.resolve()
    assert config.database == tmp_path.resolve() / "hooks.db"
    assert config.cache_dir == tmp_path.resolve() / "cache"
    assert config.search.hook_weights == DEFAULT_HOOK_WEIGHTS
    assert config.search.default_limit == 20
    assert config.scanning.php_scan_limit == 2000
    assert config.scanning.js_scan_limit == 5000
    assert config.scanning.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        """
database: "data/index.db"
cache_dir: "/var/cache/hookindex"
search:
  hook_weights: [20, 5, 2, 3, 1, 1, 1]
  default_limit: 50
scanning:
  php_scan_limit: 4000
  doc_lookback: 10
  exclude_paths:
    - "legacy/"
    - "*.min.js"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.database == tmp_path.resolve() / "data" / "index.db"
    assert config.cache_dir == Path("/var/cache/hookindex")
    assert config.search.hook_weights == (20.0, 5.0, 2.0, 3.0, 1.0, 1.0, 1.0)
    assert config.search.default_limit == 50
    assert config.scanning.php_scan_limit == 4000
    assert config.scanning.js_scan_limit == 5000
    assert config.scanning.doc_lookback == 10
    assert config.scanning.exclude_paths == ["legacy/", "*.min.js"]


def test_home_comes_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOOKINDEX_HOME", str(tmp_path / "custom"))
    config = load_config()
    assert config.home == (tmp_path / "custom").resolve()


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


def test_weight_count_must_match_columns(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text("search:\n  doc_weights: [1, 2]\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


def test_invalid_yaml_is_a_configuration_error(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text("search: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)
