from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator

import pytest

from hookindex.config import HookIndexConfig
from hookindex.models import Source
from hookindex.stores import IndexStore
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def config(tmp_path: Path) -> HookIndexConfig:
    home = tmp_path / "home"
    return HookIndexConfig(home=home, database=home / "hooks.db", cache_dir=home / "cache")


@pytest.fixture
def store(config: HookIndexConfig) -> Iterator[IndexStore]:
    handle = IndexStore(config.database)
    yield handle
    handle.close()


@pytest.fixture
def add_local_source(store: IndexStore) -> Callable[..., Source]:
    """Register a local-folder source pointing at ``root``."""

    def _add(name: str, root: Path, content_type: str = "source", enabled: bool = True) -> Source:
        return store.add_source(
            Source(
                name=name,
                type="local-folder",
                local_path=str(root),
                content_type=content_type,
                enabled=enabled,
            )
        )

    return _add
