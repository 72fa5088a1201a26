"""Fetch collaborators, exercised through an injected git runner."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Tuple

import pytest

from hookindex.fetchers import (
    FetchError,
    GitFetcher,
    LocalFolderFetcher,
    MissingCredentialError,
    SourceFetcher,
    SourcePathError,
)
from hookindex.fetchers.git import cache_dirname
from hookindex.models import Source

URL = "https://github.com/WordPress/gutenberg.git"


class FakeRunner:
    """Records git invocations and fakes a successful clone."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: List[Tuple[List[str], Path]] = []
        self.fail_on = fail_on

    def __call__(self, args, *, cwd, env=None) -> None:
        args = list(args)
        self.calls.append((args, Path(cwd)))
        if self.fail_on is not None and self.fail_on in args:
            raise subprocess.CalledProcessError(128, args)
        if args[1] == "clone":
            (Path(args[-1]) / ".git").mkdir(parents=True)
            (Path(args[-1]) / "docs").mkdir()


def _source(**overrides) -> Source:
    values = {"name": "gutenberg", "type": "github-public", "repo_url": URL, "branch": "trunk"}
    values.update(overrides)
    return Source(**values)


def test_cache_dirname() -> None:
    assert cache_dirname(URL) == "WordPress--gutenberg"
    assert cache_dirname("https://github.com/org/repo/") == "org--repo"


def test_public_clone(tmp_path: Path) -> None:
    runner = FakeRunner()
    root = GitFetcher(tmp_path, runner=runner).fetch(_source())

    clone_dir = tmp_path / "WordPress--gutenberg"
    assert root == clone_dir
    assert runner.calls == [
        (
            ["git", "clone", "--depth=1", "--branch", "trunk", "--single-branch", URL, str(clone_dir)],
            tmp_path,
        )
    ]


def test_existing_clone_is_updated_and_subfolder_resolved(tmp_path: Path) -> None:
    clone_dir = tmp_path / "WordPress--gutenberg"
    (clone_dir / ".git").mkdir(parents=True)
    (clone_dir / "docs").mkdir()
    runner = FakeRunner()

    root = GitFetcher(tmp_path, runner=runner).fetch(_source(subfolder="docs"))

    assert root == clone_dir / "docs"
    assert [call[0] for call in runner.calls] == [
        ["git", "fetch", "origin", "trunk", "--depth=1"],
        ["git", "reset", "--hard", "origin/trunk"],
    ]


def test_failed_update_falls_back_to_cached_copy(tmp_path: Path) -> None:
    clone_dir = tmp_path / "WordPress--gutenberg"
    (clone_dir / ".git").mkdir(parents=True)
    runner = FakeRunner(fail_on="fetch")

    assert GitFetcher(tmp_path, runner=runner).fetch(_source()) == clone_dir


def test_missing_subfolder_raises(tmp_path: Path) -> None:
    with pytest.raises(SourcePathError):
        GitFetcher(tmp_path, runner=FakeRunner()).fetch(_source(subfolder="handbook"))


def test_private_source_requires_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOOKINDEX_TEST_TOKEN", raising=False)
    fetcher = GitFetcher(tmp_path, runner=FakeRunner())

    with pytest.raises(MissingCredentialError):
        fetcher.fetch(_source(type="github-private", token_env_var="HOOKINDEX_TEST_TOKEN"))
    with pytest.raises(MissingCredentialError):
        fetcher.fetch(_source(type="github-private"))


def test_private_clone_injects_and_strips_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOOKINDEX_TEST_TOKEN", "s3cret")
    runner = FakeRunner()

    GitFetcher(tmp_path, runner=runner).fetch(
        _source(type="github-private", token_env_var="HOOKINDEX_TEST_TOKEN")
    )

    clone_args, _ = runner.calls[0]
    assert "https://s3cret@github.com/WordPress/gutenberg.git" in clone_args
    assert runner.calls[1][0] == ["git", "remote", "set-url", "origin", URL]


def test_clone_failure_is_redacted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOOKINDEX_TEST_TOKEN", "s3cret")
    fetcher = GitFetcher(tmp_path, runner=FakeRunner(fail_on="clone"))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(_source(type="github-private", token_env_var="HOOKINDEX_TEST_TOKEN"))
    assert "s3cret" not in str(excinfo.value)


def test_local_folder_fetcher(tmp_path: Path) -> None:
    fetcher = LocalFolderFetcher()
    local = Source(name="local", type="local-folder", local_path=str(tmp_path))
    assert fetcher.fetch(local) == tmp_path

    with pytest.raises(SourcePathError):
        fetcher.fetch(Source(name="gone", type="local-folder", local_path=str(tmp_path / "gone")))
    with pytest.raises(FetchError):
        fetcher.fetch(Source(name="unset", type="local-folder"))


def test_source_fetcher_rejects_unknown_types(tmp_path: Path) -> None:
    with pytest.raises(FetchError):
        SourceFetcher.default(tmp_path).fetch(Source(name="x", type="svn"))
