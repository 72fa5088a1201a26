"""Shallow git clones of public and private repositories."""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from ..logging import get_logger
from ..models import Source
from .base import FetchError, Fetcher, MissingCredentialError, resolve_subfolder

logger = get_logger("fetchers.git")

Runner = Callable[..., None]


def cache_dirname(repo_url: str) -> str:
    """``https://github.com/org/repo.git`` becomes ``org--repo``."""
    name = re.sub(r"^.*?//[^/]+/", "", repo_url)
    name = re.sub(r"\.git$", "", name.rstrip("/"))
    return name.replace("/", "--")


class GitFetcher(Fetcher):
    """Clones into ``cache_dir`` on first use and hard-resets on later runs.

    Private sources read their token from the configured environment
    variable; it is injected into the remote URL only for the duration of a
    clone or fetch and removed from the stored remote afterwards.
    """

    def __init__(self, cache_dir: Path, runner: Runner | None = None) -> None:
        self.cache_dir = Path(cache_dir)
        self._runner = runner or self._default_runner

    def supports(self, source: Source) -> bool:
        return source.type in {"github-public", "github-private"}

    def fetch(self, source: Source) -> Path:
        if not source.repo_url:
            raise FetchError(f"Source '{source.name}' has no repo_url configured")
        token = self._token(source)
        url = source.repo_url
        authed_url = url.replace("https://", f"https://{token}@", 1) if token else url
        clone_dir = self.cache_dir / cache_dirname(url)
        branch = source.branch or "main"

        if (clone_dir / ".git").exists():
            self._update(source, clone_dir, url, authed_url, branch, token)
        else:
            self._clone(source, clone_dir, url, authed_url, branch, token)
        return resolve_subfolder(clone_dir, source)

    def _token(self, source: Source) -> str | None:
        if source.type != "github-private":
            return None
        if not source.token_env_var:
            raise MissingCredentialError(
                f"Source '{source.name}' is github-private but has no token_env_var configured"
            )
        token = os.environ.get(source.token_env_var)
        if not token:
            raise MissingCredentialError(
                f"Environment variable '{source.token_env_var}' is not set; "
                f"required for private source '{source.name}'"
            )
        return token

    def _clone(
        self, source: Source, clone_dir: Path, url: str, authed_url: str, branch: str, token: str | None
    ) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s (%s)", source.name, branch)
        try:
            self._run(
                ["git", "clone", "--depth=1", "--branch", branch, "--single-branch", authed_url, str(clone_dir)],
                cwd=self.cache_dir,
            )
            if token:
                self._run(["git", "remote", "set-url", "origin", url], cwd=clone_dir)
        except (subprocess.CalledProcessError, OSError) as exc:
            raise FetchError(f"Clone of '{source.name}' failed: {_redact(str(exc), token)}") from exc

    def _update(
        self, source: Source, clone_dir: Path, url: str, authed_url: str, branch: str, token: str | None
    ) -> None:
        try:
            if token:
                self._run(["git", "remote", "set-url", "origin", authed_url], cwd=clone_dir)
            self._run(["git", "fetch", "origin", branch, "--depth=1"], cwd=clone_dir)
            self._run(["git", "reset", "--hard", f"origin/{branch}"], cwd=clone_dir)
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning(
                "Update of %s failed, using cached copy: %s", source.name, _redact(str(exc), token)
            )
        finally:
            if token:
                self._reset_remote(source, clone_dir, url)

    def _reset_remote(self, source: Source, clone_dir: Path, url: str) -> None:
        try:
            self._run(["git", "remote", "set-url", "origin", url], cwd=clone_dir)
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("Could not restore remote URL for %s: %s", source.name, exc.__class__.__name__)

    def _run(self, args: Iterable[str], *, cwd: Path) -> None:
        self._runner(args, cwd=cwd, env=None)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path, env: dict[str, str] | None = None) -> None:
        subprocess.run(list(args), cwd=str(cwd), env=env, check=True, text=True)


def _redact(message: str, token: str | None) -> str:
    return message.replace(token, "***") if token else message


__all__ = ["GitFetcher", "Runner", "cache_dirname"]
