from __future__ import annotations

from pathlib import Path

import pytest

from hookindex.repo_scanner import RepoScanner
from tests._fixtures.repo_builder import RepoBuilder


def test_code_discovery_skips_vendor_and_test_dirs(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "wp-includes/plugin.php": "<?php\n",
            "src/index.js": "export {};\n",
            "src/edit.tsx": "export {};\n",
            "node_modules/x/index.js": "",
            "vendor/lib.php": "<?php\n",
            "tests/test-plugin.php": "<?php\n",
            "README.md": "# Readme\n",
            "src/style.css": "",
        }
    )
    files = repo_builder.scan("source")
    assert [item.rel_path for item in files] == [
        "src/edit.tsx",
        "src/index.js",
        "wp-includes/plugin.php",
    ]
    assert files[0].path == repo_builder.path().resolve() / "src" / "edit.tsx"


def test_doc_discovery_skips_boilerplate(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "docs/intro.md": "# Intro\n",
            "docs/notes.txt": "",
            "CHANGELOG.md": "",
            "Contributing.md": "",
            "images/diagram.md": "",
        }
    )
    assert [item.rel_path for item in repo_builder.scan("docs")] == ["docs/intro.md"]


def test_exclude_paths_follow_gitignore_rules(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "legacy/old.php": "<?php\n",
            "lib/a.min.js": "",
            "lib/keep.min.js": "",
            "lib/b.js": "",
        }
    )
    scanner = RepoScanner(["legacy/", "*.min.js", "!keep.min.js"])
    found = scanner.scan(repo_builder.path(), "source")
    assert [item.rel_path for item in found] == ["lib/b.js", "lib/keep.min.js"]


def test_source_gitignore_is_applied_before_configured_excludes(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".gitignore": "# generated\ngenerated/\n*.bundle.js\n",
            "generated/hooks.php": "<?php\n",
            "src/app.bundle.js": "",
            "src/vendor.bundle.js": "",
            "src/app.js": "",
        }
    )
    assert [item.rel_path for item in repo_builder.scan("source")] == ["src/app.js"]

    scanner = RepoScanner(["!vendor.bundle.js"])
    found = scanner.scan(repo_builder.path(), "source")
    assert [item.rel_path for item in found] == ["src/app.js", "src/vendor.bundle.js"]


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        RepoScanner().scan(tmp_path / "missing", "source")
