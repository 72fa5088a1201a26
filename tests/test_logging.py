"""Tests for the hookindex logger hierarchy."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hookindex import indexer
from hookindex.fetchers import git
from hookindex.logging import configure_logging, get_logger
from hookindex.parsers import base
from hookindex.stores import index_store, search


def test_module_loggers_sit_directly_under_hookindex() -> None:
    assert indexer.logger.name == "hookindex.indexer"
    assert search.logger.name == "hookindex.stores.search"
    assert index_store.logger.name == "hookindex.stores.index"
    assert base.logger.name == "hookindex.parsers"
    assert git.logger.name == "hookindex.fetchers.git"
    assert get_logger().name == "hookindex"


def test_configure_logging_writes_module_records_to_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    log_file = tmp_path / "logs" / "hookindex.log"
    root = configure_logging(verbose=True, log_file=log_file)
    try:
        indexer.logger.debug("scanning %s", "demo")
        assert "[hookindex] DEBUG scanning demo" in capsys.readouterr().err
        for handler in root.handlers:
            handler.flush()
        assert "DEBUG hookindex.indexer: scanning demo" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.NOTSET)
        root.propagate = True
