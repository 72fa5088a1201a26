"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from hookindex.config import HookIndexConfig
from hookindex.models import Source
from hookindex.service import create_app
from hookindex.stores import IndexStore
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def client(
    config: HookIndexConfig,
    store: IndexStore,
    repo_builder: RepoBuilder,
    add_local_source: Callable[..., Source],
) -> TestClient:
    repo_builder.write(
        {
            "plugin.php": """
                <?php
                do_action( 'save_post', $post_id );
                apply_filters( 'the_content', $content );
            """,
            "src/index.js": "registerBlockType( 'demo/hero', { title: 'Hero', category: 'design' } );\n",
        }
    )
    add_local_source("demo", repo_builder.path())
    app = create_app(store_factory=lambda: IndexStore(config.database), config=config)
    test_client = TestClient(app)
    response = test_client.post("/tools/index_sources", json={})
    assert response.status_code == 200
    return test_client


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_index_sources_endpoint_reports_stats(client: TestClient) -> None:
    response = client.post("/tools/index_sources", json={"force": True})
    assert response.status_code == 200
    body = response.json()
    assert body["sources_processed"] == 1
    assert body["hooks_unchanged"] == 2
    assert body["errors"] == []


def test_index_sources_unknown_source_is_bad_request(client: TestClient) -> None:
    response = client.post("/tools/index_sources", json={"source": "missing"})
    assert response.status_code == 400
    assert "missing" in response.json()["detail"]


def test_search_hooks_endpoint(client: TestClient) -> None:
    response = client.post("/tools/search_hooks", json={"query": "save_post", "limit": 5})
    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0]["name"] == "save_post"
    assert results[0]["source_name"] == "demo"


def test_search_hooks_rejects_invalid_limit(client: TestClient) -> None:
    response = client.post("/tools/search_hooks", json={"query": "save_post", "limit": 0})
    assert response.status_code == 422


def test_validate_hook_endpoint(client: TestClient) -> None:
    valid = client.post("/tools/validate_hook", json={"name": "save_post"}).json()
    assert valid["status"] == "VALID"
    assert valid["hooks"][0]["file_path"] == "plugin.php"

    missing = client.post("/tools/validate_hook", json={"name": "save_posts"}).json()
    assert missing["status"] == "NOT_FOUND"
    assert "save_post" in [row["name"] for row in missing["similar"]]


def test_get_hook_context_endpoint(client: TestClient) -> None:
    found = client.post("/tools/get_hook_context", json={"id_or_name": "the_content"})
    assert found.status_code == 200
    assert found.json()["type"] == "filter"

    missing = client.post("/tools/get_hook_context", json={"id_or_name": "nope"})
    assert missing.status_code == 404


def test_search_block_apis_endpoint(client: TestClient) -> None:
    body = client.post("/tools/search_block_apis", json={"query": "hero"}).json()
    assert [row["block_name"] for row in body["blocks"]] == ["demo/hero"]
    assert body["apis"] == []


def test_docs_endpoints(
    client: TestClient, tmp_path: Path, add_local_source: Callable[..., Source]
) -> None:
    docs = RepoBuilder(tmp_path, name="handbook")
    docs.write(
        {
            "intro.md": "# Introduction\n\nGetting started with plugins.\n",
            "api/hooks.md": "# Hooks\n\nActions and filters overview.\n",
        }
    )
    add_local_source("plugin-handbook", docs.path(), content_type="docs")
    assert client.post("/tools/index_sources", json={"source": "plugin-handbook"}).status_code == 200

    found = client.post("/tools/search_docs", json={"query": "filters"}).json()["results"]
    assert [row["slug"] for row in found] == ["api--hooks"]

    listed = client.post("/tools/list_docs", json={}).json()
    assert {row["slug"] for row in listed["results"]} == {"intro", "api--hooks"}
    assert set(listed["categories"]) == {"plugins"}

    page = client.post("/tools/get_doc", json={"id_or_slug": "intro"})
    assert page.status_code == 200
    assert page.json()["title"] == "Introduction"
    assert client.post("/tools/get_doc", json={"id_or_slug": "missing"}).status_code == 404
