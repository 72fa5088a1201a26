"""FastAPI application exposing hookindex tools to external agents."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigurationError, HookIndexConfig, load_config
from ..indexer import Indexer
from ..stores import IndexStore, SearchService, StorageError

T = TypeVar("T")


class SearchHooksRequest(BaseModel):
    query: str
    type: Optional[str] = None
    source: Optional[str] = None
    is_dynamic: Optional[bool] = None
    include_removed: bool = False
    limit: Optional[int] = Field(default=None, ge=1)


class ValidateHookRequest(BaseModel):
    name: str


class HookContextRequest(BaseModel):
    id_or_name: str


class SearchBlockApisRequest(BaseModel):
    query: str
    limit: Optional[int] = Field(default=None, ge=1)


class SearchDocsRequest(BaseModel):
    query: str
    doc_type: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)


class GetDocRequest(BaseModel):
    id_or_slug: str


class ListDocsRequest(BaseModel):
    doc_type: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)


class IndexSourcesRequest(BaseModel):
    source: Optional[str] = None
    force: bool = False


class ResultsResponse(BaseModel):
    results: List[Dict[str, Any]]


class ValidateHookResponse(BaseModel):
    status: str
    name: str
    hooks: List[Dict[str, Any]] = []
    similar: List[Dict[str, Any]] = []
    removed_at: Optional[str] = None


class BlockApisResponse(BaseModel):
    blocks: List[Dict[str, Any]]
    apis: List[Dict[str, Any]]


class ListDocsResponse(BaseModel):
    results: List[Dict[str, Any]]
    categories: Dict[str, List[Dict[str, Any]]]


class IndexSourcesResponse(BaseModel):
    sources_processed: int
    files_processed: int
    files_skipped: int
    hooks_inserted: int
    hooks_updated: int
    hooks_unchanged: int
    hooks_removed: int
    blocks_indexed: int
    blocks_removed: int
    apis_indexed: int
    apis_removed: int
    docs_inserted: int
    docs_updated: int
    docs_unchanged: int
    docs_removed: int
    errors: List[str]
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


async def _run_blocking(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    store_factory: Callable[[], IndexStore] | None = None,
    config: HookIndexConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application; every request opens its own store handle."""
    settings = config or load_config()
    open_store = store_factory or (lambda: IndexStore(settings.database))

    app = FastAPI(title="hookindex", version="1.0.0")

    def with_search(work: Callable[[SearchService], T]) -> Callable[[], T]:
        def _run() -> T:
            with open_store() as store:
                return work(SearchService(store, settings.search))

        return _run

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/tools/search_hooks", response_model=ResultsResponse)
    async def search_hooks(payload: SearchHooksRequest) -> ResultsResponse:
        rows = await _run_blocking(
            with_search(
                lambda search: search.search_hooks(
                    payload.query,
                    type=payload.type,
                    source=payload.source,
                    is_dynamic=payload.is_dynamic,
                    include_removed=payload.include_removed,
                    limit=payload.limit,
                )
            )
        )
        return ResultsResponse(results=rows)

    @app.post("/tools/validate_hook", response_model=ValidateHookResponse)
    async def validate_hook(payload: ValidateHookRequest) -> ValidateHookResponse:
        result = await _run_blocking(with_search(lambda search: search.validate_hook(payload.name)))
        return ValidateHookResponse(**result.to_dict())

    @app.post("/tools/get_hook_context")
    async def get_hook_context(payload: HookContextRequest) -> Dict[str, Any]:
        row = await _run_blocking(
            with_search(lambda search: search.get_hook_context(payload.id_or_name))
        )
        if row is None:
            raise HTTPException(status_code=404, detail=f"Hook not found: {payload.id_or_name}")
        return row

    @app.post("/tools/search_block_apis", response_model=BlockApisResponse)
    async def search_block_apis(payload: SearchBlockApisRequest) -> BlockApisResponse:
        result = await _run_blocking(
            with_search(lambda search: search.search_block_apis(payload.query, limit=payload.limit))
        )
        return BlockApisResponse(**result)

    @app.post("/tools/search_docs", response_model=ResultsResponse)
    async def search_docs(payload: SearchDocsRequest) -> ResultsResponse:
        rows = await _run_blocking(
            with_search(
                lambda search: search.search_docs(
                    payload.query,
                    doc_type=payload.doc_type,
                    category=payload.category,
                    source=payload.source,
                    limit=payload.limit,
                )
            )
        )
        return ResultsResponse(results=rows)

    @app.post("/tools/get_doc")
    async def get_doc(payload: GetDocRequest) -> Dict[str, Any]:
        row = await _run_blocking(with_search(lambda search: search.get_doc(payload.id_or_slug)))
        if row is None:
            raise HTTPException(status_code=404, detail=f"Doc not found: {payload.id_or_slug}")
        return row

    @app.post("/tools/list_docs", response_model=ListDocsResponse)
    async def list_docs(payload: ListDocsRequest) -> ListDocsResponse:
        rows = await _run_blocking(
            with_search(
                lambda search: search.list_docs(
                    doc_type=payload.doc_type,
                    category=payload.category,
                    source=payload.source,
                    limit=payload.limit,
                )
            )
        )
        categories: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            categories.setdefault(row["category"] or "uncategorized", []).append(row)
        return ListDocsResponse(results=rows, categories=categories)

    @app.post("/tools/index_sources", response_model=IndexSourcesResponse)
    async def index_sources(payload: IndexSourcesRequest) -> IndexSourcesResponse:
        def _run_index() -> Dict[str, Any]:
            with open_store() as store:
                stats = Indexer(store, config=settings).index_sources(payload.source, payload.force)
            return stats.to_dict()

        return IndexSourcesResponse(**await _run_blocking(_run_index))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(_: Any, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(_: Any, exc: StorageError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: HookIndexConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
