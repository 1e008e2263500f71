"""FastAPI application exposing indexing and search over HTTP."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from notefinder.config import AppConfig
from notefinder.errors import ConfigurationError
from notefinder.index.indexer import Indexer
from notefinder.models import Document, SearchMode, SearchResult
from notefinder.search.engine import SearchEngine
from notefinder.search.factory import create_search_engine
from notefinder.search.hybrid import HybridSearchEngine
from notefinder.search.semantic import SemanticSearchEngine

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 50

router = APIRouter()


class SearchPayload(BaseModel):
    query: str
    limit: int = 10
    mode: SearchMode | None = None


class IndexPayload(BaseModel):
    paths: List[str]
    mode: SearchMode | None = None


class DeleteDocumentRequest(BaseModel):
    path: str


def _document_dict(document: Document) -> Dict[str, Any]:
    return {
        "path": document.path,
        "title": document.title,
        "relative_path": document.relative_path,
        "size": document.size,
        "last_modified": document.last_modified,
    }


def _result_dict(result: SearchResult) -> Dict[str, Any]:
    return {
        "document": _document_dict(result.document),
        "score": result.score,
        "matches": [
            {
                "line_number": match.line_number,
                "snippet": match.snippet,
                "match_start": match.match_start,
                "match_end": match.match_end,
            }
            for match in result.matches
        ],
    }


def _shared_semantic_engine(engines: Dict[SearchMode, SearchEngine]) -> SemanticSearchEngine | None:
    """The semantic engine already owned by the semantic or hybrid entry."""
    semantic = engines.get(SearchMode.SEMANTIC)
    if isinstance(semantic, SemanticSearchEngine):
        return semantic
    hybrid = engines.get(SearchMode.HYBRID)
    if isinstance(hybrid, HybridSearchEngine):
        return hybrid.semantic_engine
    return None


async def _get_engine(request: Request, mode: SearchMode | None) -> SearchEngine:
    """Return the engine for ``mode``, creating and priming it on first use.

    Semantic and hybrid modes share one semantic engine, so documents are
    embedded once and one writer owns the vector snapshot.
    """
    state = request.app.state
    selected = mode or state.config.default_mode
    engine = state.engines.get(selected)
    if engine is not None:
        return engine

    try:
        engine = create_search_engine(
            state.config, selected, semantic_engine=_shared_semantic_engine(state.engines)
        )
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if state.documents:
        await engine.index(list(state.documents.values()))
    state.engines[selected] = engine
    return engine


def _validate_paths(raw_paths: List[str]) -> List[Path]:
    resolved: List[Path] = []
    for raw in raw_paths:
        clean = raw.strip().replace("\r", "").replace("\n", "")
        if not clean:
            continue
        if "\0" in clean:
            raise HTTPException(status_code=400, detail="Invalid path: contains null byte")
        path = Path(clean).expanduser().resolve()
        if not path.exists():
            raise HTTPException(status_code=404, detail=f"Path not found: {clean}")
        resolved.append(path)
    if not resolved:
        raise HTTPException(status_code=400, detail="No path provided")
    return resolved


@router.post("/index")
async def index_documents(payload: IndexPayload, request: Request) -> dict[str, Any]:
    state = request.app.state
    paths = _validate_paths(payload.paths)
    engine = await _get_engine(request, payload.mode)

    indexer = Indexer(
        engine,
        ignore_patterns=state.config.ignore_patterns,
        max_file_size_mb=state.config.max_file_size_mb,
    )
    stats = await indexer.index(paths)
    state.documents = {document.path: document for document in indexer.documents}

    for other in state.engines.values():
        if other is not engine:
            await other.index(indexer.documents)

    return {
        "status": "ok",
        "stats": {
            "loaded": stats.loaded,
            "skipped": stats.skipped,
            "failed": stats.failed,
            "processed_files": [str(path) for path in stats.processed_files],
        },
    }


@router.post("/search")
async def search_documents(payload: SearchPayload, request: Request) -> dict[str, Any]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    limit = max(1, min(payload.limit, MAX_LIMIT))
    engine = await _get_engine(request, payload.mode)
    results = await engine.search(query, limit=limit)
    return {"results": [_result_dict(result) for result in results]}


@router.get("/documents")
async def list_documents(request: Request) -> dict[str, Any]:
    documents = list(request.app.state.documents.values())
    return {
        "documents": [_document_dict(document) for document in documents],
        "stats": {
            "document_count": len(documents),
            "total_size_bytes": sum(document.size for document in documents),
        },
    }


@router.post("/documents/delete")
async def delete_document(payload: DeleteDocumentRequest, request: Request) -> dict[str, str]:
    state = request.app.state
    if payload.path not in state.documents:
        raise HTTPException(status_code=404, detail="Document not found")

    for engine in state.engines.values():
        await engine.remove(payload.path)
    del state.documents[payload.path]
    return {"status": "ok"}


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the web app; engines are created lazily, one per search mode."""
    application = FastAPI(title="NoteFinder Web", version="0.1.0")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.config = config or AppConfig()
    application.state.engines = {}
    application.state.documents = {}
    application.include_router(router)

    @application.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @application.on_event("shutdown")
    async def shutdown_event() -> None:
        for engine in application.state.engines.values():
            await engine.dispose()
        application.state.engines.clear()

    return application


app = create_app()
