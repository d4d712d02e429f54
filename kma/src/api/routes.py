"""
KMA Assistant - API Routes
===========================
  • ``POST /api/chat``             → answer a question with citations
  • ``POST /api/index-documents``  → (re)index the knowledge base
  • ``GET  /api/index-documents``  → usage description

Each handler is a thin controller: it validates the request, delegates
to ``RAGManager`` / ``DocumentIndexer``, and shapes the response.
Failures of external services are logged here with the traceback and
answered with a generic message.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from kma.src.api.dependencies import get_indexer, get_rag_manager
from kma.src.core.indexer import DocumentIndexer
from kma.src.core.models import ChatRequest, ChatResponse, IndexRequest, IndexResponse
from kma.src.core.rag_engine import RAGManager
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


async def _parse(request: Request, model: type[BaseModel]) -> Any:
    """
    Read the request body into *model*.

    An empty body counts as ``{}``.  Returns ``None`` when the body is not
    JSON, not an object, or does not validate.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw.strip() else {}
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return model.model_validate(payload)
    except ValidationError:
        return None


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: Request, rag: RAGManager = Depends(get_rag_manager)) -> ChatResponse | JSONResponse:
    body = await _parse(request, ChatRequest)
    if body is None or not body.message or not body.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    try:
        result = await rag.generate_response(body.message)
    except Exception:
        logger.exception("[API] Chat request failed.")
        return JSONResponse(status_code=500, content={"error": "Failed to generate response"})

    return ChatResponse(response=result.response, sources=result.sources)


@router.post("/index-documents", response_model=IndexResponse)
async def index_documents(request: Request, indexer: DocumentIndexer = Depends(get_indexer)) -> IndexResponse | JSONResponse:
    body = await _parse(request, IndexRequest)
    if body is None:
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})

    try:
        stats = await run_in_threadpool(indexer.run, reindex=body.reindex, force_recreate=body.force_recreate)
    except Exception as exc:
        logger.exception("[API] Error indexing documents.")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to index documents", "details": str(exc) or type(exc).__name__})

    return IndexResponse(stats=stats)


@router.get("/index-documents")
def index_documents_info() -> dict[str, Any]:
    return {
        "endpoint": "Document Indexing API",
        "description": "Use POST to index KMA documents to the vector database",
        "usage": {
            "reindex": "Set to true to delete existing documents before indexing",
            "forceRecreate": "Set to true to drop and recreate the index before indexing",
        },
    }
