"""
KMA Assistant - Application Entry Point
========================================
FastAPI application factory.  ``create_app()`` builds the FastAPI
instance, registers the API routes, and configures CORS.

The lifespan owns every long-lived resource: on startup it builds the
embedder, the ``KMAVectorStore`` connection, the Gemini chat model, and
the handlers that use them, and stores the handlers on ``app.state``.
Nothing is initialised lazily on a first request.

Run:
    python -m kma.src.main
    uvicorn kma.src.main:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kma.config.settings import settings
from kma.src.api.routes import router
from kma.src.core.document_processor import DocumentProcessor
from kma.src.core.embeddings import build_embedder, embedding_dimension
from kma.src.core.indexer import DocumentIndexer
from kma.src.core.rag_engine import RAGManager, build_llm
from kma.src.database.vector_store import KMAVectorStore
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the process-lifetime store and handlers."""
    embedder = build_embedder()
    store = KMAVectorStore(embedder, dimension=embedding_dimension())

    app.state.vector_store = store
    app.state.rag_manager = RAGManager(store, build_llm())
    app.state.indexer = DocumentIndexer(store, DocumentProcessor(embedder))
    logger.info("KMA Assistant started — %r", store)

    yield

    logger.info("KMA Assistant shutting down.")


def create_app() -> FastAPI:
    app = FastAPI(title="KMA Assistant", version="0.1.0", lifespan=lifespan)

    app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("kma.src.main:app", host="0.0.0.0", port=8000)
