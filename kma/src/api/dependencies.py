"""
FastAPI dependency providers.

The handlers are built once by the application lifespan and kept on
``app.state``; routes receive them through ``Depends`` so tests can swap
them with ``app.dependency_overrides``.
"""

from fastapi import Request

from kma.src.core.indexer import DocumentIndexer
from kma.src.core.rag_engine import RAGManager


def get_rag_manager(request: Request) -> RAGManager:
    return request.app.state.rag_manager


def get_indexer(request: Request) -> DocumentIndexer:
    return request.app.state.indexer
