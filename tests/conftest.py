"""Pytest configuration and fixtures for KMA Assistant tests."""

import os

# Settings are read at import time; provide the required key first.
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("EMBEDDING_PROVIDER", "hash")
os.environ.setdefault("ENV", "prod")

from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from langchain_core.messages import AIMessage

from kma.src.api.dependencies import get_indexer, get_rag_manager
from kma.src.core.embeddings import HashEmbedder
from kma.src.core.models import ChunkMetadata, SearchResult
from kma.src.main import create_app


# -------------------------------------------------------------------------
# Fakes
# -------------------------------------------------------------------------


class FakeLLM:
    """Records prompts and answers with a fixed reply."""

    def __init__(self, reply: str = "Restart the pool.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def ainvoke(self, messages):
        self.prompts.append(messages[-1].content)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


class FakeSearchStore:
    """Returns canned search results, or raises."""

    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None):
        self.results = results or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def search(self, query_text, top_k=5, filter_dict=None):
        self.calls.append((query_text, top_k))
        if self.error is not None:
            raise self.error
        return self.results


class RecordingEmbedder(HashEmbedder):
    """Hash embedder that counts ``embed_documents`` calls."""

    __slots__ = ("batches",)

    def __init__(self):
        super().__init__()
        self.batches: list[int] = []

    def embed_documents(self, texts):
        self.batches.append(len(texts))
        return super().embed_documents(texts)


def make_result(score: float, filename: str = "001_db_pool.md", title: str = "DB Pool", section: str | None = "Mitigation", content: str = "Restart the pool.") -> SearchResult:
    return SearchResult(id=f"{filename}_0_0", score=score, metadata=ChunkMetadata(filename=filename, title=title, content=content, section=section))


# -------------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def hash_embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def kma_dir(tmp_path: Path) -> Path:
    """A knowledge-base directory with two small KMAs and one non-markdown file."""
    docs = tmp_path / "kma"
    docs.mkdir()
    (docs / "001_high_cpu_usage.md").write_text(
        "# High CPU Usage\n**System**: web-frontend\n**Severity**: P2\n\n## Diagnosis\nCheck top on the host.\n\n## Mitigation\nScale out the service.\n",
        encoding="utf-8",
    )
    (docs / "002_disk_full.md").write_text("# Disk Full\n**Scope**: single host\n\nClean old logs.\n", encoding="utf-8")
    (docs / "notes.txt").write_text("not a KMA", encoding="utf-8")
    return docs


@pytest.fixture
def app() -> FastAPI:
    """Application without lifespan; tests install handlers via overrides."""
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def override_handlers(app: FastAPI):
    """Install a RAG manager and/or indexer on the app."""

    def _install(rag_manager=None, indexer=None):
        if rag_manager is not None:
            app.dependency_overrides[get_rag_manager] = lambda: rag_manager
        if indexer is not None:
            app.dependency_overrides[get_indexer] = lambda: indexer

    return _install
