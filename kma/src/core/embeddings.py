"""
KMA Assistant - Embedding Clients
==================================
Two interchangeable implementations of the ``Embedder`` protocol:

``GoogleGenerativeAIEmbeddings`` (provider ``"google"``)
    Hosted Gemini embedding model via ``langchain-google-genai``.  Its
    width is ``settings.EMBEDDING_DIMENSION``.

``HashEmbedder`` (provider ``"hash"``)
    A 32-bit rolling hash of the text expanded into 384 values
    ``(sin(hash + i) + 1) / 2``.  Deterministic and dependency-free, but
    **non-semantic**: near-duplicate texts map to unrelated vectors, so
    nearest-neighbour search over it is meaningless.  Use it for offline
    development and tests only.

The vector table must be declared with exactly the width of the
selected provider; use ``embedding_dimension()`` to keep them in step.

Usage:
    from kma.src.core.embeddings import build_embedder, embedding_dimension
    embedder = build_embedder("hash")
    vector = embedder.embed_query("disk full on db-01")
"""

from __future__ import annotations

import math
import struct
from typing import Literal, Protocol, runtime_checkable

from kma.config.settings import settings
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)

EmbeddingProvider = Literal["google", "hash"]

HASH_EMBEDDING_DIMENSION = 384


# ── Embedder Protocol ─────────────────────────────────────────────────

@runtime_checkable
class Embedder(Protocol):
    """Structural type for any LangChain-compatible embedding model."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


# ── Hash stand-in ─────────────────────────────────────────────────────

def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def simple_hash(text: str) -> int:
    """
    ``h = h * 31 + unit`` over the UTF-16 code units of *text*, wrapped to
    a signed 32-bit integer after every step; the absolute value is returned.
    """
    encoded = text.encode("utf-16-le")
    h = 0
    for (unit,) in struct.iter_unpack("<H", encoded):
        h = _to_int32((h << 5) - h + unit)
    return abs(h)


class HashEmbedder:
    """Deterministic, non-semantic embedder producing 384-dim vectors in [0, 1]."""

    __slots__ = ("dimension",)

    def __init__(self, dimension: int = HASH_EMBEDDING_DIMENSION) -> None:
        self.dimension = dimension
        logger.warning("[EMBED] HashEmbedder in use — vectors carry no semantic similarity signal.")


    def embed_query(self, text: str) -> list[float]:
        seed = simple_hash(text)
        vector = [(math.sin(seed + i) + 1) / 2 for i in range(self.dimension)]
        logger.debug("[EMBED] Hash embedding for: %.50s…", text)
        return vector


    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]


    def __repr__(self) -> str:
        return f"HashEmbedder(dimension={self.dimension})"


# ── Factory ───────────────────────────────────────────────────────────

def embedding_dimension(provider: EmbeddingProvider | None = None) -> int:
    """Return the vector width produced by *provider* (default: settings)."""
    provider = provider or settings.EMBEDDING_PROVIDER
    if provider == "hash":
        return HASH_EMBEDDING_DIMENSION
    return settings.EMBEDDING_DIMENSION


def build_embedder(provider: EmbeddingProvider | None = None) -> Embedder:
    """
    Construct the embedding client for *provider* (default: settings).

    Raises:
        ValueError: for an unknown provider name.
    """
    provider = provider or settings.EMBEDDING_PROVIDER

    if provider == "hash":
        return HashEmbedder()

    if provider == "google":
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        embedder = GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
        logger.info("[EMBED] Gemini embeddings initialised: %s (%d dims)", settings.EMBEDDING_MODEL, settings.EMBEDDING_DIMENSION)
        return embedder

    raise ValueError(f"Unknown embedding provider: {provider!r}")
