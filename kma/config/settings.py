"""
KMA Assistant - Centralized Configuration
==========================================
Every tunable of the assistant (model names, vector table, chunk window,
retrieval cut-offs) is a typed ``BaseSettings`` field read from the
environment or the ``.env`` file next to ``pyproject.toml``.

Security
--------
- ``GOOGLE_API_KEY`` is typed as ``SecretStr`` and has **no default value**.
  It authenticates both the Gemini chat model and the Gemini embedding
  model.  If the key is missing at startup, Pydantic raises a
  ``ValidationError`` with a clear error message.
- ``LANCEDB_API_KEY`` is optional.  It is only needed when
  ``LANCEDB_URI`` points at a hosted ``db://`` database.

Paths
-----
``KMA_DOCS_DIR`` and the default local ``LANCEDB_URI`` hang off the
resolved project root, so scripts and the API agree on locations
whatever the working directory.

Embeddings
----------
``EMBEDDING_PROVIDER`` selects the embedding client.  ``"google"`` uses
the hosted Gemini embedding model (``EMBEDDING_DIMENSION`` wide);
``"hash"`` uses the deterministic 384-dim stand-in, which carries no
semantic signal.  The vector table is always declared with the width of
the selected provider.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    KMA Assistant settings.

    Only ``GOOGLE_API_KEY`` lacks a default; importing this module
    without it raises ``ValidationError``.

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr
        API key for Google AI Studio (Gemini).  **Required.**
        Access the raw value with ``settings.GOOGLE_API_KEY.get_secret_value()``.
    LANCEDB_URI : str
        Local directory or hosted ``db://`` URI of the vector database.
    LANCEDB_API_KEY : SecretStr | None
        API key for a hosted LanceDB database.
    LANCEDB_TABLE_NAME : str
        Name of the vector table (the "index") holding KMA chunks.
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    LOG_LEVEL : str | None
        Explicit log level; overrides the ENV-derived default.
    CHUNK_SIZE : int
        Words per chunk.
    CHUNK_OVERLAP : int
        Words shared by consecutive chunks of the same section.
    EMBEDDING_PROVIDER : Literal["google", "hash"]
        Which embedding client to build.
    SEARCH_TOP_K : int
        Candidates fetched from the vector table for each chat question.
    SIMILARITY_THRESHOLD : float
        Minimum cosine similarity for a candidate to be used as context.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    KMA_DOCS_DIR: Path = BASE_DIR / "data" / "kma"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None

    # ── API Keys (REQUIRED — no default) ───────────────────────────────
    GOOGLE_API_KEY: SecretStr

    # ── LanceDB ────────────────────────────────────────────────────────
    LANCEDB_URI: str = str(BASE_DIR / "data" / "lancedb")
    LANCEDB_API_KEY: SecretStr | None = None
    LANCEDB_REGION: str = "us-east-1"
    LANCEDB_TABLE_NAME: str = "kma_documents"
    UPSERT_BATCH_SIZE: int = 100

    # ── Index readiness wait ───────────────────────────────────────────
    INDEX_READY_TIMEOUT: float = 60.0
    INDEX_READY_INITIAL_WAIT: float = 1.0
    INDEX_READY_MAX_WAIT: float = 8.0

    # ── Ingestion Parameters ───────────────────────────────────────────
    CHUNK_SIZE: int = 500
    CHUNK_OVERLAP: int = 50

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_PROVIDER: Literal["google", "hash"] = "google"
    EMBEDDING_MODEL: str = "gemini-embedding-001"
    EMBEDDING_DIMENSION: int = 3072
    EMBED_BATCH_SIZE: int = 64
    LLM_MODEL: str = "gemini-2.0-flash"
    LLM_TEMPERATURE: float = 0.2

    # ── Retrieval ──────────────────────────────────────────────────────
    SEARCH_TOP_K: int = 2
    SIMILARITY_THRESHOLD: float = 0.5

    # ── HTTP ───────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173", "http://127.0.0.1:5173"]

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("CHUNK_SIZE")
    @classmethod
    def _chunk_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"CHUNK_SIZE must be ≥ 1, got {v}")
        return v


    @field_validator("SIMILARITY_THRESHOLD")
    @classmethod
    def _threshold_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"SIMILARITY_THRESHOLD must be 0–1, got {v}")
        return v


    @field_validator("SEARCH_TOP_K")
    @classmethod
    def _top_k_range(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"SEARCH_TOP_K must be 1–100, got {v}")
        return v


    @field_validator("UPSERT_BATCH_SIZE", "EMBED_BATCH_SIZE")
    @classmethod
    def _batch_range(cls, v: int) -> int:
        if not 1 <= v <= 1000:
            raise ValueError(f"batch size must be 1–1000, got {v}")
        return v


    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> "Settings":
        if not 0 <= self.CHUNK_OVERLAP < self.CHUNK_SIZE:
            raise ValueError(f"CHUNK_OVERLAP must be in [0, CHUNK_SIZE), got {self.CHUNK_OVERLAP} with CHUNK_SIZE={self.CHUNK_SIZE}")
        return self

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from kma.config.settings import settings
settings = Settings()
