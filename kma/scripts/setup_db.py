"""
KMA Assistant - Database Setup & Indexing Script
=================================================
CLI entry point that orchestrates:
    1. Load settings (fail-fast on a missing ``GOOGLE_API_KEY``).
    2. Build the embedder and ``KMAVectorStore``.
    3. Run the ``DocumentIndexer`` over the knowledge-base directory.
    4. Print a structured execution summary with timing breakdown.

Flags:
    --reindex         Delete every row before indexing.
    --force-recreate  Drop and recreate the table before indexing.
    --drop-only       Drop the table and exit immediately (no indexing).
    -v, --verbose     Log at DEBUG level.

Usage:
    python -m kma.scripts.setup_db
    python -m kma.scripts.setup_db --reindex
    python -m kma.scripts.setup_db --force-recreate
    python -m kma.scripts.setup_db --drop-only
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="setup_db", description="KMA Assistant — initialise the vector table and index the knowledge base.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--reindex", action="store_true", default=False, help="Delete every row before indexing.")
    group.add_argument("--force-recreate", action="store_true", default=False, help="Drop and recreate the table before indexing.")
    group.add_argument("--drop-only", action="store_true", default=False, help="Drop the table and exit (no indexing).")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Log at DEBUG level regardless of ENV.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    t_start = time.perf_counter()

    # ── 0. Load settings + .env (timed) ────────────────────────────────
    t_settings = time.perf_counter()
    try:
        from kma.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error — check your .env file:\n")
        print(f"  {exc}")
        print()
        return 1
    settings_ms = (time.perf_counter() - t_settings) * 1000

    from kma.src.utils.logger import get_logger, set_level
    logger = get_logger(__name__)
    if args.verbose:
        set_level(logging.DEBUG)

    _print_header(settings)

    # ── 1. Embedder + store (timed) ────────────────────────────────────
    from kma.src.core.embeddings import build_embedder, embedding_dimension
    from kma.src.database.vector_store import KMAVectorStore

    t_store = time.perf_counter()
    try:
        embedder = build_embedder()
        store = KMAVectorStore(embedder, dimension=embedding_dimension())
    except Exception:
        logger.exception("Failed to initialise the embedder or vector store.")
        return 1
    store_ms = (time.perf_counter() - t_store) * 1000

    if args.drop_only:
        store.delete_index()
        logger.info("--drop-only: table dropped. Exiting.")
        return 0

    # ── 2. Index ───────────────────────────────────────────────────────
    from kma.src.core.document_processor import DocumentProcessor
    from kma.src.core.indexer import DocumentIndexer

    indexer = DocumentIndexer(store, DocumentProcessor(embedder))
    try:
        stats = indexer.run(reindex=args.reindex, force_recreate=args.force_recreate)
    except Exception:
        logger.exception("Indexing failed.")
        return 1

    # ── 3. Summary ─────────────────────────────────────────────────────
    elapsed = time.perf_counter() - t_start
    print()
    print("=" * 60)
    print("  EXECUTION SUMMARY")
    print("-" * 60)
    for doc in stats.documents:
        print(f"  {doc.filename:<40} {doc.chunks:>4} chunk(s)")
    print("-" * 60)
    print(f"  Documents indexed    : {stats.total_documents}")
    print(f"  Chunks stored        : {stats.total_chunks}")
    print(f"  Rows in table        : {store.count()}")
    print("-" * 60)
    print(f"  Settings + .env load : {settings_ms:>8.1f}ms")
    print(f"  Embedder + store     : {store_ms:>8.1f}ms")
    print(f"  Total elapsed        : {elapsed:>8.2f}s")
    print("=" * 60)
    print()
    return 0


def _print_header(settings: object) -> None:
    print()
    print("=" * 60)
    print("  KMA ASSISTANT — Vector Table Setup & Indexing")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")                       # type: ignore[attr-defined]
    print(f"  Embeddings   : {settings.EMBEDDING_PROVIDER} ({settings.EMBEDDING_MODEL})")  # type: ignore[attr-defined]
    print(f"  LanceDB      : {settings.LANCEDB_URI}")               # type: ignore[attr-defined]
    print(f"  Table        : {settings.LANCEDB_TABLE_NAME}")        # type: ignore[attr-defined]
    print(f"  Source dir   : {settings.KMA_DOCS_DIR}")              # type: ignore[attr-defined]
    print(f"  Chunk size   : {settings.CHUNK_SIZE} words (overlap {settings.CHUNK_OVERLAP})")  # type: ignore[attr-defined]
    print("=" * 60)
    print()


if __name__ == "__main__":
    sys.exit(main())
