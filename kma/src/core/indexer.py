"""
KMA Assistant - DocumentIndexer
================================
One-shot (re)population of the vector table from the knowledge-base
directory.

Order of operations:
    1. ``force_recreate`` → drop the table.
    2. Create the table if needed and wait until it is ready.
    3. ``reindex`` (without ``force_recreate``) → delete every row.
    4. Process all KMA files (chunk + embed).
    5. Upsert every record in fixed-size batches.

Every step runs sequentially; any failure aborts the run.
"""

from __future__ import annotations

import time
from pathlib import Path

from kma.config.settings import settings
from kma.src.core.document_processor import DocumentProcessor
from kma.src.core.models import DocumentStats, IndexStats
from kma.src.database.vector_store import KMAVectorStore
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)


class DocumentIndexer:
    """
    Parameters
    ----------
    vector_store
        The process-wide ``KMAVectorStore``.
    processor
        ``DocumentProcessor`` sharing the store's embedder.
    docs_dir
        Knowledge-base directory.  Defaults to ``settings.KMA_DOCS_DIR``.
    """

    __slots__ = ("_store", "_processor", "_docs_dir")

    def __init__(self, vector_store: KMAVectorStore, processor: DocumentProcessor, docs_dir: Path | None = None) -> None:
        self._store = vector_store
        self._processor = processor
        self._docs_dir = docs_dir or settings.KMA_DOCS_DIR


    def run(self, reindex: bool = False, force_recreate: bool = False) -> IndexStats:
        t_start = time.perf_counter()
        logger.info("[INDEX] Starting document indexing (reindex=%s, force_recreate=%s)…", reindex, force_recreate)

        if force_recreate:
            logger.warning("[INDEX] Force recreating index…")
            self._store.delete_index()

        self._store.initialize_index()

        if reindex and not force_recreate:
            logger.info("[INDEX] Deleting existing documents…")
            self._store.delete_all()

        processed = self._processor.process_all_documents(self._docs_dir)
        all_records = [record for doc in processed for record in doc.chunks]

        logger.info("[INDEX] Upserting %d document chunk(s)…", len(all_records))
        self._store.upsert_records(all_records)

        stats = IndexStats(
            total_documents=len(processed),
            total_chunks=len(all_records),
            documents=[DocumentStats(filename=doc.document.filename, title=doc.document.title, alert_type=doc.document.metadata.alert_type, chunks=len(doc.chunks)) for doc in processed],
        )
        logger.info("[INDEX] Indexing complete — %d document(s), %d chunk(s) in %.2fs.", stats.total_documents, stats.total_chunks, time.perf_counter() - t_start)
        return stats
