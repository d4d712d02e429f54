"""
KMA Assistant - DocumentProcessor
==================================
Turns knowledge-base markdown files into embedded vector records:
read → extract metadata → chunk → embed.

Key design decisions:
    • **Dependency Injection** – receives the embedder; the vector store
      is not touched here (see ``DocumentIndexer``).
    • **Sequential** – files are processed one after another in sorted
      order.  A failure on any file aborts the whole batch; there is no
      partial-success policy.
    • **Batched embedding** – chunk texts are sent through
      ``embed_documents`` in batches of ``EMBED_BATCH_SIZE``.  Each
      chunk still gets exactly one vector.

Usage:
    from kma.src.core.document_processor import DocumentProcessor
    processor = DocumentProcessor(embedder)
    processed = processor.process_all_documents(settings.KMA_DOCS_DIR)
"""

from __future__ import annotations

import time
from pathlib import Path

from kma.config.settings import settings
from kma.src.core.chunker import create_document_chunks, validate_window
from kma.src.core.embeddings import Embedder
from kma.src.core.models import ChunkMetadata, DocumentMetadata, KnowledgeDocument, ProcessedDocument, VectorRecord
from kma.src.utils.logger import get_logger
from kma.src.utils.text_utils import extract_alert_type, extract_metadata_fields, extract_title

logger = get_logger(__name__)

_KMA_EXTENSION = ".md"


class DocumentProcessor:
    """
    Load, chunk and embed KMA documents.

    Parameters
    ----------
    embedder
        Any ``Embedder`` (hosted Gemini model or the hash stand-in).
    chunk_size, overlap
        Word-window parameters.  Default to ``settings.CHUNK_SIZE`` /
        ``settings.CHUNK_OVERLAP``.
    batch_size
        Texts per embedding request.  Defaults to ``settings.EMBED_BATCH_SIZE``.

    Raises
    ------
    ValueError
        If ``overlap`` is not in ``[0, chunk_size)``.
    """

    __slots__ = ("_embedder", "_chunk_size", "_overlap", "_batch_size")

    def __init__(self, embedder: Embedder, chunk_size: int | None = None, overlap: int | None = None, batch_size: int | None = None) -> None:
        self._embedder = embedder
        self._chunk_size = chunk_size or settings.CHUNK_SIZE
        self._overlap = settings.CHUNK_OVERLAP if overlap is None else overlap
        self._batch_size = batch_size or settings.EMBED_BATCH_SIZE
        validate_window(self._chunk_size, self._overlap)

    # ══════════════════════════════════════════════════════════════════
    #  LOADING
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def load_document(path: Path | str) -> KnowledgeDocument:
        """
        Read one KMA file and extract its title and metadata.

        Raises
        ------
        OSError
            If the file does not exist or cannot be read.
        UnicodeDecodeError
            If the file is not valid UTF-8.
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.exception("[PROCESSOR] Error loading KMA document %s", path)
            raise

        filename = path.name
        metadata = DocumentMetadata(alert_type=extract_alert_type(filename, content), **extract_metadata_fields(content))
        return KnowledgeDocument(filename=filename, title=extract_title(content, filename), content=content, metadata=metadata)


    def load_all_documents(self, docs_dir: Path | str) -> list[KnowledgeDocument]:
        """
        Load every ``.md`` file in *docs_dir* (sorted by name).

        Raises
        ------
        FileNotFoundError
            If *docs_dir* does not exist.
        """
        source = Path(docs_dir)
        if not source.is_dir():
            raise FileNotFoundError(f"Knowledge-base directory not found: {source}")

        files = sorted(f for f in source.iterdir() if f.is_file() and f.suffix == _KMA_EXTENSION)
        logger.info("[PROCESSOR] %d KMA file(s) found in %s", len(files), source)
        return [self.load_document(f) for f in files]

    # ══════════════════════════════════════════════════════════════════
    #  CHUNK + EMBED
    # ══════════════════════════════════════════════════════════════════

    def process_document(self, document: KnowledgeDocument) -> ProcessedDocument:
        """
        Chunk *document* and embed every chunk.

        Embedding errors propagate unchanged; nothing is cached.
        """
        t_start = time.perf_counter()
        chunks = create_document_chunks(document.content, document.filename, document.title, self._chunk_size, self._overlap)

        texts = [c.content for c in chunks]
        vectors: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            try:
                vectors.extend(self._embedder.embed_documents(batch))
            except Exception as exc:
                logger.error("[PROCESSOR] Embedding batch %d–%d of '%s' failed: %s", i, i + len(batch) - 1, document.filename, exc)
                raise

        if len(vectors) != len(chunks):
            raise RuntimeError(f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks of '{document.filename}'")

        records = [VectorRecord(id=chunk.id, vector=vector, metadata=ChunkMetadata.from_chunk(chunk)) for chunk, vector in zip(chunks, vectors)]

        elapsed_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[PROCESSOR] '%s' → %d record(s) in %.1fms.", document.filename, len(records), elapsed_ms)
        return ProcessedDocument(document=document, chunks=records)


    def process_all_documents(self, docs_dir: Path | str | None = None) -> list[ProcessedDocument]:
        """Load and process every KMA in *docs_dir* (default ``settings.KMA_DOCS_DIR``), in order."""
        documents = self.load_all_documents(docs_dir or settings.KMA_DOCS_DIR)
        return [self.process_document(doc) for doc in documents]
