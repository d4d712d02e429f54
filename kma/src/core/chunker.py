"""
KMA Assistant - Text Chunker
=============================
Splits a markdown document into section-bounded, size-bounded,
overlapping word windows.

Strategy:
    1. **Section split** – split on markdown headers (``#`` to ``###``)
       with a lookahead, so every section keeps its own header line.
    2. **Word windows** – inside a section, words are separated by
       single spaces.  A section of ``chunk_size`` words or fewer is one
       chunk.  Longer sections are cut into windows of ``chunk_size``
       words advancing by ``chunk_size - overlap``; the first window that
       reaches the last word is the final one.
    3. **Back-fill** – ``total_chunks`` is written on every chunk only
       after the whole document has been chunked.

Chunk ids are ``{filename}_{section_ordinal}_{window_ordinal}``, so
re-chunking identical input yields identical ids.

Usage:
    from kma.src.core.chunker import create_document_chunks
    chunks = create_document_chunks(content, "001_disk_full.md", "Disk Full")
"""

from __future__ import annotations

import re

from kma.src.core.models import DocumentChunk
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 500
DEFAULT_OVERLAP = 50

_SECTION_SPLIT_RE = re.compile(r"(?=^#{1,3}\s)", re.MULTILINE)
_SECTION_HEADER_RE = re.compile(r"^(#{1,3})\s+(.+)", re.MULTILINE)


def validate_window(chunk_size: int, overlap: int) -> None:
    """Reject a word window that is empty or would never advance."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be ≥ 1, got {chunk_size}")
    if not 0 <= overlap < chunk_size:
        raise ValueError(f"overlap must be in [0, chunk_size), got overlap={overlap}, chunk_size={chunk_size}")


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> list[str]:
    """
    Cut *text* into overlapping windows of ``chunk_size`` words.

    Words are the pieces between single spaces; newlines stay inside
    the word they touch.

    Raises:
        ValueError: if ``chunk_size < 1`` or ``overlap`` is not in
            ``[0, chunk_size)`` (the window would never advance).

    Example::

        >>> chunk_text("one two three four five", chunk_size=3, overlap=1)
        ['one two three', 'three four five']
    """
    validate_window(chunk_size, overlap)

    words = text.split(" ")
    if len(words) <= chunk_size:
        return [text]

    step = chunk_size - overlap
    chunks: list[str] = []
    for start in range(0, len(words), step):
        chunks.append(" ".join(words[start:start + chunk_size]))
        if start + chunk_size >= len(words):
            break
    return chunks


def split_sections(content: str) -> list[str]:
    """Split *content* before every ``#``, ``##`` or ``###`` header line."""
    sections = _SECTION_SPLIT_RE.split(content)
    # A header at offset 0 produces an empty leading piece.
    if sections and sections[0] == "":
        sections = sections[1:]
    return sections


def section_title(section: str) -> str | None:
    """Return the header text of *section*, or ``None`` for a header-less preamble."""
    match = _SECTION_HEADER_RE.search(section)
    return match.group(2).strip() if match else None


def create_document_chunks(content: str, filename: str, title: str, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> list[DocumentChunk]:
    """
    Chunk a whole document, section by section.

    Parameters
    ----------
    content
        Raw markdown text of the document.
    filename
        Base name of the source file; prefix of every chunk id.
    title
        Document title copied onto every chunk.
    chunk_size, overlap
        Word-window parameters (see ``chunk_text``).

    Returns
    -------
    list[DocumentChunk]
        Chunks in document order with ``chunk_index`` and ``total_chunks``
        populated.  Blank windows are skipped.
    """
    validate_window(chunk_size, overlap)

    chunks: list[DocumentChunk] = []

    for section_idx, section in enumerate(split_sections(content)):
        header = section_title(section)

        for window_idx, window in enumerate(chunk_text(section.strip(), chunk_size, overlap)):
            if not window.strip():
                continue
            chunks.append(DocumentChunk(id=f"{filename}_{section_idx}_{window_idx}", content=window, filename=filename, title=title, section=header, chunk_index=len(chunks)))

    for chunk in chunks:
        chunk.total_chunks = len(chunks)

    logger.debug("[CHUNKER] '%s' → %d chunk(s).", filename, len(chunks))
    return chunks
