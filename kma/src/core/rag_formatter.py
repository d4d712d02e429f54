"""Render ranked search hits into the context block of a chat prompt."""

from __future__ import annotations

from collections.abc import Sequence

from kma.config.prompt_templates import RAG_CONTEXT_PREAMBLE
from kma.src.core.models import SearchResult


def format_documents_for_rag(results: Sequence[SearchResult]) -> str:
    """
    Format *results*, in the given order, as a markdown context block.

    Each hit becomes::

        ## Document {n}: {title}
        ### {section}            (only when the chunk has a section)
        {content}

        *Source: {filename}*

    An empty sequence yields ``""``; callers treat that as "no context".
    """
    if not results:
        return ""

    blocks: list[str] = [RAG_CONTEXT_PREAMBLE]
    for i, result in enumerate(results, 1):
        meta = result.metadata
        blocks.append(f"## Document {i}: {meta.title}\n")
        if meta.section:
            blocks.append(f"### {meta.section}\n")
        blocks.append(f"{meta.content}\n\n")
        blocks.append(f"*Source: {meta.filename}*\n\n")

    return "".join(blocks)
