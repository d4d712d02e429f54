"""
KMA Assistant - RAG Engine
===========================
Answers on-call questions with retrieval-augmented generation.

``RAGManager`` flow:
    1. Validate the message.
    2. Retrieve → vector search for ``top_k`` candidates.
    3. Filter → keep hits with cosine similarity ≥ ``threshold``.
       A weak best match means the question is outside the knowledge
       base, and weak text would mislead the model.
    4. Build prompt → grounded (system + context + question +
       instructions) or ungrounded (system + question + note).
    5. Call Gemini → async LLM invocation; its failure propagates.
    6. Return the answer text and the citations of the kept hits.

Search failures are logged and swallowed: the question is answered
without grounding rather than failing the request.

Usage:
    from kma.src.core.rag_engine import RAGManager, build_llm
    rag = RAGManager(vector_store, build_llm())
    result = await rag.generate_response("orders-api pool exhausted, what now?")
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from kma.config.prompt_templates import NO_CONTEXT_NOTE, RAG_INSTRUCTIONS, SYSTEM_PROMPT, USER_QUESTION_PREFIX
from kma.config.settings import settings
from kma.src.core.models import SearchResult, SourceCitation
from kma.src.core.rag_formatter import format_documents_for_rag
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)


class SearchBackend(Protocol):
    """The slice of ``KMAVectorStore`` the chat handler needs."""

    def search(self, query_text: str, top_k: int = 5, filter_dict: dict | None = None) -> list[SearchResult]: ...


@dataclass
class ChatResult:
    response: str
    sources: list[SourceCitation] | None = None


# ══════════════════════════════════════════════════════════════════════
#  PROMPT BUILDERS
# ══════════════════════════════════════════════════════════════════════


def create_prompt_with_context(context: str, message: str) -> str:
    return "\n".join([SYSTEM_PROMPT, "", context, "", f"{USER_QUESTION_PREFIX} {message}", "", RAG_INSTRUCTIONS])


def create_prompt_without_context(message: str) -> str:
    return "\n".join([SYSTEM_PROMPT, "", f"{USER_QUESTION_PREFIX} {message}", "", NO_CONTEXT_NOTE])


def build_llm() -> BaseChatModel:
    """Initialise the Gemini chat model via LangChain."""
    from langchain_google_genai import ChatGoogleGenerativeAI

    llm = ChatGoogleGenerativeAI(model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
    logger.info("LLM initialised: %s (temperature=%.1f)", settings.LLM_MODEL, settings.LLM_TEMPERATURE)
    return llm


def _message_text(message: object) -> str:
    """Plain text of a chat-model reply (string or list-of-parts content)."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(part if isinstance(part, str) else str(part.get("text", "")) for part in content)
    return str(content)


# ══════════════════════════════════════════════════════════════════════
#  RAG MANAGER
# ══════════════════════════════════════════════════════════════════════


class RAGManager:
    """
    Orchestrates retrieve → filter → prompt → generate.

    Parameters
    ----------
    vector_store
        Anything with ``search(query_text, top_k)`` (normally ``KMAVectorStore``).
    llm
        A LangChain chat model exposing ``ainvoke``.
    top_k
        Candidates per question.  Defaults to ``settings.SEARCH_TOP_K``.
    threshold
        Minimum similarity kept as context.  Defaults to
        ``settings.SIMILARITY_THRESHOLD``.
    """

    __slots__ = ("_store", "_llm", "_top_k", "_threshold")

    def __init__(self, vector_store: SearchBackend, llm: BaseChatModel, top_k: int | None = None, threshold: float | None = None) -> None:
        self._store = vector_store
        self._llm = llm
        self._top_k = top_k or settings.SEARCH_TOP_K
        self._threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold


    def retrieve(self, message: str) -> list[SearchResult]:
        """
        Return the candidates scoring at or above the threshold.

        Any search error is logged and treated as "no results".
        """
        try:
            results = self._store.search(message, top_k=self._top_k)
        except Exception:
            logger.warning("[RAG] Failed to search knowledge base — answering without context.", exc_info=True)
            return []

        relevant = [r for r in results if r.score >= self._threshold]

        if relevant:
            logger.info("[RAG] Found %d relevant document(s) (scores: %s)", len(relevant), ", ".join(f"{r.score:.3f}" for r in relevant))
        elif results:
            logger.info("[RAG] No relevant documents — highest score: %.3f (threshold: %.2f)", max(r.score for r in results), self._threshold)
        return relevant


    async def generate_response(self, message: str | None) -> ChatResult:
        """
        Answer *message*, grounded in the knowledge base when possible.

        Raises
        ------
        ValueError
            If *message* is missing or blank.
        Exception
            Whatever the LLM client raises; LLM failures are not recovered.
        """
        if not message or not message.strip():
            raise ValueError("Message is required")

        t_start = time.perf_counter()

        relevant = self.retrieve(message)
        search_ms = (time.perf_counter() - t_start) * 1000

        if relevant:
            prompt = create_prompt_with_context(format_documents_for_rag(relevant), message)
        else:
            prompt = create_prompt_without_context(message)

        t_llm = time.perf_counter()
        try:
            reply = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception:
            logger.exception("[RAG] LLM call failed.")
            raise
        answer = _message_text(reply)
        llm_ms = (time.perf_counter() - t_llm) * 1000

        logger.info("[RAG] Answered in %.1fms (search=%.1f, llm=%.1f, %d chars, grounded=%s)", (time.perf_counter() - t_start) * 1000, search_ms, llm_ms, len(answer), bool(relevant))

        sources = [r.to_citation() for r in relevant] or None
        return ChatResult(response=answer, sources=sources)
