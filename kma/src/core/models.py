"""Data models shared by the ingestion pipeline, the vector store and the API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════
#  KNOWLEDGE BASE
# ══════════════════════════════════════════════════════════════════════


class DocumentMetadata(BaseModel):
    """Optional operational fields parsed from a KMA body."""

    alert_type: str | None = None
    severity: str | None = None
    system: str | None = None
    alert_duration: str | None = None
    scope: str | None = None


class KnowledgeDocument(BaseModel):
    """A KMA file as read from disk.  Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    filename: str
    title: str
    content: str
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class DocumentChunk(BaseModel):
    """A word-window slice of a document; the unit of indexing and retrieval."""

    id: str
    content: str
    filename: str
    title: str
    section: str | None = None
    chunk_index: int
    total_chunks: int = 0


# ══════════════════════════════════════════════════════════════════════
#  VECTOR STORE
# ══════════════════════════════════════════════════════════════════════


class ChunkMetadata(BaseModel):
    """Chunk fields stored alongside each vector, including the verbatim text."""

    filename: str
    title: str
    content: str
    section: str | None = None
    chunk_index: int = 0
    total_chunks: int = 0

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk) -> "ChunkMetadata":
        return cls(filename=chunk.filename, title=chunk.title, content=chunk.content, section=chunk.section, chunk_index=chunk.chunk_index, total_chunks=chunk.total_chunks)


class VectorRecord(BaseModel):
    """One row of the vector table: 1:1 with a ``DocumentChunk``."""

    id: str
    vector: list[float]
    metadata: ChunkMetadata


class SourceCitation(BaseModel):
    """Display-only projection of a search hit."""

    filename: str
    title: str
    section: str | None = None


class SearchResult(BaseModel):
    """A single nearest-neighbour hit.  ``score`` is cosine similarity."""

    id: str
    score: float
    metadata: ChunkMetadata

    def to_citation(self) -> SourceCitation:
        return SourceCitation(filename=self.metadata.filename, title=self.metadata.title, section=self.metadata.section)


class ProcessedDocument(BaseModel):
    """A loaded document together with its embedded records."""

    document: KnowledgeDocument
    chunks: list[VectorRecord]


# ══════════════════════════════════════════════════════════════════════
#  API PAYLOADS (camelCase on the wire)
# ══════════════════════════════════════════════════════════════════════


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    message: str | None = None


class ChatResponse(_CamelModel):
    response: str
    sources: list[SourceCitation] | None = None


class IndexRequest(_CamelModel):
    reindex: bool = False
    force_recreate: bool = False

    @field_validator("reindex", "force_recreate", mode="before")
    @classmethod
    def _null_is_false(cls, v: object) -> object:
        return False if v is None else v


class DocumentStats(_CamelModel):
    filename: str
    title: str
    alert_type: str | None = None
    chunks: int


class IndexStats(_CamelModel):
    total_documents: int
    total_chunks: int
    documents: list[DocumentStats]


class IndexResponse(_CamelModel):
    success: bool = True
    message: str = "Documents indexed successfully"
    stats: IndexStats
