"""Tests for KMAVectorStore against a real local LanceDB directory."""

import warnings

import pytest

from kma.src.core.document_processor import DocumentProcessor
from kma.src.core.embeddings import HASH_EMBEDDING_DIMENSION
from kma.src.core.models import ChunkMetadata, VectorRecord
from kma.src.database.vector_store import IndexNotReadyError, KMAVectorStore


@pytest.fixture
def store(tmp_path, hash_embedder) -> KMAVectorStore:
    return KMAVectorStore(hash_embedder, dimension=HASH_EMBEDDING_DIMENSION, uri=str(tmp_path / "lancedb"), table_name="kma_test", batch_size=2)


@pytest.fixture
def records(kma_dir, hash_embedder) -> list[VectorRecord]:
    processed = DocumentProcessor(hash_embedder).process_all_documents(kma_dir)
    return [r for doc in processed for r in doc.chunks]


def _record(record_id: str, vector: list[float], content: str = "text") -> VectorRecord:
    return VectorRecord(id=record_id, vector=vector, metadata=ChunkMetadata(filename="x.md", title="X", content=content))


# -------------------------------------------------------------------------
# Lifecycle
# -------------------------------------------------------------------------


def test_initialize_index_creates_table(store):
    assert not store.table_exists()
    store.initialize_index(timeout=5)
    assert store.table_exists()
    assert store.count() == 0


def test_initialize_index_is_idempotent(store, records):
    store.initialize_index(timeout=5)
    store.upsert_records(records)
    store.initialize_index(timeout=5)
    assert store.count() == len(records)


def test_initialize_index_times_out(store, monkeypatch):
    monkeypatch.setattr(KMAVectorStore, "_try_open", lambda self: False)
    with pytest.raises(IndexNotReadyError):
        store.initialize_index(timeout=0.05, initial_wait=0.01, max_wait=0.02)


def test_delete_index(store):
    store.initialize_index(timeout=5)
    store.delete_index()
    assert not store.table_exists()
    store.delete_index()


def test_table_listing_uses_current_api(store):
    with warnings.catch_warnings():
        warnings.filterwarnings("error", message=".*table_names.*", category=DeprecationWarning)
        assert not store.table_exists()
        store.initialize_index(timeout=5)
        assert store.table_exists()


def test_operations_before_initialize_fail(store, records):
    with pytest.raises(RuntimeError):
        store.upsert_records(records)
    with pytest.raises(RuntimeError):
        store.search("anything")


# -------------------------------------------------------------------------
# Writes
# -------------------------------------------------------------------------


def test_upsert_in_batches_and_replace_on_same_id(store, records):
    store.initialize_index(timeout=5)

    assert store.upsert_records(records) == len(records)
    assert store.upsert_records(records) == len(records)

    assert store.count() == len(records)


def test_upsert_nothing(store):
    store.initialize_index(timeout=5)
    assert store.upsert_records([]) == 0


def test_upsert_rejects_wrong_dimension(store):
    store.initialize_index(timeout=5)
    with pytest.raises(Exception):
        store.upsert_records([_record("bad", [0.1, 0.2, 0.3])])


def test_delete_all_tolerates_empty_and_missing(store, records):
    store.delete_all()
    store.initialize_index(timeout=5)
    store.delete_all()

    store.upsert_records(records)
    store.delete_all()
    assert store.count() == 0


def test_delete_by_filename(store, records):
    store.initialize_index(timeout=5)
    store.upsert_records(records)

    store.delete_by_filename("002_disk_full.md")

    remaining = store.count()
    assert remaining == len([r for r in records if r.metadata.filename != "002_disk_full.md"])


# -------------------------------------------------------------------------
# Search
# -------------------------------------------------------------------------


def test_search_exact_text_ranks_first(store, records):
    store.initialize_index(timeout=5)
    store.upsert_records(records)
    target = records[1]

    results = store.search(target.metadata.content, top_k=2)

    assert len(results) == 2
    assert results[0].id == target.id
    assert results[0].score == pytest.approx(1.0, abs=1e-4)
    assert results[0].score >= results[1].score
    assert results[0].metadata.content == target.metadata.content
    assert results[0].metadata.section == target.metadata.section
    assert results[0].metadata.total_chunks == target.metadata.total_chunks


def test_search_restores_missing_section_as_none(store, hash_embedder):
    store.initialize_index(timeout=5)
    store.upsert_records([_record("x.md_0_0", hash_embedder.embed_query("text"))])

    (result,) = store.search("text", top_k=1)
    assert result.metadata.section is None


def test_search_with_filter(store, records):
    store.initialize_index(timeout=5)
    store.upsert_records(records)

    results = store.search("logs", top_k=10, filter_dict={"filename": "002_disk_full.md"})

    assert results
    assert {r.metadata.filename for r in results} == {"002_disk_full.md"}


def test_search_filter_rejects_unknown_field(store, records):
    store.initialize_index(timeout=5)
    store.upsert_records(records)
    with pytest.raises(ValueError):
        store.search("logs", filter_dict={"severity": "P1"})
