"""Tests for DocumentIndexer: call order and an end-to-end run on LanceDB."""

from unittest.mock import MagicMock

import pytest

from kma.src.core.document_processor import DocumentProcessor
from kma.src.core.embeddings import HASH_EMBEDDING_DIMENSION
from kma.src.core.indexer import DocumentIndexer
from kma.src.database.vector_store import KMAVectorStore


def _mock_store() -> MagicMock:
    store = MagicMock(spec=KMAVectorStore)
    store.upsert_records.return_value = 0
    return store


def _store_calls(store: MagicMock) -> list[str]:
    return [name for name, _, _ in store.method_calls]


@pytest.mark.parametrize(
    "reindex, force_recreate, expected",
    [
        (False, False, ["initialize_index", "upsert_records"]),
        (True, False, ["initialize_index", "delete_all", "upsert_records"]),
        (False, True, ["delete_index", "initialize_index", "upsert_records"]),
        (True, True, ["delete_index", "initialize_index", "upsert_records"]),
    ],
)
def test_run_call_order(kma_dir, hash_embedder, reindex, force_recreate, expected):
    store = _mock_store()
    indexer = DocumentIndexer(store, DocumentProcessor(hash_embedder), docs_dir=kma_dir)

    indexer.run(reindex=reindex, force_recreate=force_recreate)

    assert _store_calls(store) == expected


def test_run_empty_knowledge_base(tmp_path, hash_embedder):
    store = _mock_store()
    stats = DocumentIndexer(store, DocumentProcessor(hash_embedder), docs_dir=tmp_path).run()

    assert stats.total_documents == 0
    assert stats.total_chunks == 0
    assert stats.documents == []
    store.upsert_records.assert_called_once_with([])


def test_run_aborts_when_processing_fails(tmp_path, hash_embedder):
    store = _mock_store()
    indexer = DocumentIndexer(store, DocumentProcessor(hash_embedder), docs_dir=tmp_path / "missing")

    with pytest.raises(FileNotFoundError):
        indexer.run()
    store.upsert_records.assert_not_called()


def test_run_against_lancedb(tmp_path, kma_dir, hash_embedder):
    store = KMAVectorStore(hash_embedder, dimension=HASH_EMBEDDING_DIMENSION, uri=str(tmp_path / "lancedb"), table_name="kma_index_test")
    indexer = DocumentIndexer(store, DocumentProcessor(hash_embedder), docs_dir=kma_dir)

    stats = indexer.run()

    assert stats.total_documents == 2
    assert stats.total_chunks == 4
    assert [(d.filename, d.chunks) for d in stats.documents] == [("001_high_cpu_usage.md", 3), ("002_disk_full.md", 1)]
    assert stats.documents[0].alert_type == "High Cpu Usage"
    assert store.count() == 4

    indexer.run()
    assert store.count() == 4

    (kma_dir / "002_disk_full.md").unlink()
    stats = indexer.run(reindex=True)
    assert stats.total_chunks == 3
    assert store.count() == 3

    stats = indexer.run(force_recreate=True)
    assert store.count() == 3
