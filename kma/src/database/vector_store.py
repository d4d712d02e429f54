"""
KMA Assistant - KMAVectorStore
===============================
OOP wrapper around LanceDB providing a clean interface for:
  • Table creation with a strict PyArrow schema and a readiness wait
  • Batched upserts of embedded chunk records
  • Cosine similarity search with optional equality filters
  • Deleting rows or dropping the whole table

Design decisions:
  • **Explicit lifecycle** — one store is constructed by the process
    entry point (API lifespan or CLI) and injected into handlers.  There
    is no module-level connection cache.
  • **Dependency Injection** — the embedder is injected, never
    hard-coded, making the store testable with the hash embedder.
  • **Local or hosted** — ``uri`` may be a directory or a LanceDB Cloud
    ``db://`` URI (``api_key`` + ``region`` required for the latter).
  • **Fixed width** — the ``vector`` column is a fixed-size list of the
    declared dimension, so a mismatched embedder fails on write.
  • **Bounded readiness wait** — after creation the table is polled with
    capped exponential backoff until it answers or ``timeout`` expires.

Usage:
    from kma.src.core.embeddings import build_embedder, embedding_dimension
    from kma.src.database.vector_store import KMAVectorStore

    store = KMAVectorStore(build_embedder(), dimension=embedding_dimension())
    store.initialize_index()
    store.upsert_records(records)
    results = store.search("database connections exhausted", top_k=2)
"""

from __future__ import annotations

from typing import Iterable

import lancedb
import pyarrow as pa
from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay, wait_exponential

from kma.config.settings import settings
from kma.src.core.embeddings import Embedder
from kma.src.core.models import ChunkMetadata, SearchResult, VectorRecord
from kma.src.utils.logger import get_logger

logger = get_logger(__name__)

FilterValue = str | int | float | bool


class IndexNotReadyError(TimeoutError):
    """The vector table did not become queryable before the deadline."""


def build_schema(dimension: int) -> pa.Schema:
    """Arrow schema of the KMA vector table for vectors of *dimension* floats."""
    return pa.schema([
        pa.field("id", pa.utf8()),
        pa.field("vector", pa.list_(pa.float32(), dimension)),
        pa.field("content", pa.utf8()),
        pa.field("filename", pa.utf8()),
        pa.field("title", pa.utf8()),
        pa.field("section", pa.utf8()),
        pa.field("chunk_index", pa.int32()),
        pa.field("total_chunks", pa.int32()),
    ])


def _quote(value: FilterValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


class KMAVectorStore:
    """
    High-level abstraction over a LanceDB vector table.

    Parameters
    ----------
    embedder : Embedder
        Any object satisfying the ``Embedder`` protocol.
    dimension
        Declared vector width; must equal the embedder's output width.
    uri
        Database directory or ``db://`` URI.  Defaults to ``settings.LANCEDB_URI``.
    table_name
        Defaults to ``settings.LANCEDB_TABLE_NAME``.
    api_key, region
        Credentials for a hosted database.  Default to settings.
    batch_size
        Records per write call.  Defaults to ``settings.UPSERT_BATCH_SIZE``.
    """

    __slots__ = ("embedder", "dimension", "schema", "_uri", "_table_name", "_batch_size", "db", "table")

    def __init__(self, embedder: Embedder, dimension: int, uri: str | None = None, table_name: str | None = None, api_key: str | None = None, region: str | None = None, batch_size: int | None = None) -> None:
        self.embedder: Embedder = embedder
        self.dimension: int = dimension
        self.schema: pa.Schema = build_schema(dimension)
        self._uri: str = str(uri or settings.LANCEDB_URI)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self._batch_size: int = batch_size or settings.UPSERT_BATCH_SIZE
        self.table: lancedb.table.Table | None = None

        if api_key is None and settings.LANCEDB_API_KEY is not None:
            api_key = settings.LANCEDB_API_KEY.get_secret_value()

        try:
            if api_key:
                self.db = lancedb.connect(self._uri, api_key=api_key, region=region or settings.LANCEDB_REGION)
            else:
                self.db = lancedb.connect(self._uri)
            logger.info("[STORE] Connected to LanceDB: %s", self._uri)
        except OSError as exc:
            logger.error("[STORE] LanceDB filesystem error at %s: %s", self._uri, exc)
            raise

    # ══════════════════════════════════════════════════════════════════
    #  INDEX LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def _table_names(self) -> list[str]:
        """Every table in the database, following ``list_tables`` pagination."""
        names: list[str] = []
        page_token: str | None = None
        while True:
            page = self.db.list_tables(page_token=page_token)
            names.extend(page.tables)
            page_token = page.page_token
            if not page_token:
                return names


    def table_exists(self) -> bool:
        return self._table_name in self._table_names()


    def initialize_index(self, timeout: float | None = None, initial_wait: float | None = None, max_wait: float | None = None) -> None:
        """
        Create the table if it does not exist and wait until it is usable.

        Raises
        ------
        IndexNotReadyError
            If the table is still not listed and openable after *timeout*
            seconds (default ``settings.INDEX_READY_TIMEOUT``).
        """
        if not self.table_exists():
            logger.info("[STORE] Creating table '%s' (dimension=%d, metric=cosine).", self._table_name, self.dimension)
            self.db.create_table(self._table_name, schema=self.schema, exist_ok=True)

        self._wait_until_ready(
            timeout=settings.INDEX_READY_TIMEOUT if timeout is None else timeout,
            initial_wait=settings.INDEX_READY_INITIAL_WAIT if initial_wait is None else initial_wait,
            max_wait=settings.INDEX_READY_MAX_WAIT if max_wait is None else max_wait,
        )
        logger.info("[STORE] Table '%s' ready (%d rows).", self._table_name, self.count())


    def _wait_until_ready(self, timeout: float, initial_wait: float, max_wait: float) -> None:
        retrying = Retrying(
            stop=stop_after_delay(timeout),
            wait=wait_exponential(multiplier=initial_wait, max=max_wait),
            retry=retry_if_result(lambda ready: not ready),
        )
        try:
            retrying(self._try_open)
        except RetryError as exc:
            raise IndexNotReadyError(f"Table '{self._table_name}' not ready after {timeout:.1f}s") from exc


    def _try_open(self) -> bool:
        """One readiness probe: the table is listed and can be opened."""
        try:
            if not self.table_exists():
                logger.debug("[STORE] Table '%s' not listed yet, waiting…", self._table_name)
                return False
            self.table = self.db.open_table(self._table_name)
            self.table.count_rows()
            return True
        except (OSError, ValueError) as exc:
            logger.debug("[STORE] Table '%s' not ready yet: %s", self._table_name, exc)
            return False


    def _require_table(self) -> lancedb.table.Table:
        if self.table is None:
            if not self.table_exists():
                raise RuntimeError(f"Table '{self._table_name}' does not exist. Call initialize_index() first.")
            self.table = self.db.open_table(self._table_name)
        return self.table


    def delete_index(self) -> None:
        """Drop the table entirely if present."""
        if not self.table_exists():
            logger.info("[STORE] Table '%s' does not exist — nothing to drop.", self._table_name)
            return
        self.db.drop_table(self._table_name)
        self.table = None
        logger.info("[STORE] Dropped table '%s'.", self._table_name)

    # ══════════════════════════════════════════════════════════════════
    #  WRITES
    # ══════════════════════════════════════════════════════════════════

    def _to_rows(self, records: Iterable[VectorRecord]) -> list[dict[str, str | int | list[float]]]:
        return [
            {"id": r.id, "vector": r.vector, "content": r.metadata.content, "filename": r.metadata.filename, "title": r.metadata.title, "section": r.metadata.section or "", "chunk_index": r.metadata.chunk_index, "total_chunks": r.metadata.total_chunks}
            for r in records
        ]


    def upsert_records(self, records: list[VectorRecord]) -> int:
        """
        Insert or replace *records* (matched on ``id``) in fixed-size batches.

        Returns
        -------
        int
            Number of records written.

        Raises
        ------
        RuntimeError
            If the table has not been initialised.
        pyarrow.ArrowInvalid
            If a vector's width differs from the declared dimension.
        """
        table = self._require_table()
        if not records:
            logger.info("[STORE] Nothing to upsert.")
            return 0

        total_batches = (len(records) + self._batch_size - 1) // self._batch_size
        for batch_no, start in enumerate(range(0, len(records), self._batch_size), 1):
            batch = records[start:start + self._batch_size]
            data = pa.Table.from_pylist(self._to_rows(batch), schema=self.schema)
            table.merge_insert("id").when_matched_update_all().when_not_matched_insert_all().execute(data)
            logger.info("[STORE] Upserted batch %d/%d (%d records).", batch_no, total_batches, len(batch))

        logger.info("[STORE] Upserted %d records into '%s'.", len(records), self._table_name)
        return len(records)


    def delete_all(self) -> None:
        """Remove every row.  An empty or missing table counts as success."""
        if not self.table_exists():
            logger.info("[STORE] Table '%s' does not exist — nothing to delete.", self._table_name)
            return

        table = self._require_table()
        if table.count_rows() == 0:
            logger.info("[STORE] Table '%s' is already empty.", self._table_name)
            return

        table.delete("true")
        logger.info("[STORE] All rows deleted from '%s'.", self._table_name)


    def delete_by_filename(self, filename: str) -> None:
        """Remove every chunk of one source document."""
        table = self._require_table()
        table.delete(f"filename = {_quote(filename)}")
        logger.info("[STORE] Deleted rows with filename '%s'.", filename)

    # ══════════════════════════════════════════════════════════════════
    #  READS
    # ══════════════════════════════════════════════════════════════════

    def _where_clause(self, filter_dict: dict[str, FilterValue]) -> str:
        columns = set(self.schema.names) - {"vector"}
        unknown = set(filter_dict) - columns
        if unknown:
            raise ValueError(f"Unknown filter field(s): {sorted(unknown)}")
        return " AND ".join(f"{key} = {_quote(value)}" for key, value in filter_dict.items())


    def search(self, query_text: str, top_k: int = 5, filter_dict: dict[str, FilterValue] | None = None) -> list[SearchResult]:
        """
        Embed *query_text* and return the *top_k* nearest chunks.

        Parameters
        ----------
        query_text
            Natural-language query.
        top_k
            Maximum number of results.
        filter_dict
            Optional equality filters over metadata columns, e.g.
            ``{"filename": "001_disk_full.md"}``.

        Returns
        -------
        list[SearchResult]
            Hits ordered by descending cosine similarity.
        """
        table = self._require_table()

        try:
            query_vector = self.embedder.embed_query(query_text)
        except Exception as exc:
            logger.error("[STORE] Failed to embed query: %s", exc)
            raise

        query = table.search(query_vector).distance_type("cosine").limit(top_k)

        if filter_dict:
            where_str = self._where_clause(filter_dict)
            query = query.where(where_str)
            logger.info("[STORE] Searching with filter: %s", where_str)

        rows = query.to_list()
        results = [
            SearchResult(
                id=row["id"],
                score=1.0 - float(row["_distance"]),
                metadata=ChunkMetadata(filename=row["filename"], title=row["title"], content=row["content"], section=row["section"] or None, chunk_index=row["chunk_index"], total_chunks=row["total_chunks"]),
            )
            for row in rows
        ]
        logger.info("[STORE] Found %d similar chunk(s) for query: %.50s…", len(results), query_text)
        return results


    def count(self) -> int:
        """Return the total number of rows in the table."""
        if not self.table_exists():
            return 0
        return self._require_table().count_rows()


    def __repr__(self) -> str:
        return f"KMAVectorStore(uri='{self._uri}', table='{self._table_name}', dimension={self.dimension})"
