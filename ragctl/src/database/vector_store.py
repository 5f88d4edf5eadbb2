"""
ragctl - VectorStore
=====================
OOP wrapper around LanceDB providing a clean interface for:
  • Table creation with a strict PyArrow schema (fixed-size vectors)
  • Single-chunk insertion (content + embedding + metadata)
  • Cosine similarity search with a score floor and top-K cap
  • Compensating deletes for failed ingestion batches

Design decisions:
  • **Singleton DB connection** — ``_get_connection()`` caches the
    ``lancedb.DBConnection`` at module level to avoid file-lock issues.
  • **No embedding here** — callers hand in vectors produced by the
    ``EmbeddingClient``; the store only checks their dimensionality.
  • **Serialised writes** — appends and deletes share one lock so
    concurrent ingestion tasks never race on a table version.
  • Every backend failure is re-raised as ``PersistenceError``.

Usage:
    from ragctl.src.database.vector_store import VectorStore

    store = VectorStore(dimensions=768)
    row_id = store.insert(DocumentChunk(content="...", embedding=[...], metadata={"filename": "a.txt"}))
    results = store.similarity_search(query_vector, threshold=0.5, top_k=5)
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import lancedb
import pyarrow as pa

from ragctl.config.settings import settings
from ragctl.src.core.errors import PersistenceError
from ragctl.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Type Aliases ──────────────────────────────────────────────────────
ChunkMetadata = dict[str, str]
Record = dict[str, str | list[float] | datetime]


# ── Domain Records ────────────────────────────────────────────────────

@dataclass(frozen=True)
class DocumentChunk:
    """One paragraph of an ingested file, ready to be stored."""

    content: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=dict)


@dataclass(frozen=True)
class SimilarityResult:
    """A stored chunk returned by a similarity query."""

    content: str
    similarity: float
    filename: str = ""


def build_schema(dimensions: int) -> pa.Schema:
    """LanceDB table schema for *dimensions*-long embeddings."""
    return pa.schema([
        pa.field("vector", pa.list_(pa.float32(), dimensions)),
        pa.field("id", pa.utf8()),
        pa.field("content", pa.utf8()),
        pa.field("filename", pa.utf8()),
        pa.field("created_at", pa.timestamp("us", tz="UTC")),
    ])


# ── Constants ──────────────────────────────────────────────────────────
_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def _get_connection(db_path: str) -> lancedb.DBConnection:
    """
    Return a **singleton** ``lancedb.DBConnection`` for *db_path*.

    Thread-safe via ``_DB_LOCK``.  Re-uses an existing connection
    for the same path, avoiding file-lock contention when multiple
    ``VectorStore`` instances share the same DB directory.
    """
    if db_path not in _db_connection_cache:
        with _DB_LOCK:
            if db_path not in _db_connection_cache:
                logger.info("Opening new LanceDB connection: %s", db_path)
                _db_connection_cache[db_path] = lancedb.connect(db_path)
    return _db_connection_cache[db_path]


class VectorStore:
    """
    High-level abstraction over a LanceDB vector table.

    Parameters
    ----------
    db_path
        Override the database directory.  Defaults to ``settings.LANCEDB_PATH``.
    table_name
        Override the table name.  Defaults to ``settings.LANCEDB_TABLE_NAME``.
    dimensions
        Embedding length every row and query must have.
        Defaults to ``settings.EMBEDDING_DIMENSIONS``.
    """

    __slots__ = ("_db_path", "_table_name", "_dimensions", "_write_lock", "db", "table")

    def __init__(self, db_path: str | None = None, table_name: str | None = None, dimensions: int | None = None) -> None:
        self._db_path: str = str(db_path or settings.LANCEDB_PATH)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self._dimensions: int = dimensions or settings.EMBEDDING_DIMENSIONS
        self._write_lock = threading.Lock()
        self.db: lancedb.DBConnection | None = None
        self.table: lancedb.table.Table | None = None
        self._connect()

    @property
    def dimensions(self) -> int:
        return self._dimensions


    def _connect(self) -> None:
        """Open (or re-use) the LanceDB connection and initialise the table."""
        try:
            self.db = _get_connection(self._db_path)
            existing = self.db.table_names()

            if self._table_name in existing:
                self.table = self.db.open_table(self._table_name)
                logger.info("Opened existing table '%s' (%d rows).", self._table_name, self.table.count_rows())
            else:
                self.table = self.db.create_table(self._table_name, schema=build_schema(self._dimensions))
                logger.info("Created new table '%s' (dim=%d).", self._table_name, self._dimensions)

        except OSError as exc:
            logger.error("LanceDB filesystem error at %s: %s", self._db_path, exc)
            raise PersistenceError(f"Cannot open vector store at {self._db_path}: {exc}") from exc
        except Exception as exc:
            logger.exception("Unexpected error connecting to LanceDB.")
            raise PersistenceError(f"Cannot open vector store: {exc}") from exc


    def insert(self, chunk: DocumentChunk) -> str:
        """
        Append one chunk as a new row.

        No deduplication is performed: inserting the same content twice
        stores two rows.

        Returns
        -------
        str
            The generated row id (used for compensating deletes).

        Raises
        ------
        PersistenceError
            On dimension mismatch or any backend error.
        """
        self._check_dimensions(chunk.embedding)
        table = self._require_table()

        record: Record = {
            "vector": chunk.embedding,
            "id": uuid.uuid4().hex,
            "content": chunk.content,
            "filename": chunk.metadata.get("filename", ""),
            "created_at": datetime.now(timezone.utc),
        }

        try:
            with self._write_lock:
                table.add([record])
        except Exception as exc:
            logger.error("Failed to write chunk to LanceDB: %s", exc)
            raise PersistenceError(f"Insert failed: {exc}", {"filename": record["filename"]}) from exc

        logger.debug("Inserted chunk %s (%d chars) from '%s'.", record["id"], len(chunk.content), record["filename"])
        return str(record["id"])


    def similarity_search(self, vector: list[float], threshold: float, top_k: int) -> list[SimilarityResult]:
        """
        Return the chunks whose cosine similarity to *vector* is at least
        *threshold*, most similar first, at most *top_k* of them.

        An empty list (not an error) is returned when nothing clears the
        threshold, the table is still empty or *top_k* is not positive.
        """
        self._check_dimensions(vector)
        table = self._require_table()
        if top_k < 1:
            return []

        try:
            if table.count_rows() == 0:
                return []
            rows = table.search(vector).distance_type("cosine").limit(top_k).to_list()
        except Exception as exc:
            logger.error("Similarity search failed: %s", exc)
            raise PersistenceError(f"Similarity search failed: {exc}") from exc

        results = [
            SimilarityResult(content=row["content"], similarity=1.0 - float(row["_distance"]), filename=row.get("filename", ""))
            for row in rows
        ]
        results = [r for r in results if r.similarity >= threshold]
        results.sort(key=lambda r: r.similarity, reverse=True)

        logger.info("Search returned %d/%d result(s) above %.2f.", len(results), len(rows), threshold)
        return results[:top_k]


    def delete(self, ids: list[str]) -> int:
        """Delete rows by id.  Returns the number of ids requested for deletion."""
        if not ids:
            return 0
        table = self._require_table()

        quoted = ", ".join(f"'{row_id}'" for row_id in ids)
        try:
            with self._write_lock:
                table.delete(f"id IN ({quoted})")
        except Exception as exc:
            logger.error("Failed to delete %d row(s): %s", len(ids), exc)
            raise PersistenceError(f"Delete failed: {exc}") from exc

        logger.info("Deleted %d row(s) from '%s'.", len(ids), self._table_name)
        return len(ids)


    def count(self) -> int:
        """Return the total number of rows in the table."""
        if self.table is None:
            return 0
        return self.table.count_rows()


    def drop_table(self) -> None:
        """Drop the vector table (useful for testing / re-ingestion)."""
        if self.db is None:
            logger.warning("No database connection; nothing to drop.")
            return
        try:
            self.db.drop_table(self._table_name)
            self.table = None
            logger.info("Dropped table '%s'.", self._table_name)
        except (ValueError, FileNotFoundError):
            logger.warning("Table '%s' does not exist — nothing to drop.", self._table_name)
        except OSError as exc:
            logger.error("Filesystem error dropping table '%s': %s", self._table_name, exc)
            raise PersistenceError(f"Drop failed: {exc}") from exc


    def _check_dimensions(self, vector: list[float]) -> None:
        if len(vector) != self._dimensions:
            raise PersistenceError(
                f"Embedding has {len(vector)} dimensions, table expects {self._dimensions}.",
                {"table": self._table_name},
            )


    def _require_table(self) -> lancedb.table.Table:
        if self.table is None:
            raise PersistenceError("Vector table is not initialised. Call _connect() first.")
        return self.table


    def __repr__(self) -> str:
        return f"VectorStore(db='{self._db_path}', table='{self._table_name}', rows={self.count()})"
