"""
ragctl - IngestionPipeline
===========================
Reads an uploaded document, splits it into paragraph chunks, embeds each
chunk and persists the results into the ``VectorStore``.

Per-file states::

    RECEIVED → TEXT_EXTRACTED → CHUNKED → EMBEDDING (i of N) → PERSISTED
                                                      ↘ FAILED

Key design decisions:
    • **Dependency Injection** – receives ``EmbeddingClient`` + ``VectorStore``.
    • **Paragraph chunking** – split on blank lines, drop fragments whose
      trimmed length is ≤ ``MIN_CHUNK_CHARS``.
    • **Fan-out / join** – every chunk's embed+insert runs as its own
      coroutine; the file succeeds only if all of them succeed.
    • **All-or-nothing** – with ``INGEST_ROLLBACK`` enabled the pipeline
      lets in-flight siblings settle after a failure, then deletes the rows
      that were written.  Disabled, already inserted rows are kept
      (at-least-once partial persistence).
    • **No deduplication** – ingesting the same file twice stores its
      chunks twice.

Usage:
    from ragctl.src.core.ingestor import IngestionPipeline
    pipeline = IngestionPipeline(embedding_client, vector_store)
    count    = await pipeline.ingest("notes.md", data)
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from pathlib import Path
from typing import Any

from ragctl.config.settings import settings
from ragctl.src.core.embedder import EmbeddingClient
from ragctl.src.core.extractor import extract_text
from ragctl.src.database.vector_store import DocumentChunk, VectorStore
from ragctl.src.utils.logger import get_logger
from ragctl.src.utils.text_utils import is_supported_file, split_into_chunks

logger = get_logger(__name__)


class IngestionStage(str, Enum):
    RECEIVED = "received"
    TEXT_EXTRACTED = "text_extracted"
    CHUNKED = "chunked"
    EMBEDDING = "embedding"
    PERSISTED = "persisted"
    FAILED = "failed"


class IngestionPipeline:
    """
    End-to-end document ingestion: extract → chunk → embed → store.

    Parameters
    ----------
    embedding_client
        An ``EmbeddingClient`` (injected).
    vector_store
        An initialised ``VectorStore`` (injected).
    min_chunk_chars
        Override ``settings.MIN_CHUNK_CHARS``.
    rollback
        Override ``settings.INGEST_ROLLBACK``.
    """

    __slots__ = ("_embedder", "_store", "_min_chars", "_rollback")

    def __init__(self, embedding_client: EmbeddingClient, vector_store: VectorStore, min_chunk_chars: int | None = None, rollback: bool | None = None) -> None:
        self._embedder = embedding_client
        self._store = vector_store
        self._min_chars = settings.MIN_CHUNK_CHARS if min_chunk_chars is None else min_chunk_chars
        self._rollback = settings.INGEST_ROLLBACK if rollback is None else rollback

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC ENTRY POINTS
    # ══════════════════════════════════════════════════════════════════

    async def ingest(self, filename: str, data: bytes, content_type: str | None = None) -> int:
        """
        Ingest one uploaded file.

        Returns
        -------
        int
            Number of chunks persisted (``0`` when no paragraph qualifies).

        Raises
        ------
        ExtractionError, ProviderError, PersistenceError
            The first failure of the file; nothing is reported as a
            partial success.
        """
        t_file = time.perf_counter()
        self._log_stage(filename, IngestionStage.RECEIVED, "%d bytes", len(data))

        try:
            text = await asyncio.to_thread(extract_text, data, filename, content_type)
            self._log_stage(filename, IngestionStage.TEXT_EXTRACTED, "%d chars", len(text))

            chunks = split_into_chunks(text, self._min_chars)
            self._log_stage(filename, IngestionStage.CHUNKED, "%d chunk(s)", len(chunks))

            if not chunks:
                logger.warning("No chunk of '%s' is longer than %d chars — nothing stored.", filename, self._min_chars)
                return 0

            await self._persist_chunks(filename, chunks)
        except Exception:
            self._log_stage(filename, IngestionStage.FAILED, "after %.1fms", (time.perf_counter() - t_file) * 1000)
            raise

        self._log_stage(filename, IngestionStage.PERSISTED, "%d chunk(s) in %.1fms", len(chunks), (time.perf_counter() - t_file) * 1000)
        return len(chunks)


    async def ingest_path(self, filepath: Path) -> int:
        """Read a file from disk and ingest it."""
        data = await asyncio.to_thread(filepath.read_bytes)
        return await self.ingest(filepath.name, data)


    async def ingest_directory(self, source_dir: Path | None = None) -> dict[str, Any]:
        """
        Ingest every supported file in *source_dir* one after another.

        Failed files are logged and counted, not re-raised.

        Returns
        -------
        dict
            Execution summary with keys:
            ``total_files``, ``files_processed``, ``files_failed``,
            ``total_chunks``, ``elapsed_seconds``.
        """
        t_start = time.perf_counter()
        source = Path(source_dir or settings.DATA_RAW_DIR)

        if not source.exists():
            logger.warning("Source directory does not exist: %s", source)
            return self._summary(0, 0, 0, 0, time.perf_counter() - t_start)

        files = sorted(f for f in source.iterdir() if f.is_file() and is_supported_file(f))
        if not files:
            logger.warning("No supported files found in %s", source)
            return self._summary(0, 0, 0, 0, time.perf_counter() - t_start)

        logger.info("Starting ingestion — %d file(s) found in %s", len(files), source)

        total_chunks = 0
        files_processed = 0
        files_failed = 0

        for filepath in files:
            try:
                total_chunks += await self.ingest_path(filepath)
                files_processed += 1
            except Exception:
                files_failed += 1
                logger.exception("Failed to ingest file: %s", filepath.name)

        elapsed = time.perf_counter() - t_start
        logger.info("Ingestion complete — %d file(s) processed, %d failed, %d chunk(s) stored in %.2fs.", files_processed, files_failed, total_chunks, elapsed)
        return self._summary(len(files), files_processed, files_failed, total_chunks, elapsed)

    # ══════════════════════════════════════════════════════════════════
    #  FAN-OUT / JOIN
    # ══════════════════════════════════════════════════════════════════

    async def _persist_chunks(self, filename: str, chunks: list[str]) -> list[str]:
        total = len(chunks)
        tasks = [self._embed_and_store(filename, chunk, index, total) for index, chunk in enumerate(chunks, 1)]

        if not self._rollback:
            # First failure propagates; siblings keep running unobserved.
            return await asyncio.gather(*tasks)

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        inserted = [o for o in outcomes if isinstance(o, str)]

        if failures:
            logger.error("%d of %d chunk(s) of '%s' failed — rolling back %d inserted row(s).", len(failures), total, filename, len(inserted))
            try:
                await asyncio.to_thread(self._store.delete, inserted)
            except Exception:
                logger.exception("Rollback of '%s' failed; %d orphan row(s) remain.", filename, len(inserted))
            raise failures[0]

        return inserted


    async def _embed_and_store(self, filename: str, chunk: str, index: int, total: int) -> str:
        self._log_stage(filename, IngestionStage.EMBEDDING, "chunk %d of %d", index, total)
        vector = await self._embedder.aembed(chunk)
        record = DocumentChunk(content=chunk, embedding=vector, metadata={"filename": filename})
        return await asyncio.to_thread(self._store.insert, record)

    # ── Helpers ────────────────────────────────────────────────────────

    @staticmethod
    def _log_stage(filename: str, stage: IngestionStage, detail: str, *args: object) -> None:
        logger.info("[INGEST] '%s' → %s (" + detail + ")", filename, stage.value.upper(), *args)


    @staticmethod
    def _summary(total: int, processed: int, failed: int, chunks: int, elapsed: float) -> dict[str, Any]:
        return {
            "total_files": total,
            "files_processed": processed,
            "files_failed": failed,
            "total_chunks": chunks,
            "elapsed_seconds": round(elapsed, 2),
        }
