"""
Tests for IngestionPipeline.

Covers the paragraph scenario end to end against a real LanceDB table,
the fan-out call counts, rollback on partial failure, and the
directory-level summary used by the setup script.
"""

from unittest.mock import MagicMock, patch

import pytest

from ragctl.src.core.embedder import EmbeddingClient
from ragctl.src.core.errors import ExtractionError, PersistenceError, ProviderUnavailableError
from ragctl.src.core.ingestor import IngestionPipeline
from ragctl.src.core.retrieval import RetrievalTool
from ragctl.src.database.vector_store import DocumentChunk, VectorStore

from tests.fakes import DIMENSIONS, FIRST_CHUNK, SCENARIO_TEXT, SECOND_CHUNK, KeywordEmbedder


class TestIngest:
    """Test single-file ingestion."""

    async def test_scenario_stores_two_chunks(self, keyword_embedder: KeywordEmbedder, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        """Should drop 'Short' and persist the two long paragraphs."""
        # Arrange
        pipeline = IngestionPipeline(embedding_client, vector_store)

        # Act
        count = await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"), "text/plain")

        # Assert
        assert count == 2
        assert sorted(keyword_embedder.calls) == sorted([FIRST_CHUNK, SECOND_CHUNK])
        assert vector_store.count() == 2

    async def test_ingested_chunk_is_retrievable_verbatim(self, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)
        await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

        output = await RetrievalTool(embedding_client, vector_store).search("gamma")

        assert output == FIRST_CHUNK

    async def test_verbatim_chunk_query_returns_chunk(self, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)
        await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

        output = await RetrievalTool(embedding_client, vector_store).search(SECOND_CHUNK)

        assert output == SECOND_CHUNK

    async def test_no_qualifying_chunks_returns_zero(self, keyword_embedder: KeywordEmbedder, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)

        count = await pipeline.ingest("tiny.txt", b"Short\n\nalso short")

        assert count == 0
        assert keyword_embedder.calls == []
        assert vector_store.count() == 0

    async def test_empty_file_returns_zero(self, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)

        assert await pipeline.ingest("empty.txt", b"") == 0

    async def test_one_embed_and_insert_per_chunk(self, embedding_client: EmbeddingClient) -> None:
        """K chunks produce exactly K embed calls and K inserts."""
        store = MagicMock(spec=VectorStore)
        store.insert.side_effect = ["id-1", "id-2", "id-3"]
        pipeline = IngestionPipeline(embedding_client, store)
        text = "\n\n".join(f"Paragraph {i} about the gamma rays observed during the launch window." for i in range(3))

        count = await pipeline.ingest("rays.md", text.encode("utf-8"))

        assert count == 3
        assert store.insert.call_count == 3
        stored: list[DocumentChunk] = [c.args[0] for c in store.insert.call_args_list]
        assert {chunk.metadata["filename"] for chunk in stored} == {"rays.md"}
        assert all(len(chunk.embedding) == DIMENSIONS for chunk in stored)
        store.delete.assert_not_called()

    async def test_content_type_forwarded_to_extraction(self, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)

        with patch("ragctl.src.core.ingestor.extract_text", return_value=FIRST_CHUNK) as mock_extract:
            count = await pipeline.ingest("upload", b"%PDF-1.7", "application/pdf")

        mock_extract.assert_called_once_with(b"%PDF-1.7", "upload", "application/pdf")
        assert count == 1

    async def test_extraction_failure_propagates(self, keyword_embedder: KeywordEmbedder, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)

        with pytest.raises(ExtractionError):
            await pipeline.ingest("broken.pdf", b"definitely not a pdf")

        assert keyword_embedder.calls == []


class TestRollback:
    """Test all-or-nothing persistence when one chunk fails."""

    async def test_embedding_failure_rolls_back_inserted_rows(self, vector_store: VectorStore) -> None:
        client = EmbeddingClient(KeywordEmbedder(fail_on="Delta"), dimensions=DIMENSIONS)
        pipeline = IngestionPipeline(client, vector_store, rollback=True)

        with pytest.raises(ProviderUnavailableError):
            await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

        assert vector_store.count() == 0

    async def test_insert_failure_deletes_successful_siblings(self, embedding_client: EmbeddingClient) -> None:
        store = MagicMock(spec=VectorStore)
        store.insert.side_effect = ["id-1", PersistenceError("disk full")]
        pipeline = IngestionPipeline(embedding_client, store, rollback=True)

        with pytest.raises(PersistenceError):
            await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

        store.delete.assert_called_once_with(["id-1"])

    async def test_failed_rollback_still_raises_original_error(self, embedding_client: EmbeddingClient) -> None:
        store = MagicMock(spec=VectorStore)
        store.insert.side_effect = ["id-1", PersistenceError("disk full")]
        store.delete.side_effect = PersistenceError("delete failed")
        pipeline = IngestionPipeline(embedding_client, store, rollback=True)

        with pytest.raises(PersistenceError, match="disk full"):
            await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

    async def test_without_rollback_error_still_propagates(self, embedding_client: EmbeddingClient) -> None:
        store = MagicMock(spec=VectorStore)
        store.insert.side_effect = PersistenceError("disk full")
        pipeline = IngestionPipeline(embedding_client, store, rollback=False)

        with pytest.raises(PersistenceError):
            await pipeline.ingest("greek.txt", SCENARIO_TEXT.encode("utf-8"))

        store.delete.assert_not_called()


class TestIngestDirectory:
    """Test the batch entry point used by the setup script."""

    async def test_summary_counts(self, tmp_path, vector_store: VectorStore) -> None:
        source = tmp_path / "raw"
        source.mkdir()
        (source / "a.txt").write_text(SCENARIO_TEXT, encoding="utf-8")
        (source / "b.md").write_text(FIRST_CHUNK, encoding="utf-8")
        (source / "c.docx").write_bytes(b"ignored")
        (source / "d.txt").write_text("The rocket launch was delayed twice because of strong winds.", encoding="utf-8")
        client = EmbeddingClient(KeywordEmbedder(fail_on="rocket"), dimensions=DIMENSIONS)
        pipeline = IngestionPipeline(client, vector_store)

        summary = await pipeline.ingest_directory(source)

        assert summary["total_files"] == 3
        assert summary["files_processed"] == 2
        assert summary["files_failed"] == 1
        assert summary["total_chunks"] == 3
        assert vector_store.count() == 3

    async def test_missing_directory(self, tmp_path, embedding_client: EmbeddingClient, vector_store: VectorStore) -> None:
        pipeline = IngestionPipeline(embedding_client, vector_store)

        summary = await pipeline.ingest_directory(tmp_path / "nope")

        assert summary["total_files"] == 0
        assert summary["total_chunks"] == 0
