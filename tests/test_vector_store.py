"""Tests for the LanceDB-backed VectorStore."""

import pytest

from ragctl.src.core.errors import PersistenceError
from ragctl.src.database.vector_store import DocumentChunk, VectorStore

from tests.fakes import DIMENSIONS, FIRST_CHUNK, SECOND_CHUNK, keyword_vector


def _chunk(content: str, filename: str = "notes.txt") -> DocumentChunk:
    return DocumentChunk(content=content, embedding=keyword_vector(content), metadata={"filename": filename})


class TestInsert:
    """Test row creation."""

    def test_insert_returns_unique_ids(self, vector_store: VectorStore) -> None:
        first = vector_store.insert(_chunk(FIRST_CHUNK))
        second = vector_store.insert(_chunk(SECOND_CHUNK))

        assert first != second
        assert vector_store.count() == 2

    def test_no_deduplication(self, vector_store: VectorStore) -> None:
        """Identical content inserted twice yields two rows."""
        vector_store.insert(_chunk(FIRST_CHUNK))
        vector_store.insert(_chunk(FIRST_CHUNK))

        assert vector_store.count() == 2

    def test_dimension_mismatch_rejected(self, vector_store: VectorStore) -> None:
        bad = DocumentChunk(content="x", embedding=[0.1] * (DIMENSIONS + 1))

        with pytest.raises(PersistenceError):
            vector_store.insert(bad)

        assert vector_store.count() == 0

    def test_reopen_existing_table(self, tmp_path) -> None:
        path = str(tmp_path / "reopen")
        VectorStore(db_path=path, table_name="docs", dimensions=DIMENSIONS).insert(_chunk(FIRST_CHUNK))

        reopened = VectorStore(db_path=path, table_name="docs", dimensions=DIMENSIONS)

        assert reopened.count() == 1


class TestSimilaritySearch:
    """Test threshold, ordering and top-K semantics."""

    def test_empty_table_returns_empty_list(self, vector_store: VectorStore) -> None:
        assert vector_store.similarity_search(keyword_vector("gamma"), threshold=0.5, top_k=5) == []

    def test_best_match_first_and_threshold_applied(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk(FIRST_CHUNK, "greek.txt"))
        vector_store.insert(_chunk(SECOND_CHUNK, "greek.txt"))

        results = vector_store.similarity_search(keyword_vector("gamma"), threshold=0.5, top_k=5)

        assert [r.content for r in results] == [FIRST_CHUNK]
        assert results[0].similarity > 0.9
        assert results[0].filename == "greek.txt"

    def test_results_sorted_descending(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk("alpha delta delta delta " * 3))
        vector_store.insert(_chunk("alpha alpha alpha delta " * 3))

        results = vector_store.similarity_search(keyword_vector("alpha"), threshold=0.0, top_k=5)

        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)
        assert all(-1.0 <= s <= 1.0 for s in similarities)

    def test_top_k_caps_results(self, vector_store: VectorStore) -> None:
        for i in range(4):
            vector_store.insert(_chunk(f"gamma paragraph number {i} " * 3))

        results = vector_store.similarity_search(keyword_vector("gamma"), threshold=0.5, top_k=2)

        assert len(results) == 2

    def test_non_positive_top_k_returns_nothing(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk(FIRST_CHUNK))

        assert vector_store.similarity_search(keyword_vector("gamma"), threshold=0.5, top_k=0) == []

    def test_nothing_above_threshold(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk(SECOND_CHUNK))

        assert vector_store.similarity_search(keyword_vector("rocket launch"), threshold=0.5, top_k=5) == []

    def test_query_dimension_mismatch(self, vector_store: VectorStore) -> None:
        with pytest.raises(PersistenceError):
            vector_store.similarity_search([1.0, 0.0], threshold=0.5, top_k=5)


class TestDeleteAndDrop:
    """Test compensating deletes and table drops."""

    def test_delete_by_id(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk(FIRST_CHUNK))
        gone = vector_store.insert(_chunk(SECOND_CHUNK))

        vector_store.delete([gone])

        assert vector_store.count() == 1
        [remaining] = vector_store.similarity_search(keyword_vector("gamma"), threshold=0.5, top_k=5)
        assert remaining.content == FIRST_CHUNK

    def test_delete_nothing(self, vector_store: VectorStore) -> None:
        assert vector_store.delete([]) == 0

    def test_drop_table(self, vector_store: VectorStore) -> None:
        vector_store.insert(_chunk(FIRST_CHUNK))

        vector_store.drop_table()

        assert vector_store.count() == 0
        with pytest.raises(PersistenceError):
            vector_store.insert(_chunk(FIRST_CHUNK))
