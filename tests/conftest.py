"""
Shared test fixtures and configuration for the entire test suite.

Provides: environment defaults, a keyword embedder wrapped in an
EmbeddingClient, and a temporary LanceDB-backed VectorStore.
Dependencies: pytest, lancedb
System role: Test infrastructure and fixture management
"""

import os

# Settings are read at import time; set them before any ragctl import.
os.environ.setdefault("GOOGLE_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["EMBEDDING_DIMENSIONS"] = "8"

import pytest

from ragctl.src.core.embedder import EmbeddingClient
from ragctl.src.database.vector_store import VectorStore

from tests.fakes import DIMENSIONS, KeywordEmbedder


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def embedding_client(keyword_embedder: KeywordEmbedder) -> EmbeddingClient:
    return EmbeddingClient(keyword_embedder, dimensions=DIMENSIONS)


@pytest.fixture
def vector_store(tmp_path) -> VectorStore:
    """Fresh LanceDB table in a per-test directory."""
    return VectorStore(db_path=str(tmp_path / "lancedb"), table_name="test_documents", dimensions=DIMENSIONS)
