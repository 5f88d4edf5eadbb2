"""
ragctl - Retrieval Tool
========================
Similarity search over the ingested documents, exposed to the
conversation agent as the ``search_files`` LangChain tool.

The tool never raises: the agent can only consume text, so empty
queries, empty result sets and backend failures all come back as
descriptive strings the model can reason about and relay.
"""

from __future__ import annotations

import asyncio

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from ragctl.config.prompt_templates import CHUNK_DELIMITER, EMPTY_QUERY_ERROR, NO_DATA_FOUND, SEARCH_ERROR_TEMPLATE, SEARCH_QUERY_DESCRIPTION, SEARCH_TOOL_DESCRIPTION, SEARCH_TOOL_NAME, TOOL_ERROR_TEMPLATE
from ragctl.config.settings import settings
from ragctl.src.core.embedder import EmbeddingClient
from ragctl.src.core.errors import PersistenceError
from ragctl.src.database.vector_store import VectorStore
from ragctl.src.utils.logger import get_logger

logger = get_logger(__name__)


class SearchFilesInput(BaseModel):
    query: str = Field(description=SEARCH_QUERY_DESCRIPTION)


class RetrievalTool:
    """
    Embeds a query and fetches the top-K chunks above the similarity floor.

    Parameters
    ----------
    embedding_client
        ``EmbeddingClient`` used for the query vector.
    vector_store
        ``VectorStore`` holding the ingested chunks.
    threshold
        Override ``settings.MATCH_THRESHOLD``.
    top_k
        Override ``settings.MATCH_COUNT``.
    """

    __slots__ = ("_embedder", "_store", "_threshold", "_top_k")

    def __init__(self, embedding_client: EmbeddingClient, vector_store: VectorStore, threshold: float | None = None, top_k: int | None = None) -> None:
        self._embedder = embedding_client
        self._store = vector_store
        self._threshold = settings.MATCH_THRESHOLD if threshold is None else threshold
        self._top_k = settings.MATCH_COUNT if top_k is None else top_k


    async def search(self, query: str) -> str:
        """Run one retrieval and render the outcome as text."""
        logger.info("Searching for: %r", query)

        if not query or not query.strip():
            logger.error("Empty search query received: %r", query)
            return EMPTY_QUERY_ERROR

        try:
            vector = await self._embedder.aembed(query)
            results = await asyncio.to_thread(self._store.similarity_search, vector, self._threshold, self._top_k)
        except PersistenceError as exc:
            logger.error("Vector store search error: %s", exc.message)
            return SEARCH_ERROR_TEMPLATE.format(message=exc.message)
        except Exception as exc:
            logger.exception("Tool execution error.")
            return TOOL_ERROR_TEMPLATE.format(message=str(exc) or "Unknown error occurred")

        if not results:
            return NO_DATA_FOUND

        logger.info("Found %d matching chunk(s).", len(results))
        return CHUNK_DELIMITER.join(r.content for r in results)


    def as_tool(self) -> BaseTool:
        """Wrap ``search`` as a LangChain tool the chat model can call."""

        async def _search_files(query: str) -> str:
            return await self.search(query)

        return StructuredTool.from_function(
            coroutine=_search_files,
            name=SEARCH_TOOL_NAME,
            description=SEARCH_TOOL_DESCRIPTION,
            args_schema=SearchFilesInput,
        )
