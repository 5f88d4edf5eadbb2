"""
ragctl - Application Entry Point
==================================
FastAPI application factory.  Registers the routes from
``ragctl.src.api.routes``, configures CORS, and builds the shared
services once per process in the lifespan handler:

    EmbeddingClient → VectorStore → IngestionPipeline
                                  → RetrievalTool → ConversationAgent

The services live on ``app.state`` and are injected into the route
handlers; nothing else is shared between requests.

Run:
    uvicorn ragctl.src.main:app --reload
    python -m ragctl.src.main
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ragctl.config.settings import settings
from ragctl.src.api.routes import router
from ragctl.src.core.embedder import EmbeddingClient, build_gemini_embedder
from ragctl.src.core.ingestor import IngestionPipeline
from ragctl.src.core.rag_engine import ConversationAgent
from ragctl.src.core.retrieval import RetrievalTool
from ragctl.src.database.vector_store import VectorStore
from ragctl.src.utils.logger import get_logger, quiet_third_party

logger = get_logger(__name__)


def init_services(app: FastAPI) -> None:
    """Build the service graph and attach it to ``app.state``."""
    t_start = time.perf_counter()

    embedding_client = EmbeddingClient(build_gemini_embedder())
    vector_store = VectorStore()
    retrieval_tool = RetrievalTool(embedding_client, vector_store)

    app.state.vector_store = vector_store
    app.state.pipeline = IngestionPipeline(embedding_client, vector_store)
    app.state.agent = ConversationAgent(retrieval_tool)

    logger.info("Services initialised in %.1fms (embedding=%s, llm=%s, table=%s).", (time.perf_counter() - t_start) * 1000, settings.EMBEDDING_MODEL, settings.LLM_MODEL, settings.LANCEDB_TABLE_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup (env=%s).", settings.ENV)
    quiet_third_party()
    init_services(app)
    yield
    logger.info("Application shutdown.")


def create_app() -> FastAPI:
    app = FastAPI(title="ragctl", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ragctl.src.main:app", host="0.0.0.0", port=8000)
