"""
ragctl - API Route Definitions
================================
  - POST /api/chat    → stream an assistant reply (Server-Sent Events)
  - POST /api/ingest  → upload one document (multipart ``file`` field)
  - GET  /health      → liveness + stored chunk count

Each route handler is a thin controller: it validates the incoming
request, delegates to the services built at startup (``app.state``),
and formats the response.  No business logic lives in this file.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ragctl.config.prompt_templates import TIMEOUT_ERROR_TEXT
from ragctl.config.settings import settings
from ragctl.src.core.ingestor import IngestionPipeline
from ragctl.src.core.messages import UIMessage, normalize_messages
from ragctl.src.core.rag_engine import ConversationAgent, StreamEvent
from ragctl.src.database.vector_store import VectorStore
from ragctl.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
    "x-vercel-ai-ui-message-stream": "v1",
}


class ChatRequest(BaseModel):
    messages: list[UIMessage]


# ── Dependencies ───────────────────────────────────────────────────────

def get_agent(request: Request) -> ConversationAgent:
    return request.app.state.agent


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> VectorStore:
    return request.app.state.vector_store


# ── Streaming helpers ──────────────────────────────────────────────────

def format_sse(payload: dict | str) -> str:
    body = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {body}\n\n"


async def with_deadline(events: AsyncIterator[StreamEvent], seconds: float) -> AsyncIterator[StreamEvent]:
    """
    Relay *events* until they end or *seconds* have elapsed.

    On timeout the source is closed and a final ``error`` event is
    emitted.  Closing this generator (client disconnect) closes the
    source too.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + seconds
    try:
        while True:
            remaining = max(deadline - loop.time(), 0.0)
            try:
                event = await asyncio.wait_for(anext(events), timeout=remaining)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError:
                logger.error("[CHAT] Stream exceeded %.0fs — aborting.", seconds)
                yield StreamEvent("error", {"errorText": TIMEOUT_ERROR_TEXT, "code": "Timeout"})
                return
            yield event
    finally:
        await events.aclose()


# ── Routes ─────────────────────────────────────────────────────────────

@router.post("/api/chat")
async def chat(request: ChatRequest, agent: ConversationAgent = Depends(get_agent)) -> StreamingResponse:
    """Normalise the UI messages and stream the agent's reply as SSE."""
    messages = normalize_messages(request.messages)
    logger.info("[CHAT] Incoming request with %d message(s).", len(messages))
    logger.debug("[CHAT] Normalised messages: %s", [m.model_dump() for m in messages])

    async def event_generator() -> AsyncIterator[str]:
        async for event in with_deadline(agent.stream(messages), settings.CHAT_TIMEOUT_SECONDS):
            yield format_sse(event.to_dict())
        yield format_sse("[DONE]")

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/api/ingest")
async def ingest(file: UploadFile | None = File(None), pipeline: IngestionPipeline = Depends(get_pipeline)) -> JSONResponse:
    """Ingest one uploaded document and report how many chunks were stored."""
    if file is None or not file.filename:
        return JSONResponse({"error": "No file found"}, status_code=400)

    try:
        data = await file.read()
        count = await pipeline.ingest(file.filename, data, file.content_type)
    except Exception:
        logger.exception("Ingest Error for '%s'.", file.filename)
        return JSONResponse({"error": "Failed to process file"}, status_code=500)

    logger.info("Ingested '%s': %d chunk(s).", file.filename, count)
    return JSONResponse({"success": True, "count": count})


@router.get("/health")
async def health(store: VectorStore = Depends(get_store)) -> dict:
    return {"status": "ok", "chunks": await asyncio.to_thread(store.count)}
