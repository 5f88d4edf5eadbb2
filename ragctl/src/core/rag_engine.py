"""
ragctl - Conversation Agent
=============================
Wraps the hosted Gemini chat model with the fixed system instruction and
the ``search_files`` retrieval tool, and streams every turn back as a
sequence of UI events.

Flow per request
----------------
    1. Normalised messages → LangChain messages (system prompt first).
    2. Stream one model turn; forward text deltas as they arrive.
    3. Model asked for tools → run each through ``RetrievalTool``
       (generation is suspended meanwhile), append the tool messages,
       go back to 2.
    4. Model answered without tool calls → ``finish``.

The loop is bounded by ``MAX_AGENT_STEPS`` model turns.  Provider
failures end the stream with a single ``error`` event; they are never
retried.  Tool failures never end the stream — the tool already renders
them as text.

Event stream
------------
``start`` → (``start-step`` → ``text-start`` / ``text-delta``* / ``text-end``
→ ``tool-input-available`` / ``tool-output-available``* → ``finish-step``)+
→ ``finish`` | ``error``

Usage:
    from ragctl.src.core.rag_engine import ConversationAgent
    agent = ConversationAgent(retrieval_tool)
    async for event in agent.stream(messages):
        ...
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from ragctl.config.prompt_templates import PROVIDER_ERROR_TEXT, STEP_LIMIT_NOTICE, SYSTEM_PROMPT, TOOL_ERROR_TEMPLATE, TOOL_RESULT_PREFIX
from ragctl.config.settings import settings
from ragctl.src.core.embedder import classify_provider_error
from ragctl.src.core.messages import ConversationMessage
from ragctl.src.core.retrieval import RetrievalTool
from ragctl.src.utils.logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  STREAM EVENTS
# ══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StreamEvent:
    """One increment of a streamed assistant message."""

    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, **self.data}


def _new_id() -> str:
    return uuid.uuid4().hex


# ══════════════════════════════════════════════════════════════════════
#  MESSAGE CONVERSION
# ══════════════════════════════════════════════════════════════════════


def to_langchain_messages(messages: list[ConversationMessage], system_prompt: str = SYSTEM_PROMPT) -> list[BaseMessage]:
    """
    Build the model input: system prompt, then the conversation.

    Messages with empty content are skipped.  ``tool`` messages carry no
    call id in the UI shape, so they are replayed as user text.
    """
    converted: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for message in messages:
        if not message.content:
            continue
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        elif message.role == "tool":
            converted.append(HumanMessage(content=TOOL_RESULT_PREFIX + message.content))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted


def chunk_text(chunk: BaseMessage) -> str:
    """Text carried by a streamed chunk (string or content-block list)."""
    content = chunk.content
    if isinstance(content, str):
        return content
    pieces: list[str] = []
    for block in content:
        if isinstance(block, str):
            pieces.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            pieces.append(str(block.get("text", "")))
    return "".join(pieces)


# ══════════════════════════════════════════════════════════════════════
#  CONVERSATION AGENT
# ══════════════════════════════════════════════════════════════════════


class ConversationAgent:
    """
    Tool-calling chat agent with token streaming.

    Parameters
    ----------
    retrieval_tool
        ``RetrievalTool`` the model may call as ``search_files``.
    llm
        Optional chat model exposing ``bind_tools`` and ``astream``.
        Defaults to ``ChatGoogleGenerativeAI`` built from settings.
    system_prompt
        Override the persona / policy instruction.
    max_steps
        Override ``settings.MAX_AGENT_STEPS``.
    """

    __slots__ = ("_retrieval", "_tool", "_llm", "_system_prompt", "_max_steps")

    def __init__(self, retrieval_tool: RetrievalTool, llm: Any = None, system_prompt: str = SYSTEM_PROMPT, max_steps: int | None = None) -> None:
        self._retrieval = retrieval_tool
        self._tool = retrieval_tool.as_tool()
        self._llm = (llm or self._init_llm()).bind_tools([self._tool])
        self._system_prompt = system_prompt
        self._max_steps = max_steps or settings.MAX_AGENT_STEPS


    @staticmethod
    def _init_llm() -> Any:
        """Initialise the Gemini LLM via LangChain."""
        from langchain_google_genai import ChatGoogleGenerativeAI

        llm = ChatGoogleGenerativeAI(model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
        logger.info("LLM initialised: %s (temperature=%.1f)", settings.LLM_MODEL, settings.LLM_TEMPERATURE)
        return llm


    async def stream(self, messages: list[ConversationMessage]) -> AsyncIterator[StreamEvent]:
        """Stream one assistant reply, including any tool round-trips."""
        history = to_langchain_messages(messages, self._system_prompt)
        logger.info("[AGENT] Turn started with %d message(s).", len(history) - 1)

        yield StreamEvent("start", {"messageId": _new_id()})

        for step in range(1, self._max_steps + 1):
            yield StreamEvent("start-step")

            text_id: str | None = None
            aggregate: AIMessageChunk | None = None

            try:
                async for chunk in self._llm.astream(history):
                    aggregate = chunk if aggregate is None else aggregate + chunk
                    text = chunk_text(chunk)
                    if not text:
                        continue
                    if text_id is None:
                        text_id = _new_id()
                        yield StreamEvent("text-start", {"id": text_id})
                    yield StreamEvent("text-delta", {"id": text_id, "delta": text})
            except Exception as exc:
                error = classify_provider_error(exc)
                logger.error("[AGENT] Model call failed at step %d: %s", step, error.message)
                yield StreamEvent("error", {"errorText": PROVIDER_ERROR_TEXT, "code": type(error).__name__})
                return

            if text_id is not None:
                yield StreamEvent("text-end", {"id": text_id})

            tool_calls = list(getattr(aggregate, "tool_calls", None) or [])
            if not tool_calls:
                yield StreamEvent("finish-step")
                yield StreamEvent("finish")
                logger.info("[AGENT] Turn finished after %d step(s).", step)
                return

            history.append(aggregate)
            for call in tool_calls:
                call_id = call.get("id") or _new_id()
                yield StreamEvent("tool-input-available", {"toolCallId": call_id, "toolName": call["name"], "input": call.get("args", {})})

                output = await self._run_tool(call["name"], call.get("args") or {})
                history.append(ToolMessage(content=output, tool_call_id=call_id, name=call["name"]))
                yield StreamEvent("tool-output-available", {"toolCallId": call_id, "output": output})

            yield StreamEvent("finish-step")

        logger.warning("[AGENT] %s (%d steps)", STEP_LIMIT_NOTICE, self._max_steps)
        yield StreamEvent("error", {"errorText": STEP_LIMIT_NOTICE, "code": "StepLimitReached"})


    async def _run_tool(self, name: str, args: dict[str, Any]) -> str:
        if name != self._tool.name:
            logger.warning("[AGENT] Model requested unknown tool '%s'.", name)
            return TOOL_ERROR_TEMPLATE.format(message=f"Unknown tool '{name}'")
        query = args.get("query")
        return await self._retrieval.search(query if isinstance(query, str) else "")
