"""
ragctl - EmbeddingClient
=========================
Thin wrapper around a LangChain embedding model (Gemini by default).

Design decisions:
  • **Dependency Injection** — the underlying embedder is injected, never
    created inside the pipeline or the tool, so tests can pass a fake.
  • **No retries** — provider failures are translated into
    ``ProviderUnavailableError`` / ``RateLimitedError`` and surfaced as-is.
  • **Fixed dimensionality** — every call requests
    ``settings.EMBEDDING_DIMENSIONS`` outputs so stored vectors and query
    vectors always line up.

Usage:
    from ragctl.src.core.embedder import EmbeddingClient, build_gemini_embedder

    client = EmbeddingClient(build_gemini_embedder())
    vector = await client.aembed("What is the dosage?")
"""

from __future__ import annotations

import time
from typing import Any, Protocol, runtime_checkable

from ragctl.config.settings import settings
from ragctl.src.core.errors import InvalidInputError, ProviderUnavailableError, RateLimitedError
from ragctl.src.utils.logger import get_logger

logger = get_logger(__name__)

# Substrings providers use when rejecting a call for quota reasons
_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "RATE LIMIT", "QUOTA")


# ── Embedder Protocol ─────────────────────────────────────────────────

@runtime_checkable
class Embedder(Protocol):
    """Structural type for any LangChain-compatible embedding model."""

    def embed_query(self, text: str, **kwargs: Any) -> list[float]: ...

    async def aembed_query(self, text: str, **kwargs: Any) -> list[float]: ...


def build_gemini_embedder() -> Embedder:
    """Create the Gemini embedding model from settings."""
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    return GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())


def classify_provider_error(exc: Exception) -> ProviderUnavailableError | RateLimitedError:
    """Map an arbitrary provider exception onto the ragctl taxonomy."""
    details = {"provider_error": type(exc).__name__}
    code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    text = f"{exc} {exc.__cause__ or ''}".upper()

    if code == 429 or any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return RateLimitedError(f"Provider rate limit hit: {exc}", details)
    return ProviderUnavailableError(f"Provider call failed: {exc}", details)


class EmbeddingClient:
    """
    Turns text into a fixed-length float vector.

    Parameters
    ----------
    embedder
        Any object satisfying the ``Embedder`` protocol.
    dimensions
        Output dimensionality requested from the model.
        Defaults to ``settings.EMBEDDING_DIMENSIONS``.
    """

    __slots__ = ("_embedder", "_dimensions")

    def __init__(self, embedder: Embedder, dimensions: int | None = None) -> None:
        self._embedder = embedder
        self._dimensions = dimensions or settings.EMBEDDING_DIMENSIONS

    @property
    def dimensions(self) -> int:
        return self._dimensions


    def embed(self, text: str) -> list[float]:
        """
        Embed *text* synchronously.

        Raises
        ------
        InvalidInputError
            If *text* is empty after trimming.
        ProviderUnavailableError, RateLimitedError
            If the provider call fails.
        """
        self._validate(text)
        t_start = time.perf_counter()
        try:
            vector = self._embedder.embed_query(text, output_dimensionality=self._dimensions)
        except Exception as exc:
            logger.error("Embedding call failed: %s", exc)
            raise classify_provider_error(exc) from exc

        logger.debug("Embedded %d chars in %.1fms.", len(text), (time.perf_counter() - t_start) * 1000)
        return [float(v) for v in vector]


    async def aembed(self, text: str) -> list[float]:
        """Async twin of ``embed``; same validation and error mapping."""
        self._validate(text)
        t_start = time.perf_counter()
        try:
            vector = await self._embedder.aembed_query(text, output_dimensionality=self._dimensions)
        except Exception as exc:
            logger.error("Embedding call failed: %s", exc)
            raise classify_provider_error(exc) from exc

        logger.debug("Embedded %d chars in %.1fms.", len(text), (time.perf_counter() - t_start) * 1000)
        return [float(v) for v in vector]


    @staticmethod
    def _validate(text: str) -> None:
        if not text or not text.strip():
            raise InvalidInputError("Cannot embed empty text.")
