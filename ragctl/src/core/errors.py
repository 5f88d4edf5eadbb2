"""
ragctl - Exception Hierarchy
=============================
Layered domain exceptions shared by the gateways, the ingestion
pipeline and the HTTP layer.

    RagError
    ├── InvalidInputError        empty query / empty text / missing file
    ├── ProviderError            embedding or LLM call failed
    │   ├── ProviderUnavailableError
    │   └── RateLimitedError
    ├── PersistenceError         vector store failure or dimension mismatch
    └── ExtractionError          malformed document content

None of these are retried inside ragctl; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import Any


class RagError(Exception):
    """Base exception for all ragctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidInputError(RagError):
    """Raised when caller-supplied input is empty or malformed."""


class ProviderError(RagError):
    """Raised when a hosted model (embedding or chat) call fails."""


class ProviderUnavailableError(ProviderError):
    """Network failure or 5xx from the model provider."""


class RateLimitedError(ProviderError):
    """The model provider rejected the call with a quota / rate limit."""


class PersistenceError(RagError):
    """Raised on any vector store backend error."""


class ExtractionError(RagError):
    """Raised when text cannot be extracted from an uploaded document."""
