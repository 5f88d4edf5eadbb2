"""
ragctl - Centralized Configuration
===================================
One ``pydantic-settings`` model holds every tunable of the service.
Values come from the process environment first, then from ``.env`` at
the project root.

Secrets
-------
``GOOGLE_API_KEY`` is a ``SecretStr`` without a default: startup fails
with a ``ValidationError`` naming the field when it is absent, and the
key never shows up in ``repr`` output or log lines.

Retrieval
---------
``MATCH_THRESHOLD`` and ``MATCH_COUNT`` are the fixed similarity floor
and top-K used by the retrieval tool.  ``EMBEDDING_DIMENSIONS`` must match
the dimensionality of every vector already stored in the LanceDB table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service configuration; field names double as environment variable names.

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr
        Gemini API key shared by the embedding and chat models.  **Required.**
    ENV : Literal["dev", "prod"]
        ``dev`` logs at DEBUG, ``prod`` at WARNING.
    LOG_LEVEL : str | None
        Explicit log level name overriding the ``ENV`` default.
    EMBEDDING_MODEL : str
        Model identifier passed to ``GoogleGenerativeAIEmbeddings``.
    EMBEDDING_DIMENSIONS : int
        Output dimensionality requested from the embedding model.
    LLM_MODEL : str
        Model identifier for the conversation agent.
    LANCEDB_TABLE_NAME : str
        Table name inside the LanceDB on-disk database.
    MATCH_THRESHOLD : float
        Minimum cosine similarity for a chunk to be returned.
    MATCH_COUNT : int
        Maximum number of chunks returned per query.
    MIN_CHUNK_CHARS : int
        Chunks whose trimmed length is not above this are discarded.
    INGEST_ROLLBACK : bool
        Delete the already inserted chunks of a file whose batch failed.
    MAX_AGENT_STEPS : int
        Upper bound on model turns per chat request (tool loop).
    CHAT_TIMEOUT_SECONDS : float
        Hard ceiling for one streamed chat response.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_RAW_DIR: Path = BASE_DIR / "data" / "raw"
    LANCEDB_PATH: Path = BASE_DIR / "data" / "lancedb"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: str | None = None

    # ── API Keys (REQUIRED, no default) ───────────────────────────────
    GOOGLE_API_KEY: SecretStr

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_MODEL: str = "models/gemini-embedding-001"
    EMBEDDING_DIMENSIONS: int = 768
    LLM_MODEL: str = "gemini-2.5-flash"
    LLM_TEMPERATURE: float = 0.2

    # ── LanceDB ────────────────────────────────────────────────────────
    LANCEDB_TABLE_NAME: str = "documents"

    # ── Retrieval ──────────────────────────────────────────────────────
    MATCH_THRESHOLD: float = 0.5
    MATCH_COUNT: int = 5

    # ── Ingestion ──────────────────────────────────────────────────────
    MIN_CHUNK_CHARS: int = 50
    INGEST_ROLLBACK: bool = True

    # ── Chat ───────────────────────────────────────────────────────────
    MAX_AGENT_STEPS: int = 20
    CHAT_TIMEOUT_SECONDS: float = 30.0
    CORS_ORIGINS: list[str] = ["*"]

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("MATCH_THRESHOLD")
    @classmethod
    def _threshold_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"MATCH_THRESHOLD must be within 0–1, got {v}")
        return v


    @field_validator("MATCH_COUNT", "EMBEDDING_DIMENSIONS", "MAX_AGENT_STEPS")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"value must be ≥ 1, got {v}")
        return v


    @field_validator("CHAT_TIMEOUT_SECONDS")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"CHAT_TIMEOUT_SECONDS must be > 0, got {v}")
        return v

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from ragctl.config.settings import settings
settings = Settings()
