"""
ragctl - Retrieval Verification
=================================
Runs the retrieval tool against the LanceDB table and prints exactly the
text the conversation agent would receive for a query.

Usage:
    python -m ragctl.scripts.verify_rag "What does the onboarding guide say about VPN access?"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from ragctl.config.prompt_templates import CHUNK_DELIMITER
from ragctl.config.settings import settings
from ragctl.src.core.embedder import EmbeddingClient, build_gemini_embedder
from ragctl.src.core.retrieval import RetrievalTool
from ragctl.src.database.vector_store import VectorStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="verify_rag", description="ragctl — query the vector store through the retrieval tool.")
    parser.add_argument("query", help="Natural-language query.")
    args = parser.parse_args(argv)

    store = VectorStore()
    print(f"Table '{settings.LANCEDB_TABLE_NAME}' has {store.count()} rows.\n")

    tool = RetrievalTool(EmbeddingClient(build_gemini_embedder()), store)
    output = asyncio.run(tool.search(args.query))

    print(f"Query: {args.query}")
    print("=" * 60)
    for i, chunk in enumerate(output.split(CHUNK_DELIMITER), 1):
        print(f"\n--- Result {i} ---")
        print(f"  {chunk}")


if __name__ == "__main__":
    main()
