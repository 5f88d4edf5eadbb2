"""
ragctl - Database Setup & Ingestion Script
============================================
Bulk-loads a directory of documents into the LanceDB table through the
same ``IngestionPipeline`` the ``/api/ingest`` route uses.

Steps:
    1. Load settings (fails fast when ``GOOGLE_API_KEY`` is missing).
    2. Build the Gemini embedding client and open the vector store,
       dropping the table first when asked to.
    3. Ingest every supported file of the source directory, one by one.
    4. Print per-file totals and the time spent in each phase.

Usage:
    python -m ragctl.scripts.setup_db                   # ingest DATA_RAW_DIR
    python -m ragctl.scripts.setup_db --source ./docs   # another directory
    python -m ragctl.scripts.setup_db --drop            # fresh table, then ingest
    python -m ragctl.scripts.setup_db --drop-only       # fresh table, no ingest
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

_RULE = "=" * 60
_THIN_RULE = "-" * 60


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="setup_db", description="Load a directory of documents into the ragctl vector store.")
    parser.add_argument("--source", type=Path, default=None, help="Directory to ingest (default: DATA_RAW_DIR).")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--drop", action="store_true", help="Drop the table before ingesting.")
    group.add_argument("--drop-only", action="store_true", help="Drop the table and exit.")
    return parser.parse_args(argv)


@contextmanager
def _phase(timings: dict[str, float], label: str) -> Iterator[None]:
    t_start = time.perf_counter()
    try:
        yield
    finally:
        timings[label] = (time.perf_counter() - t_start) * 1000


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    t_start = time.perf_counter()
    timings: dict[str, float] = {}

    with _phase(timings, "Settings + .env load"):
        try:
            from ragctl.config.settings import settings
        except Exception as exc:
            print(f"\n[FATAL] Invalid configuration, check your .env file:\n\n  {exc}\n")
            sys.exit(1)

    from ragctl.src.utils.logger import get_logger, quiet_third_party

    logger = get_logger(__name__)
    quiet_third_party()

    source_dir = args.source or settings.DATA_RAW_DIR
    _print_header(settings, source_dir)

    with _phase(timings, "Embedding client"):
        from ragctl.src.core.embedder import EmbeddingClient, build_gemini_embedder

        try:
            embedding_client = EmbeddingClient(build_gemini_embedder())
        except Exception:
            logger.exception("Cannot create embedding model '%s'.", settings.EMBEDDING_MODEL)
            sys.exit(1)

    with _phase(timings, "Vector store"):
        from ragctl.src.database.vector_store import VectorStore

        store = VectorStore()
        if args.drop or args.drop_only:
            logger.warning("Dropping table '%s'.", settings.LANCEDB_TABLE_NAME)
            store.drop_table()
            store = VectorStore()

    if args.drop_only:
        _print_summary(None, timings, time.perf_counter() - t_start)
        return

    logger.info("Table '%s' holds %d row(s) before ingestion.", settings.LANCEDB_TABLE_NAME, store.count())

    from ragctl.src.core.ingestor import IngestionPipeline

    pipeline = IngestionPipeline(embedding_client, store)
    with _phase(timings, "Ingestion"):
        summary = asyncio.run(pipeline.ingest_directory(source_dir))

    _print_summary(summary, timings, time.perf_counter() - t_start)
    if summary["files_failed"]:
        sys.exit(2)


def _print_header(settings: object, source_dir: Path) -> None:
    key = settings.GOOGLE_API_KEY.get_secret_value()  # type: ignore[attr-defined]
    rows = [
        ("Environment", settings.ENV),  # type: ignore[attr-defined]
        ("Embedding", f"{settings.EMBEDDING_MODEL} (dim={settings.EMBEDDING_DIMENSIONS})"),  # type: ignore[attr-defined]
        ("LanceDB", f"{settings.LANCEDB_PATH} :: {settings.LANCEDB_TABLE_NAME}"),  # type: ignore[attr-defined]
        ("Source dir", source_dir),
        ("Min chunk", f"> {settings.MIN_CHUNK_CHARS} chars"),  # type: ignore[attr-defined]
        ("API key", f"****{key[-4:]}" if len(key) > 4 else "****"),
    ]
    print(f"\n{_RULE}\n  RAGCTL  vector store setup\n{_RULE}")
    for label, value in rows:
        print(f"  {label:<12} : {value}")
    print(f"{_RULE}\n")


def _print_summary(summary: dict | None, timings: dict[str, float], elapsed: float) -> None:
    print(f"\n{_RULE}")
    if summary is not None:
        print(f"  FILES\n{_THIN_RULE}")
        print(f"  {'Scanned':<20} : {summary['total_files']}")
        print(f"  {'Ingested':<20} : {summary['files_processed']}")
        print(f"  {'Failed':<20} : {summary['files_failed']}")
        print(f"  {'Chunks stored':<20} : {summary['total_chunks']}")
        print(_THIN_RULE)
    print(f"  TIMING\n{_THIN_RULE}")
    for label, ms in timings.items():
        print(f"  {label:<20} : {ms:>9.1f}ms")
    print(f"  {'Total elapsed':<20} : {elapsed:>9.2f}s")
    print(f"{_RULE}\n")


if __name__ == "__main__":
    main()
