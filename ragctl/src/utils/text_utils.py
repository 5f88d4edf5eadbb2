"""
ragctl - Text Utilities
========================
Helper functions for paragraph chunking, PDF text-run decoding and
upload type detection.

These utilities are consumed primarily by the ``IngestionPipeline``
and the text extractor, and should remain stateless and side-effect-free.
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import unquote

# ── Chunking ───────────────────────────────────────────────────────────
PARAGRAPH_SEPARATOR = "\n\n"

# ── Upload types ───────────────────────────────────────────────────────
PDF_CONTENT_TYPE = "application/pdf"
PDF_EXTENSION = ".pdf"
TEXT_EXTENSIONS = frozenset({".txt", ".md", ".json"})
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | {PDF_EXTENSION}

# A "%" not followed by two hex digits makes the whole run undecodable.
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


# ── Public API ─────────────────────────────────────────────────────────

def split_into_chunks(text: str, min_chars: int = 50) -> list[str]:
    """
    Split *text* on blank-line boundaries and drop short fragments.

    A segment is kept only when its whitespace-trimmed length is strictly
    greater than *min_chars*.  Kept segments are returned exactly as they
    were split (not trimmed), in document order.

    Examples::

        split_into_chunks("a" * 60 + "\\n\\nShort")  → ["aaaa…a"]
        split_into_chunks("tiny\\n\\nbits")          → []
    """
    return [segment for segment in text.split(PARAGRAPH_SEPARATOR) if len(segment.strip()) > min_chars]


def decode_text_run(run: str) -> str:
    """
    Percent-decode a PDF text run, keeping the raw run when it is not
    valid percent-encoded UTF-8.

    Some extractors emit runs such as ``"Caf%C3%A9"``.  A run with any
    malformed escape (``"%41 100%"``) or invalid UTF-8 (``"%E0%A4"``) is
    returned untouched, never half-decoded.
    """
    if _MALFORMED_ESCAPE.search(run):
        return run
    try:
        return unquote(run, errors="strict")
    except UnicodeDecodeError:
        return run


def is_pdf(filename: str, content_type: str | None = None) -> bool:
    """Return True when the declared type or the filename marks a PDF upload."""
    if content_type == PDF_CONTENT_TYPE:
        return True
    return filename.lower().endswith(PDF_EXTENSION)


def is_supported_file(path: Path) -> bool:
    """Return True for the file suffixes the bulk ingestion script picks up."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS
