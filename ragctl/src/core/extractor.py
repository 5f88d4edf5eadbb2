"""
ragctl - Text Extraction
=========================
Turns an uploaded file's bytes into plain text.

  • PDF (declared ``application/pdf`` or a ``.pdf`` name) — ``pypdf``
    walks the pages in order and reports every text run; each run is
    percent-decoded and followed by a space, and a blank line closes
    each page.
  • Anything else is decoded as UTF-8 verbatim.
"""

from __future__ import annotations

import io
import warnings

from pypdf import PdfReader

from ragctl.src.core.errors import ExtractionError
from ragctl.src.utils.logger import get_logger
from ragctl.src.utils.text_utils import PARAGRAPH_SEPARATOR, decode_text_run, is_pdf

logger = get_logger(__name__)


def extract_text(data: bytes, filename: str, content_type: str | None = None) -> str:
    """Dispatch on the upload type and return the file's text."""
    if is_pdf(filename, content_type):
        logger.info("Processing PDF: %s", filename)
        text = extract_pdf_text(data)
        logger.info("Extracted text from PDF (%d characters)", len(text))
        return text
    return data.decode("utf-8", errors="replace")


def extract_pdf_text(data: bytes) -> str:
    """
    Extract text from PDF bytes.

    Raises
    ------
    ExtractionError
        If the document cannot be parsed.
    """
    parts: list[str] = []

    def _collect_run(text: str, *_: object) -> None:
        if text:
            parts.append(decode_text_run(text) + " ")

    try:
        # Suppress PyPDF deprecation warning about ARC4
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="ARC4 has been moved to cryptography.hazmat.decrepit.*", category=DeprecationWarning)
            reader = PdfReader(io.BytesIO(data))
            for page_number, page in enumerate(reader.pages, 1):
                page.extract_text(visitor_text=_collect_run)
                parts.append(PARAGRAPH_SEPARATOR)
                logger.debug("Extracted page %d.", page_number)
    except Exception as exc:
        logger.error("PDF parsing failed: %s", exc)
        raise ExtractionError(f"Cannot extract text from PDF: {exc}") from exc

    return "".join(parts).strip()
