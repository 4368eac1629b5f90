"""PDF text extraction.

Uses PyMuPDF (fitz) to pull the text layer page by page.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from arborist.errors import ExtractionError
from arborist.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


def iter_text_parts(path: Path) -> Iterator[str]:
    """Yield text content from a PDF file page by page.

    A document that cannot be opened raises ``ExtractionError``; a single
    unreadable page is logged and skipped.
    """
    try:
        doc = fitz.open(path)
    except Exception as exc:
        raise ExtractionError(f"Failed to open PDF {path}: {exc}") from exc

    try:
        for index in range(len(doc)):
            try:
                text = doc[index].get_text() or ""
            except Exception as exc:
                LOGGER.warning("Failed to read page %s in %s: %s", index, path, exc)
                continue
            normalized = normalize_whitespace(text.splitlines())
            if normalized:
                yield normalized
    finally:
        doc.close()


def extract_pdf_text(path: Path) -> str:
    """Return the text layer of a PDF, pages separated by blank lines."""
    return "\n\n".join(iter_text_parts(path))
