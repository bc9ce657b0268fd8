"""PDF text extraction with PyMuPDF."""

import logging
from dataclasses import dataclass

import fitz  # PyMuPDF

from studyrag.exceptions import ExtractionError

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = "No text content found in document"


@dataclass
class PageText:
    """Text extracted from a single page (1-based page number)."""

    page_number: int
    text: str


def _open_pdf(pdf_bytes: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ExtractionError(f"Unable to open PDF: {e}") from e


def extract_pages(pdf_bytes: bytes) -> list[PageText]:
    """Extract the text of every page that has any.

    Args:
        pdf_bytes: Raw PDF file contents

    Returns:
        list[PageText]: Pages with non-blank text, in page order

    Raises:
        ExtractionError: If the PDF cannot be parsed or holds no text at all
    """
    if not pdf_bytes:
        raise ExtractionError(NO_TEXT_MESSAGE)

    doc = _open_pdf(pdf_bytes)
    pages = []
    try:
        for index, page in enumerate(doc):
            text = page.get_text()
            if text.strip():
                pages.append(PageText(page_number=index + 1, text=text))
    finally:
        doc.close()

    if not pages:
        raise ExtractionError(NO_TEXT_MESSAGE)

    logger.info(f"📖 Extracted text from {len(pages)} pages")
    return pages


def count_pages(pdf_bytes: bytes) -> int:
    """Return the number of pages in a PDF."""
    doc = _open_pdf(pdf_bytes)
    try:
        return len(doc)
    finally:
        doc.close()
