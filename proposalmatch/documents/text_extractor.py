"""
text_extractor.py - Uploaded document -> plain text.

Pure function module: no FastAPI dependencies.
Entry point: extract_text(data: bytes, extension: str) -> str

Dispatches on the DECLARED extension only (never sniffed content):
  txt  -> strict UTF-8 decode (a leading BOM is dropped)
  pdf  -> pdfplumber, every page, joined by newlines
  docx -> python-docx, body paragraphs then table cells

Any decoder failure becomes a single DocumentExtractionError; a partially
decoded result is never returned.

NOTE: pdfplumber and python-docx are synchronous and CPU-bound. Async callers
run extract_text() through asyncio.to_thread().
"""
from __future__ import annotations

import io
import logging

import pdfplumber
from docx import Document

from proposalmatch.errors import DocumentExtractionError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = ("pdf", "docx", "txt")

CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain",
}


def file_extension(file_name: str) -> str:
    """'Annual Report.PDF' -> 'pdf'; no dot -> ''."""
    if not file_name or "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[1].strip().lower()


# ---------------------------------------------------------------------------
# Format decoders
# ---------------------------------------------------------------------------

def _extract_txt(data: bytes) -> str:
    return data.decode("utf-8-sig")


def _extract_pdf(data: bytes) -> str:
    parts: list[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                parts.append(text)
    return "\n".join(parts)


def _extract_docx(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    parts = [p.text for p in document.paragraphs if p.text]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append("\t".join(cells))
    return "\n".join(parts)


_DECODERS = {
    "txt": _extract_txt,
    "pdf": _extract_pdf,
    "docx": _extract_docx,
}


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def extract_text(data: bytes, extension: str) -> str:
    """
    Decode an uploaded document according to its declared extension.

    Raises:
        DocumentExtractionError(UNSUPPORTED_TYPE): extension not in SUPPORTED_EXTENSIONS.
        DocumentExtractionError(DECODE_FAILED): corrupt file, bad UTF-8, unsupported internals.
    """
    decoder = _DECODERS.get(extension.lower())
    if decoder is None:
        raise DocumentExtractionError(
            f"Unsupported file type '{extension}'",
            reason=DocumentExtractionError.UNSUPPORTED_TYPE,
        )
    try:
        text = decoder(data)
    except Exception as exc:
        logger.warning(
            "Text extraction failed type=%s size=%d error=%s",
            extension, len(data), type(exc).__name__,
        )
        raise DocumentExtractionError(
            "Failed to extract text from file. Please ensure the file is not corrupted.",
        ) from exc

    logger.debug("extract_text: type=%s size=%d chars=%d", extension, len(data), len(text))
    return text


def require_text(text: str | None) -> str:
    """
    Reject text that is empty after trimming.

    Raises:
        DocumentExtractionError(EMPTY_CONTENT)
    """
    if not text or not text.strip():
        raise DocumentExtractionError(
            "No text could be extracted from the file.",
            reason=DocumentExtractionError.EMPTY_CONTENT,
        )
    return text
