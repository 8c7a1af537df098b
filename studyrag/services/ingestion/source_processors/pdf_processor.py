"""Source processor for PDF files.

Reads PDF bytes using PyMuPDF (fitz) and extracts text page-by-page.
Pages with no extractable text (e.g. scanned pages without an OCR layer)
are skipped.  PyMuPDF is synchronous, so callers on the event loop run
:meth:`PDFProcessor.extract_pages` through ``asyncio.to_thread``.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from studyrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor:
    """Extracts the text of each page of a PDF."""

    extensions: tuple[str, ...] = (".pdf",)

    def extract_pages(self, data: bytes, filename: str = "") -> list[str]:
        """Return the text of every page that has any, in page order.

        Raises
        ------
        ExtractionError
            If the bytes cannot be opened as a PDF.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.error("pdf_open_failed", filename=filename, error=str(exc))
            raise ExtractionError(
                message=f"Could not open {filename or 'upload'} as a PDF: {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text")
                if text.strip():
                    pages.append(text)
            page_count = len(doc)
        finally:
            doc.close()

        logger.info(
            "pdf_processed",
            filename=filename,
            pages=page_count,
            pages_with_text=len(pages),
        )
        return pages
