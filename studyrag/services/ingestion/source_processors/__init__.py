"""Source processors for the studyrag ingestion pipeline.

Each processor turns the raw bytes of one file format into a list of page
texts.  The ingestion service joins the pages and hands the result to the
TextChunker.

- **PDFProcessor**  -- PDF documents via PyMuPDF page extraction
- **TextProcessor** -- Plain-text (.txt) and Markdown (.md) files
"""

from __future__ import annotations

from pathlib import Path

from studyrag.services.ingestion.source_processors.pdf_processor import PDFProcessor
from studyrag.services.ingestion.source_processors.text_processor import TextProcessor
from studyrag.utils.errors import ExtractionError

_PROCESSORS: dict[str, PDFProcessor | TextProcessor] = {}
for _processor in (PDFProcessor(), TextProcessor()):
    for _ext in _processor.extensions:
        _PROCESSORS[_ext] = _processor

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_PROCESSORS)


def get_processor(filename: str) -> PDFProcessor | TextProcessor:
    """Return the processor for *filename*'s extension.

    Raises
    ------
    ExtractionError
        If the extension is not supported.
    """
    suffix = Path(filename).suffix.lower()
    processor = _PROCESSORS.get(suffix)
    if processor is None:
        raise ExtractionError(
            message=(
                f"Unsupported file type {suffix or '(none)'!r}; "
                f"expected one of {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
            )
        )
    return processor


__all__ = [
    "SUPPORTED_EXTENSIONS",
    "PDFProcessor",
    "TextProcessor",
    "get_processor",
]
