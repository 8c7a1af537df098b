"""Source processor for plain-text and Markdown files.

The whole file is one unit; there are no pages.
"""

from __future__ import annotations

import structlog

from studyrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class TextProcessor:
    """Decodes ``.txt`` / ``.md`` uploads as UTF-8."""

    extensions: tuple[str, ...] = (".txt", ".md")

    def extract_pages(self, data: bytes, filename: str = "") -> list[str]:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                message=f"{filename or 'upload'} is not valid UTF-8 text",
                provider_name="text",
            ) from exc

        logger.info("text_processed", filename=filename, chars=len(text))
        return [text] if text.strip() else []
