"""
DOCX Extractor - Concatenates paragraph (and table cell) text.
"""
import io
from typing import List

import docx

from syllabus_parser.core.exceptions import ExtractionFailed
from syllabus_parser.models.document import DocumentFormat, ExtractedText
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)


class DocxExtractor:
    """Extracts text from Word (.docx) documents."""

    def extract(self, data: bytes, filename: str = "") -> ExtractedText:
        """
        Raises:
            ExtractionFailed: not a readable .docx archive
        """
        logger.info(f"Extracting DOCX: {filename or '<memory>'}")

        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as e:
            logger.error(f"DOCX extraction failed: {e}")
            raise ExtractionFailed("Failed to extract text from DOCX", cause=e)

        parts: List[str] = [p.text for p in document.paragraphs if p.text.strip()]

        # Grading tables and schedules are often laid out as tables
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        text = "\n".join(parts).strip()
        logger.debug(f"DOCX extracted: {len(parts)} blocks, {len(text)} chars")

        # No pagination in the file format: treat as a single page
        return ExtractedText(
            text=text,
            format=DocumentFormat.DOCX,
            page_count=1,
            per_page_yield=[len(text)],
            page_texts=[text],
        )
