"""
PDF Extractor - Handles PDF text extraction.

Responsibilities:
1. Open the PDF from memory (PyMuPDF first, pdfplumber as fallback)
2. Collect positioned word runs per page and join them into lines
3. Report per-page character counts for the yield check

Scanned pages are NOT handled here; see ocr_extractor.py.
"""
import io
from typing import List

import fitz  # PyMuPDF
import pdfplumber

from syllabus_parser.core.exceptions import ExtractionFailed
from syllabus_parser.models.document import DocumentFormat, ExtractedText
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)


class PDFExtractor:
    """Extracts text from PDF bytes, one page at a time."""

    def extract(self, data: bytes, filename: str = "") -> ExtractedText:
        """
        Extract text from all pages.

        Args:
            data: PDF file bytes
            filename: Used for logging only

        Returns:
            ExtractedText with one entry per page

        Raises:
            ExtractionFailed: corrupt, encrypted or empty PDF
        """
        logger.info(f"Extracting PDF: {filename or '<memory>'} ({len(data)} bytes)")

        try:
            pages = self._extract_with_pymupdf(data)
        except ExtractionFailed:
            raise
        except Exception as e:
            # Fallback to pdfplumber for entire document
            logger.warning(f"PyMuPDF failed, using pdfplumber: {e}")
            pages = self._extract_with_pdfplumber(data, previous_error=e)

        if not pages:
            raise ExtractionFailed("PDF has no pages")

        extracted = ExtractedText.from_pages(pages, DocumentFormat.PDF)
        logger.info(f"PDF extracted: {extracted.summary}")
        return extracted

    def _extract_with_pymupdf(self, data: bytes) -> List[str]:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            if doc.needs_pass:
                raise ExtractionFailed("PDF is password protected")

            logger.debug(f"Extracting {doc.page_count} pages")
            return [self._page_text(doc[page_num]) for page_num in range(doc.page_count)]
        finally:
            doc.close()

    def _extract_with_pdfplumber(self, data: bytes, previous_error: Exception) -> List[str]:
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                return [(page.extract_text() or "").strip() for page in pdf.pages]
        except Exception as e:
            logger.error(f"PDF extraction failed: {e}", exc_info=True)
            raise ExtractionFailed(f"Failed to extract text from PDF: {previous_error}", cause=e)

    @staticmethod
    def _page_text(page: "fitz.Page") -> str:
        """
        Join positioned word runs with spaces, one output line per PDF line.

        Word tuples are (x0, y0, x1, y1, word, block_no, line_no, word_no).
        """
        words = sorted(page.get_text("words"), key=lambda w: (w[5], w[6], w[7]))

        lines: List[str] = []
        current_key = None
        current: List[str] = []
        for word in words:
            key = (word[5], word[6])
            if key != current_key and current:
                lines.append(" ".join(current))
                current = []
            current_key = key
            current.append(word[4])
        if current:
            lines.append(" ".join(current))

        return "\n".join(lines).strip()
