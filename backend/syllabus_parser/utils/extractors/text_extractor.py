"""
Text Extractor - Main per-format dispatcher.

This class:
1. Takes an already-classified blob
2. Delegates to the extractor for its format
3. Returns ExtractedText or raises ExtractionFailed

Images are not text-extracted here: they come back as one empty page so the
yield check routes them straight to OCR.
"""
from syllabus_parser.core.exceptions import ExtractionFailed
from syllabus_parser.models.document import DocumentBlob, DocumentFormat, ExtractedText
from syllabus_parser.utils.extractors.docx_extractor import DocxExtractor
from syllabus_parser.utils.extractors.pdf_extractor import PDFExtractor
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)


def decode_text(data: bytes) -> str:
    """
    Decode plain text verbatim. Invalid UTF-8 falls back to latin-1,
    which cannot fail.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Text is not valid UTF-8, decoding as latin-1")
        return data.decode("latin-1")


class TextExtractor:
    """
    Orchestrates format-specific extraction.
    """

    def __init__(self):
        # Lazy loading
        self._pdf_extractor = None
        self._docx_extractor = None

    @property
    def pdf_extractor(self) -> PDFExtractor:
        if self._pdf_extractor is None:
            self._pdf_extractor = PDFExtractor()
        return self._pdf_extractor

    @property
    def docx_extractor(self) -> DocxExtractor:
        if self._docx_extractor is None:
            self._docx_extractor = DocxExtractor()
        return self._docx_extractor

    def extract(self, blob: DocumentBlob, file_format: DocumentFormat) -> ExtractedText:
        """
        Extract text from a blob of a known format.

        Raises:
            ExtractionFailed: unreadable, corrupt or encrypted input
        """
        if file_format == DocumentFormat.PDF:
            return self.pdf_extractor.extract(blob.data, blob.filename)

        elif file_format == DocumentFormat.DOCX:
            return self.docx_extractor.extract(blob.data, blob.filename)

        elif file_format == DocumentFormat.TEXT:
            return self._extract_plain_text(blob)

        elif file_format == DocumentFormat.IMAGE:
            logger.debug(f"Image upload, deferring to OCR: {blob.filename}")
            return ExtractedText(
                text="",
                format=DocumentFormat.IMAGE,
                page_count=1,
                per_page_yield=[0],
                page_texts=[""],
            )

        raise ExtractionFailed(f"No extractor for format: {file_format}")

    @staticmethod
    def _extract_plain_text(blob: DocumentBlob) -> ExtractedText:
        text = decode_text(blob.data)
        logger.info(f"Plain text extracted: {blob.filename or '<memory>'} ({len(text)} chars)")
        return ExtractedText(
            text=text,
            format=DocumentFormat.TEXT,
            page_count=1,
            per_page_yield=[len(text.strip())],
            page_texts=[text],
        )
